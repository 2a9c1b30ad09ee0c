from luxbroker import db
from datetime import datetime
import uuid


class BrokerTier(db.Model):
    __tablename__ = 'broker_tiers'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), nullable=False)
    min_referrals = db.Column(db.Integer, nullable=False, default=0)
    min_sales_volume = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    # Display only; the commission actually paid comes from BROKER_COMMISSION_RATE
    commission_rate = db.Column(db.Numeric(5, 4), nullable=False)
    color = db.Column(db.String(7), nullable=False)
    icon = db.Column(db.String(10), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'min_referrals': self.min_referrals,
            'min_sales_volume': float(self.min_sales_volume or 0),
            'commission_rate': float(self.commission_rate),
            'color': self.color,
            'icon': self.icon
        }


class Broker(db.Model):
    __tablename__ = 'brokers'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    wallet_address = db.Column(db.String(35), unique=True, nullable=False, index=True)
    referral_code = db.Column(db.String(20), unique=True, nullable=False, index=True)
    tier_id = db.Column(db.Integer, db.ForeignKey('broker_tiers.id'), nullable=False, default=1)
    referred_sellers_count = db.Column(db.Integer, nullable=False, default=0)
    total_earnings = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    total_sales_volume = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    tier = db.relationship('BrokerTier', lazy='joined')
    sellers = db.relationship('Seller', backref='referring_broker', lazy=True)
    commissions = db.relationship('Commission', backref='broker', lazy=True)
    notifications = db.relationship('BrokerNotification', backref='broker', lazy=True)

    def to_dict(self):
        return {
            'id': self.id,
            'wallet_address': self.wallet_address,
            'referral_code': self.referral_code,
            'tier': self.tier.to_dict() if self.tier else None,
            'referred_sellers_count': self.referred_sellers_count or 0,
            'total_earnings': float(self.total_earnings or 0),
            'total_sales_volume': float(self.total_sales_volume or 0),
            'created_at': self.created_at.isoformat() if self.created_at else None
        }


class BrokerNotification(db.Model):
    __tablename__ = 'broker_notifications'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    broker_id = db.Column(db.String(36), db.ForeignKey('brokers.id'), nullable=False, index=True)
    type = db.Column(db.String(50), nullable=False)  # commission_earned/tier_upgrade
    title = db.Column(db.String(200), nullable=False)
    message = db.Column(db.Text, nullable=False)
    data = db.Column(db.JSON)
    read = db.Column(db.Boolean, nullable=False, default=False)
    sent_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'type': self.type,
            'title': self.title,
            'message': self.message,
            'data': self.data or {},
            'read': self.read,
            'sent_at': self.sent_at.isoformat() if self.sent_at else None
        }
