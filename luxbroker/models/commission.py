from luxbroker import db
from datetime import datetime
import uuid


class Commission(db.Model):
    __tablename__ = 'commissions'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    broker_id = db.Column(db.String(36), db.ForeignKey('brokers.id'), nullable=False, index=True)
    seller_id = db.Column(db.String(36), db.ForeignKey('sellers.id'), nullable=False, index=True)
    sale_amount_usd = db.Column(db.Numeric(15, 2), nullable=False)
    commission_usd = db.Column(db.Numeric(15, 2), nullable=False)
    platform_fee_usd = db.Column(db.Numeric(15, 2), nullable=False)
    # Rates are captured at creation so later table changes never rewrite history
    fee_rate = db.Column(db.Numeric(8, 6), nullable=False)
    commission_rate = db.Column(db.Numeric(5, 4), nullable=False)
    category = db.Column(db.String(50), nullable=False)
    pay_method = db.Column(db.String(20), nullable=False)
    auction = db.Column(db.Boolean, nullable=False, default=False)
    transaction_hash = db.Column(db.String(128), unique=True, nullable=True)
    status = db.Column(db.String(20), nullable=False, default='pending')  # pending/paid
    payout_transaction_hash = db.Column(db.String(128))
    paid_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'broker_id': self.broker_id,
            'seller_id': self.seller_id,
            'sale_amount_usd': float(self.sale_amount_usd),
            'commission_usd': float(self.commission_usd),
            'platform_fee_usd': float(self.platform_fee_usd),
            'fee_rate': float(self.fee_rate),
            'commission_rate': float(self.commission_rate),
            'category': self.category,
            'pay_method': self.pay_method,
            'auction': self.auction,
            'transaction_hash': self.transaction_hash,
            'status': self.status,
            'payout_transaction_hash': self.payout_transaction_hash,
            'paid_at': self.paid_at.isoformat() if self.paid_at else None,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }


class ReferralClick(db.Model):
    __tablename__ = 'referral_clicks'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    referral_code = db.Column(db.String(20), nullable=False, index=True)
    broker_id = db.Column(db.String(36), db.ForeignKey('brokers.id'), nullable=False, index=True)
    ip_address = db.Column(db.String(64))
    user_agent = db.Column(db.Text)
    referrer = db.Column(db.Text)
    converted = db.Column(db.Boolean, nullable=False, default=False)
    conversion_date = db.Column(db.DateTime)
    clicked_at = db.Column(db.DateTime, default=datetime.utcnow)
