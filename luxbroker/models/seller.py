from luxbroker import db
from datetime import datetime
import uuid


class Seller(db.Model):
    __tablename__ = 'sellers'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    wallet_address = db.Column(db.String(35), unique=True, nullable=False, index=True)
    referred_by_broker_id = db.Column(db.String(36), db.ForeignKey('brokers.id'), nullable=True, index=True)
    referral_locked_until = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Relationships
    commissions = db.relationship('Commission', backref='seller', lazy=True)

    def attribution_locked(self, now=None):
        """True while the stored broker link may not be replaced."""
        if not self.referred_by_broker_id:
            return False
        if self.referral_locked_until is None:
            return True
        return (now or datetime.utcnow()) < self.referral_locked_until

    def to_dict(self):
        return {
            'id': self.id,
            'wallet_address': self.wallet_address,
            'referred_by_broker_id': self.referred_by_broker_id,
            'referral_locked_until': (
                self.referral_locked_until.isoformat() if self.referral_locked_until else None
            ),
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
