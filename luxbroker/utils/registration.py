import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from luxbroker import db
from luxbroker.errors import PersistenceError
from luxbroker.models import Broker, Seller, ReferralClick
from luxbroker.utils import broker_stats
from luxbroker.utils.referral import (
    AttributionOutcome, AttributionResult, attribute_seller, generate_referral_code
)
from luxbroker.utils.validators import require_wallet_address

logger = logging.getLogger(__name__)

MAX_CODE_ATTEMPTS = 10


def _existing_attribution(seller):
    outcome = (AttributionOutcome.LOCKED if seller.referred_by_broker_id
               else AttributionOutcome.UNATTRIBUTED_NO_CODE)
    return AttributionResult(outcome, broker=seller.referring_broker)


def register_seller(wallet_address, referral_code=None, ip_address=None, now=None, lock_days=90):
    """Create a seller for ``wallet_address`` or return the existing one.

    Returns ``(seller, created, attribution)``. Existing sellers come back
    untouched. The seller row is committed before the broker counter moves;
    counter and conversion-tracking failures are logged only.
    """
    require_wallet_address(wallet_address)

    existing = Seller.query.filter_by(wallet_address=wallet_address).first()
    if existing:
        return existing, False, _existing_attribution(existing)

    seller = Seller(wallet_address=wallet_address)
    attribution = attribute_seller(seller, referral_code, now=now, lock_days=lock_days)

    try:
        db.session.add(seller)
        db.session.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration for the same wallet
        db.session.rollback()
        existing = Seller.query.filter_by(wallet_address=wallet_address).first()
        if existing is None:
            raise PersistenceError('Failed to register seller')
        return existing, False, _existing_attribution(existing)
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error('Seller registration failed for %s: %s', wallet_address, e)
        raise PersistenceError('Failed to register seller')

    if attribution.attributed:
        broker_id = attribution.broker.id
        try:
            broker_stats.increment_referred_sellers(broker_id)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.warning('Failed to update referred seller count for broker %s: %s', broker_id, e)

        mark_referral_converted(attribution.referral_code, ip_address)

    return seller, True, attribution


def mark_referral_converted(referral_code, ip_address=None):
    """Flag the newest unconverted click for this code (and IP, when known)."""
    query = ReferralClick.query.filter_by(referral_code=referral_code, converted=False)
    if ip_address:
        query = query.filter_by(ip_address=ip_address)
    try:
        click = query.order_by(ReferralClick.clicked_at.desc()).first()
        if click is None:
            return None
        click.converted = True
        click.conversion_date = datetime.utcnow()
        db.session.commit()
        return click
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.warning('Failed to mark referral %s converted: %s', referral_code, e)
        return None


def register_broker(wallet_address):
    """Create a broker with a fresh referral code, or return the existing one."""
    require_wallet_address(wallet_address)

    existing = Broker.query.filter_by(wallet_address=wallet_address).first()
    if existing:
        return existing, False

    for _ in range(MAX_CODE_ATTEMPTS):
        code = generate_referral_code()
        if not Broker.query.filter_by(referral_code=code).first():
            break
    else:
        raise PersistenceError('Failed to generate unique referral code')

    broker = Broker(wallet_address=wallet_address, referral_code=code, tier_id=1)
    try:
        db.session.add(broker)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error('Broker registration failed for %s: %s', wallet_address, e)
        raise PersistenceError('Failed to register broker')

    logger.info('Broker registered with referral code %s', broker.referral_code)
    return broker, True
