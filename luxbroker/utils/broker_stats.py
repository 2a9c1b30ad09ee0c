import logging
from datetime import datetime

from luxbroker import db
from luxbroker.models import Broker, BrokerTier, BrokerNotification

logger = logging.getLogger(__name__)


def _increment(broker_id, **deltas):
    """Single UPDATE ... SET col = col + n; never read-modify-write."""
    values = {getattr(Broker, column): getattr(Broker, column) + delta for column, delta in deltas.items()}
    values[Broker.updated_at] = datetime.utcnow()
    return Broker.query.filter_by(id=broker_id).update(values, synchronize_session=False)


def notify(broker_id, type, title, message, data=None):
    notification = BrokerNotification(
        broker_id=broker_id,
        type=type,
        title=title,
        message=message,
        data=data or {}
    )
    db.session.add(notification)
    return notification


def check_tier_upgrade(broker_id):
    """Move the broker to the highest tier they qualify for; never downgrade."""
    broker = Broker.query.populate_existing().filter_by(id=broker_id).first()
    if broker is None:
        return None

    qualifying = BrokerTier.query.filter(
        BrokerTier.min_referrals <= (broker.referred_sellers_count or 0),
        BrokerTier.min_sales_volume <= (broker.total_sales_volume or 0)
    ).order_by(BrokerTier.min_sales_volume.desc(), BrokerTier.min_referrals.desc()).first()

    if qualifying is None or qualifying.id <= (broker.tier_id or 0):
        return None

    old_tier_id = broker.tier_id
    broker.tier_id = qualifying.id
    notify(
        broker.id,
        'tier_upgrade',
        'Tier Upgrade!',
        f'Congratulations! You have been upgraded to {qualifying.name}.',
        {'old_tier_id': old_tier_id, 'new_tier_id': qualifying.id}
    )
    logger.info('Broker %s upgraded from tier %s to %s', broker.id, old_tier_id, qualifying.id)
    return qualifying


def increment_referred_sellers(broker_id):
    _increment(broker_id, referred_sellers_count=1)
    check_tier_upgrade(broker_id)


def apply_sale(broker_id, commission_usd, sale_amount_usd):
    """Add one sale to the broker's running totals."""
    _increment(broker_id, total_earnings=commission_usd, total_sales_volume=sale_amount_usd)
    notify(
        broker_id,
        'commission_earned',
        'Commission Earned',
        f'You earned ${commission_usd:,.2f} from a ${sale_amount_usd:,.2f} sale.',
        {'commission_usd': float(commission_usd), 'sale_amount_usd': float(sale_amount_usd)}
    )
    check_tier_upgrade(broker_id)
