# luxbroker/tasks.py

import logging
from decimal import Decimal

from sqlalchemy import func

from luxbroker import db
from luxbroker.models import Broker, Commission, Seller
from luxbroker.utils.broker_stats import check_tier_upgrade
from luxbroker.utils.fees import to_money

logger = logging.getLogger(__name__)


def reconcile_broker_stats():
    """
    Recompute every broker's counters from the sellers and commissions tables.

    The live counters are incremented best-effort during registration and
    sale recording, so a failed update leaves them behind; this job brings
    them back in line. Must run inside an application context.
    """
    seller_counts = dict(
        db.session.query(Seller.referred_by_broker_id, func.count(Seller.id))
        .filter(Seller.referred_by_broker_id.isnot(None))
        .group_by(Seller.referred_by_broker_id)
        .all()
    )
    totals = {
        broker_id: (earnings, volume)
        for broker_id, earnings, volume in db.session.query(
            Commission.broker_id,
            func.coalesce(func.sum(Commission.commission_usd), 0),
            func.coalesce(func.sum(Commission.sale_amount_usd), 0)
        ).group_by(Commission.broker_id).all()
    }

    changed = 0
    for broker in Broker.query.all():
        earnings, volume = totals.get(broker.id, (0, 0))
        expected = (seller_counts.get(broker.id, 0), to_money(Decimal(str(earnings))), to_money(Decimal(str(volume))))
        current = (
            broker.referred_sellers_count or 0,
            Decimal(broker.total_earnings or 0),
            Decimal(broker.total_sales_volume or 0)
        )
        if expected == current:
            continue

        logger.info('Reconciling broker %s: %s -> %s', broker.id, current, expected)
        broker.referred_sellers_count, broker.total_earnings, broker.total_sales_volume = expected
        changed += 1

    db.session.flush()
    for broker_id, in db.session.query(Broker.id).all():
        check_tier_upgrade(broker_id)

    db.session.commit()
    logger.info('Broker reconciliation finished, %d broker(s) updated', changed)
    return changed


def run_reconciliation():
    """Entry point for schedulers: builds its own app and context."""
    from luxbroker import create_app

    app = create_app()
    with app.app_context():
        return reconcile_broker_stats()
