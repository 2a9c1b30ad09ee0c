from datetime import datetime

from dateutil.relativedelta import relativedelta, MO
from flask import Blueprint, request, jsonify, current_app
from sqlalchemy import func

from luxbroker import db
from luxbroker.models import Broker, BrokerTier, Commission
from luxbroker.schemas import leaderboard_query_schema

leaderboard_bp = Blueprint('leaderboard', __name__)


def period_start(period, now=None):
    """Start of the current week (Monday) or month; None for all time."""
    now = now or datetime.utcnow()
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == 'week':
        return midnight + relativedelta(weekday=MO(-1))
    if period == 'month':
        return midnight + relativedelta(day=1)
    return None


def leaderboard_rows(period, limit, offset, now=None):
    total_sales = func.coalesce(func.sum(Commission.sale_amount_usd), 0)
    total_commission = func.coalesce(func.sum(Commission.commission_usd), 0)

    query = db.session.query(
        Broker.referral_code,
        BrokerTier.name,
        BrokerTier.color,
        BrokerTier.icon,
        total_sales.label('total_sales_usd'),
        total_commission.label('total_commission_usd'),
        func.count(func.distinct(Commission.seller_id)).label('sellers'),
        func.max(Commission.created_at).label('last_sale')
    ).join(Broker, Broker.id == Commission.broker_id).join(BrokerTier, BrokerTier.id == Broker.tier_id)

    start = period_start(period, now)
    if start is not None:
        query = query.filter(Commission.created_at >= start)

    return query.group_by(
        Broker.id, Broker.referral_code, BrokerTier.name, BrokerTier.color, BrokerTier.icon
    ).order_by(total_commission.desc(), Broker.referral_code).limit(limit).offset(offset).all()


# ------------------ PUBLIC LEADERBOARD ------------------
@leaderboard_bp.route('', methods=['GET'])
def leaderboard():
    params = leaderboard_query_schema.load(request.args.to_dict())
    limit = min(params['limit'], current_app.config['LEADERBOARD_MAX_LIMIT'])
    offset = params['offset']

    rows = leaderboard_rows(params['period'], limit, offset)

    # Referral codes only; wallets stay private
    items = [{
        'rank': offset + position,
        'referral_code': row.referral_code,
        'tier_name': row.name,
        'tier_color': row.color,
        'tier_icon': row.icon,
        'total_sales_usd': float(row.total_sales_usd),
        'total_commission_usd': float(row.total_commission_usd),
        'sellers': row.sellers,
        'last_sale': row.last_sale.isoformat() if row.last_sale else None
    } for position, row in enumerate(rows, start=1)]

    return jsonify({
        'period': params['period'],
        'limit': limit,
        'offset': offset,
        'items': items
    }), 200
