from flask import Blueprint, request, jsonify
from sqlalchemy import func

from luxbroker import db
from luxbroker.errors import NotFoundError
from luxbroker.models import Broker, BrokerNotification, Commission
from luxbroker.schemas import wallet_registration_schema
from luxbroker.utils.http import wallet_from_header
from luxbroker.utils.registration import register_broker

broker_bp = Blueprint('broker', __name__)


def get_broker_by_wallet(wallet):
    broker = Broker.query.filter_by(wallet_address=wallet).first()
    if not broker:
        raise NotFoundError('Broker not found')
    return broker


# ------------------ REGISTER BROKER ------------------
@broker_bp.route('/register', methods=['POST'])
def register():
    data = wallet_registration_schema.load(request.get_json(silent=True) or {})
    broker, created = register_broker(data['wallet_address'])

    return jsonify({
        'success': True,
        'created': created,
        'broker': broker.to_dict(),
        'message': 'Broker registered successfully' if created else 'Broker already registered'
    }), 201 if created else 200


# ------------------ BROKER PROFILE ------------------
@broker_bp.route('/me', methods=['GET'])
def me():
    broker = get_broker_by_wallet(wallet_from_header())

    total_sales, total_commission = db.session.query(
        func.coalesce(func.sum(Commission.sale_amount_usd), 0),
        func.coalesce(func.sum(Commission.commission_usd), 0)
    ).filter(Commission.broker_id == broker.id).one()

    return jsonify({
        'broker': broker.to_dict(),
        'stats': {
            'total_sales_usd': float(total_sales),
            'total_commission_usd': float(total_commission),
            'active_sellers': broker.referred_sellers_count or 0
        }
    }), 200


# ------------------ NOTIFICATIONS ------------------
@broker_bp.route('/notifications', methods=['GET'])
def notifications():
    broker = get_broker_by_wallet(wallet_from_header())

    query = BrokerNotification.query.filter_by(broker_id=broker.id)
    if request.args.get('unread', '').lower() in ('1', 'true', 'yes'):
        query = query.filter_by(read=False)
    items = query.order_by(BrokerNotification.sent_at.desc()).limit(50).all()

    return jsonify({'items': [n.to_dict() for n in items]}), 200
