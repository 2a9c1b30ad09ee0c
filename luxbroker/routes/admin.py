from datetime import datetime

from flask import Blueprint, request, jsonify, current_app
from sqlalchemy.exc import SQLAlchemyError

from luxbroker import db
from luxbroker.errors import ConflictError, NotFoundError, PersistenceError
from luxbroker.models import Commission
from luxbroker.schemas import mark_paid_schema
from luxbroker.utils.auth import admin_required

admin_bp = Blueprint('admin', __name__)


# ------------------ COMMISSION PAYOUT ------------------
@admin_bp.route('/commissions/<commission_id>/mark-paid', methods=['POST'])
@admin_required
def mark_commission_paid(commission_id):
    """Record the on-ledger payout of a pending commission."""
    data = mark_paid_schema.load(request.get_json(silent=True) or {})

    commission = db.session.get(Commission, commission_id)
    if commission is None:
        raise NotFoundError('Commission not found')
    if commission.status != 'pending':
        raise ConflictError('Commission already paid', {'status': commission.status})

    commission.status = 'paid'
    commission.paid_at = datetime.utcnow()
    commission.payout_transaction_hash = data['transactionHash']

    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error('Failed to mark commission %s paid: %s', commission_id, e)
        raise PersistenceError('Failed to update commission')

    current_app.logger.info('Commission %s marked paid', commission_id)
    return jsonify({'success': True, 'commission': commission.to_dict()}), 200
