import base64

from flask import Blueprint, request, jsonify, current_app, make_response
from sqlalchemy.exc import SQLAlchemyError

from luxbroker import db
from luxbroker.errors import NotFoundError, PersistenceError
from luxbroker.schemas import track_referral_schema
from luxbroker.utils.http import client_ip
from luxbroker.utils.referral import find_broker_by_code, record_click, set_referral_cookies

referral_bp = Blueprint('referral', __name__)

# 1x1 transparent GIF
PIXEL = base64.b64decode('R0lGODlhAQABAIAAAAAAAP///yH5BAEAAAAALAAAAAABAAEAAAIBRAA7')


def pixel_response():
    response = make_response(PIXEL)
    response.headers['Content-Type'] = 'image/gif'
    response.headers['Cache-Control'] = 'no-cache, no-store, must-revalidate'
    return response


# ------------------ TRACKING PIXEL ------------------
@referral_bp.route('/track', methods=['GET'])
def track_pixel():
    """Always answers with the pixel; tracking problems are only logged."""
    referral_code = (request.args.get('ref') or '').strip()
    response = pixel_response()
    if not referral_code:
        return response

    try:
        broker = find_broker_by_code(referral_code)
        if broker is None:
            current_app.logger.info('Tracking pixel hit with unknown referral code %r', referral_code)
            return response
        record_click(
            broker,
            referral_code,
            ip_address=client_ip(),
            user_agent=request.headers.get('User-Agent', ''),
            referrer=request.headers.get('Referer', '')
        )
        set_referral_cookies(response, broker.referral_code)
    except Exception:
        db.session.rollback()
        current_app.logger.exception('Referral click logging failed for %r', referral_code)
    return response


# ------------------ TRACK CLICK (JSON) ------------------
@referral_bp.route('/track', methods=['POST'])
def track_click():
    data = track_referral_schema.load(request.get_json(silent=True) or {})
    referral_code = data['referralCode'].strip()

    broker = find_broker_by_code(referral_code)
    if broker is None:
        raise NotFoundError('Invalid referral code')

    try:
        record_click(
            broker,
            referral_code,
            ip_address=client_ip(),
            user_agent=data['userAgent'] or request.headers.get('User-Agent', ''),
            referrer=request.headers.get('Referer', '')
        )
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error('Failed to insert referral click for %r: %s', referral_code, e)
        raise PersistenceError('Failed to track referral')

    response = jsonify({'success': True, 'message': 'Referral tracked successfully'})
    return set_referral_cookies(response, broker.referral_code), 200
