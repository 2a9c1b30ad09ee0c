from flask import Blueprint, request, jsonify, current_app

from luxbroker.schemas import wallet_registration_schema
from luxbroker.utils.http import client_ip
from luxbroker.utils.referral import referral_code_from_cookies
from luxbroker.utils.registration import register_seller

seller_bp = Blueprint('seller', __name__)


# ------------------ REGISTER SELLER ------------------
@seller_bp.route('/register', methods=['POST'])
def register():
    data = wallet_registration_schema.load(request.get_json(silent=True) or {})

    referral_code = referral_code_from_cookies(
        request.headers.get('Cookie'),
        names=(current_app.config['REFERRAL_COOKIE_NAME'], current_app.config['REFERRAL_SHORT_COOKIE_NAME'])
    )

    seller, created, attribution = register_seller(
        data['wallet_address'],
        referral_code=referral_code,
        ip_address=client_ip(),
        lock_days=current_app.config['REFERRAL_LOCK_DAYS']
    )

    if not created:
        message = 'Seller already registered'
    elif attribution.attributed:
        message = f'Successfully registered with referral from {attribution.referral_code}'
    else:
        message = 'Successfully registered as seller'

    current_app.logger.info('Seller %s registration: %s', seller.wallet_address, attribution.outcome.value)
    return jsonify({
        'success': True,
        'seller': seller.to_dict(),
        'referredBy': attribution.broker.referral_code if attribution.broker else None,
        'attribution': attribution.outcome.value,
        'created': created,
        'message': message
    }), 201 if created else 200
