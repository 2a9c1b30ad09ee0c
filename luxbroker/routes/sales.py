from flask import Blueprint, request, jsonify, current_app

from luxbroker.schemas import sale_record_schema, fee_quote_schema
from luxbroker.utils.commission_calculator import CommissionCalculator
from luxbroker.utils.fees import quote_fees
from luxbroker.utils.sale_recorder import SaleRecorder, SaleRequest

sales_bp = Blueprint('sales', __name__)


def build_sale_recorder():
    return SaleRecorder(
        CommissionCalculator.from_config(current_app.config),
        require_transaction_hash=current_app.config.get('REQUIRE_TRANSACTION_HASH', True)
    )


# ------------------ RECORD SALE ------------------
@sales_bp.route('/sales/record', methods=['POST'])
def record_sale():
    data = sale_record_schema.load(request.get_json(silent=True) or {})

    recording = build_sale_recorder().record(SaleRequest(
        seller_wallet=data['sellerWallet'],
        sale_amount_usd=data['saleAmountUSD'],
        category=data['category'],
        pay_method=data['payMethod'],
        auction=data['auction'],
        transaction_hash=data['transactionHash'],
        broker_referral_code=data['brokerReferralCode']
    ))

    return jsonify(recording.to_dict()), 200


# ------------------ FEE QUOTE ------------------
@sales_bp.route('/fees/quote', methods=['POST'])
def fee_quote():
    data = fee_quote_schema.load(request.get_json(silent=True) or {})
    quote = quote_fees(data['category'], data['priceUSD'], data['payMethod'], data['auction'])
    return jsonify(quote.to_dict()), 200
