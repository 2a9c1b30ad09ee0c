from marshmallow import EXCLUDE, fields, pre_load, validate

from luxbroker import ma


class BaseSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE


class WalletRegistrationSchema(BaseSchema):
    wallet_address = fields.String(required=True)

    @pre_load
    def accept_camel_case(self, data, **kwargs):
        if isinstance(data, dict) and 'wallet_address' not in data and 'walletAddress' in data:
            data = dict(data, wallet_address=data['walletAddress'])
        return data


class SaleRecordSchema(BaseSchema):
    sellerWallet = fields.String(required=True)
    # Parsed to Decimal by the fee quoter so every bad amount gets the same error
    saleAmountUSD = fields.Raw(required=True)
    category = fields.String(load_default='default', allow_none=True)
    payMethod = fields.String(load_default='crypto', allow_none=True)
    auction = fields.Boolean(load_default=False)
    transactionHash = fields.String(load_default=None, allow_none=True, validate=validate.Length(max=128))
    brokerReferralCode = fields.String(load_default=None, allow_none=True)


class FeeQuoteSchema(BaseSchema):
    priceUSD = fields.Raw(required=True)
    category = fields.String(load_default='default', allow_none=True)
    payMethod = fields.String(load_default='crypto', allow_none=True)
    auction = fields.Boolean(load_default=False)


class LeaderboardQuerySchema(BaseSchema):
    period = fields.String(load_default='all', validate=validate.OneOf(['all', 'week', 'month']))
    limit = fields.Integer(load_default=20, validate=validate.Range(min=1))
    offset = fields.Integer(load_default=0, validate=validate.Range(min=0))

    @pre_load
    def lowercase_period(self, data, **kwargs):
        if 'period' in data and isinstance(data['period'], str):
            data = dict(data, period=data['period'].lower())
        return data


class TrackReferralSchema(BaseSchema):
    referralCode = fields.String(required=True, validate=validate.Length(min=1))
    userAgent = fields.String(load_default=None, allow_none=True)


class MarkPaidSchema(BaseSchema):
    transactionHash = fields.String(load_default=None, allow_none=True, validate=validate.Length(max=128))


wallet_registration_schema = WalletRegistrationSchema()
sale_record_schema = SaleRecordSchema()
fee_quote_schema = FeeQuoteSchema()
leaderboard_query_schema = LeaderboardQuerySchema()
track_referral_schema = TrackReferralSchema()
mark_paid_schema = MarkPaidSchema()
