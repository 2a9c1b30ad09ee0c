from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from luxbroker.utils.fees import FeeQuote, quote_fees, to_money

ZERO = Decimal('0.00')


@dataclass
class CommissionBreakdown:
    quote: FeeQuote
    commission_rate: Decimal
    commission_usd: Decimal
    broker_id: object = None

    @property
    def platform_fee_usd(self):
        return self.quote.platform_fee_usd

    @property
    def payable(self):
        return self.broker_id is not None and self.commission_usd > 0


class CommissionCalculator:
    """Broker commission as a share of the platform fee, never of the gross sale."""

    def __init__(self, commission_rate):
        try:
            rate = Decimal(str(commission_rate))
        except (InvalidOperation, ValueError):
            raise ValueError(f'Invalid broker commission rate: {commission_rate!r}')
        if not rate.is_finite() or rate < 0 or rate > 1:
            raise ValueError(f'Broker commission rate must be between 0 and 1, got {rate}')
        self.commission_rate = rate

    @classmethod
    def from_config(cls, config):
        return cls(config['BROKER_COMMISSION_RATE'])

    def commission_for(self, platform_fee, broker_id=None):
        if broker_id is None:
            return ZERO
        return to_money(Decimal(platform_fee) * self.commission_rate)

    def calculate(self, category, price_usd, pay_method, auction=False, broker_id=None):
        quote = quote_fees(category, price_usd, pay_method, auction)
        return CommissionBreakdown(
            quote=quote,
            commission_rate=self.commission_rate,
            commission_usd=self.commission_for(quote.platform_fee_usd, broker_id),
            broker_id=broker_id,
        )
