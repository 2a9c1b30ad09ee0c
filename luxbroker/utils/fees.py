"""Platform fee quoting.

The effective fee rate is composed multiplicatively in a fixed order:
category base rate, then the payment-method adjustment, then the auction
premium. Unknown categories and payment methods fall back to explicit
``DEFAULT`` / ``OTHER`` arms instead of raising.
"""

import math
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import List, Optional

from luxbroker.errors import RequestValidationError

CENTS = Decimal('0.01')


class Category(str, Enum):
    JEWELRY = 'jewelry'
    CARS = 'cars'
    REAL_ESTATE = 'real_estate'
    ART = 'art'
    WATCHES = 'watches'
    DEFAULT = 'default'

    @classmethod
    def parse(cls, value) -> 'Category':
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return cls.DEFAULT


class PayMethod(str, Enum):
    CRYPTO = 'crypto'
    FIAT = 'fiat'
    OTHER = 'other'

    @classmethod
    def parse(cls, value) -> 'PayMethod':
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return cls.OTHER


CATEGORY_RATES = {
    Category.JEWELRY: Decimal('0.08'),
    Category.CARS: Decimal('0.06'),
    Category.REAL_ESTATE: Decimal('0.04'),
    Category.ART: Decimal('0.07'),
    Category.WATCHES: Decimal('0.08'),
    Category.DEFAULT: Decimal('0.05'),
}

PAYMENT_ADJUSTMENTS = {
    PayMethod.CRYPTO: Decimal('0.90'),
    PayMethod.FIAT: Decimal('1.10'),
    PayMethod.OTHER: Decimal('1'),
}

AUCTION_MULTIPLIER = Decimal('1.20')

# Upper bound on the composed rate; the table above never reaches it
MAX_FEE_RATE = Decimal('1')

# Money columns are Numeric(15, 2): at most 13 integer digits
MAX_PRICE_USD = Decimal('9999999999999.99')


@dataclass
class FeeQuote:
    category: Category
    pay_method: PayMethod
    auction: bool
    price_usd: Decimal
    base_rate: Decimal
    fee_rate: Decimal
    platform_fee_usd: Decimal
    buyer_fee_usd: Decimal
    seller_fee_usd: Decimal
    notes: List[str] = field(default_factory=list)

    def to_dict(self):
        return {
            'category': self.category.value,
            'payMethod': self.pay_method.value,
            'auction': self.auction,
            'priceUSD': float(self.price_usd),
            'baseRate': float(self.base_rate),
            'feeRate': float(self.fee_rate),
            'platformFeeUSD': float(self.platform_fee_usd),
            'buyerFeeUSD': float(self.buyer_fee_usd),
            'sellerFeeUSD': float(self.seller_fee_usd),
            'notes': list(self.notes),
        }


def to_money(value) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def parse_price(value) -> Decimal:
    """Coerce a request value to a positive, finite Decimal price."""
    if value is None or isinstance(value, bool):
        raise RequestValidationError('Sale amount must be a positive number')
    if isinstance(value, float) and not math.isfinite(value):
        raise RequestValidationError('Sale amount must be a positive number')
    try:
        price = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise RequestValidationError('Sale amount must be a positive number')
    if not price.is_finite() or price <= 0:
        raise RequestValidationError('Sale amount must be a positive number')
    if price > MAX_PRICE_USD:
        raise RequestValidationError('Sale amount exceeds the maximum supported value',
                                     {'max': str(MAX_PRICE_USD)})
    return price


def effective_rate(category: Category, pay_method: PayMethod, auction: bool) -> Decimal:
    rate = CATEGORY_RATES[category] * PAYMENT_ADJUSTMENTS[pay_method]
    if auction:
        rate = rate * AUCTION_MULTIPLIER
    return min(rate, MAX_FEE_RATE)


def quote_fees(category, price_usd, pay_method, auction: Optional[bool] = False) -> FeeQuote:
    """Quote the platform fee for a sale.

    The fee before the auction premium is split evenly between buyer and
    seller; the auction premium is charged to the buyer alone.
    """
    price = parse_price(price_usd)
    resolved_category = Category.parse(category)
    resolved_method = PayMethod.parse(pay_method)
    auction = bool(auction)
    notes = []

    base_rate = CATEGORY_RATES[resolved_category]
    if (resolved_category is Category.DEFAULT and isinstance(category, str)
            and not isinstance(category, Category) and category.strip().lower() != 'default'):
        notes.append(f"Unrecognised category '{category}'; default rate applied.")
    notes.append(f"{resolved_category.value.replace('_', ' ').title()} base rate "
                 f"({base_rate * 100:.2f}%).")

    if resolved_method is PayMethod.CRYPTO:
        notes.append('Crypto discount applied (-10% of rate).')
    elif resolved_method is PayMethod.FIAT:
        notes.append('Fiat rail surcharge applied (+10% of rate).')

    pre_auction_rate = min(base_rate * PAYMENT_ADJUSTMENTS[resolved_method], MAX_FEE_RATE)
    fee_rate = effective_rate(resolved_category, resolved_method, auction)
    if auction:
        notes.append('Auction premium applied (+20% of rate, charged to buyer).')

    platform_fee = to_money(price * fee_rate)
    seller_fee = to_money(price * pre_auction_rate / 2)
    buyer_fee = platform_fee - seller_fee

    return FeeQuote(
        category=resolved_category,
        pay_method=resolved_method,
        auction=auction,
        price_usd=price,
        base_rate=base_rate,
        fee_rate=fee_rate,
        platform_fee_usd=platform_fee,
        buyer_fee_usd=buyer_fee,
        seller_fee_usd=seller_fee,
        notes=notes,
    )
