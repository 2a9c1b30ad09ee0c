"""Tests for platform fee quoting."""

from decimal import Decimal

import pytest

from luxbroker.errors import RequestValidationError
from luxbroker.utils.fees import (
    Category, PayMethod, effective_rate, parse_price, quote_fees
)


class TestEffectiveRate:
    """Rate composition: category, then payment method, then auction."""

    def test_cars_crypto(self):
        assert effective_rate(Category.CARS, PayMethod.CRYPTO, False) == Decimal('0.054')

    def test_auction_premium_multiplies(self):
        assert effective_rate(Category.CARS, PayMethod.CRYPTO, True) == Decimal('0.0648')

    @pytest.mark.parametrize('category,expected', [
        (Category.JEWELRY, Decimal('0.08')),
        (Category.CARS, Decimal('0.06')),
        (Category.REAL_ESTATE, Decimal('0.04')),
        (Category.ART, Decimal('0.07')),
        (Category.WATCHES, Decimal('0.08')),
        (Category.DEFAULT, Decimal('0.05')),
    ])
    def test_category_base_rates(self, category, expected):
        assert effective_rate(category, PayMethod.OTHER, False) == expected
        assert quote_fees(category.value, 1000, 'other').platform_fee_usd == expected * 1000

    def test_other_payment_method_is_neutral(self):
        assert effective_rate(Category.ART, PayMethod.OTHER, False) == Decimal('0.07')

    @pytest.mark.parametrize('category', list(Category))
    @pytest.mark.parametrize('pay_method', list(PayMethod))
    @pytest.mark.parametrize('auction', [False, True])
    def test_rate_is_bounded(self, category, pay_method, auction):
        rate = effective_rate(category, pay_method, auction)
        assert Decimal('0') < rate <= Decimal('1')


class TestQuoteFees:

    def test_cars_crypto_quote(self):
        quote = quote_fees('cars', 250000, 'crypto', auction=False)

        assert quote.fee_rate == Decimal('0.054')
        assert quote.platform_fee_usd == Decimal('13500.00')
        assert quote.seller_fee_usd == Decimal('6750.00')
        assert quote.buyer_fee_usd == Decimal('6750.00')

    def test_auction_premium_charged_to_buyer(self):
        quote = quote_fees('cars', 250000, 'crypto', auction=True)

        assert quote.platform_fee_usd == Decimal('16200.00')
        assert quote.seller_fee_usd == Decimal('6750.00')
        assert quote.buyer_fee_usd == Decimal('9450.00')
        assert any('Auction' in note for note in quote.notes)

    def test_unknown_category_falls_back_to_default(self):
        quote = quote_fees('antiques', 1000, 'fiat')

        assert quote.category is Category.DEFAULT
        assert quote.fee_rate == Decimal('0.055')
        assert quote.platform_fee_usd == Decimal('55.00')
        assert "Unrecognised category 'antiques'" in quote.notes[0]

    def test_unknown_pay_method_uses_neutral_adjustment(self):
        quote = quote_fees('jewelry', 1000, 'barter')

        assert quote.pay_method is PayMethod.OTHER
        assert quote.fee_rate == Decimal('0.08')

    def test_category_is_case_insensitive(self):
        assert quote_fees('Real_Estate', 100000, 'CRYPTO').category is Category.REAL_ESTATE

    def test_buyer_and_seller_shares_sum_to_platform_fee(self):
        quote = quote_fees('watches', '1234.57', 'fiat', auction=True)
        assert quote.buyer_fee_usd + quote.seller_fee_usd == quote.platform_fee_usd

    def test_fee_is_rounded_to_cents(self):
        quote = quote_fees('default', '0.10', 'crypto')
        assert quote.platform_fee_usd == Decimal('0.00')
        assert quote.platform_fee_usd.as_tuple().exponent == -2

    def test_to_dict_uses_api_field_names(self):
        body = quote_fees('cars', 250000, 'crypto').to_dict()

        assert body['category'] == 'cars'
        assert body['payMethod'] == 'crypto'
        assert body['feeRate'] == pytest.approx(0.054)
        assert body['platformFeeUSD'] == 13500.0


class TestParsePrice:

    @pytest.mark.parametrize('value', [0, -5, '-1', 'abc', '', None, True, float('nan'), float('inf'), 'Infinity'])
    def test_rejects_non_positive_or_non_numeric(self, value):
        with pytest.raises(RequestValidationError) as exc_info:
            parse_price(value)
        assert exc_info.value.status_code == 400

    @pytest.mark.parametrize('value,expected', [
        (100, Decimal('100')),
        ('99.95', Decimal('99.95')),
        (' 12 ', Decimal('12')),
        (Decimal('5.5'), Decimal('5.5')),
    ])
    def test_accepts_positive_numbers(self, value, expected):
        assert parse_price(value) == expected

    @pytest.mark.parametrize('value', ['1e30', '10000000000000', 10 ** 20])
    def test_rejects_prices_too_large_to_store(self, value):
        with pytest.raises(RequestValidationError) as exc_info:
            parse_price(value)
        assert 'maximum' in exc_info.value.message

    def test_accepts_largest_storable_price(self):
        quote = quote_fees('watches', '9999999999999.99', 'fiat', auction=True)
        assert quote.platform_fee_usd > 0

    def test_quote_rejects_zero_price(self):
        with pytest.raises(RequestValidationError):
            quote_fees('cars', 0, 'crypto')
