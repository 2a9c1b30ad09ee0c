"""Sale recording.

One call walks ``validating -> attributing -> computing_fees -> persisting ->
updating_stats -> done``. Any mandatory step that fails moves the recorder to
``failed`` and raises; the stats step is best-effort and only logs.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from luxbroker import db
from luxbroker.errors import (
    DuplicateSaleError, NotFoundError, PersistenceError, RequestValidationError
)
from luxbroker.models import Commission, Seller
from luxbroker.utils import broker_stats
from luxbroker.utils.commission_calculator import CommissionBreakdown, CommissionCalculator
from luxbroker.utils.fees import parse_price
from luxbroker.utils.referral import resolve_sale_broker
from luxbroker.utils.validators import require_wallet_address

logger = logging.getLogger(__name__)


class SaleState(str, Enum):
    VALIDATING = 'validating'
    ATTRIBUTING = 'attributing'
    COMPUTING_FEES = 'computing_fees'
    PERSISTING = 'persisting'
    UPDATING_STATS = 'updating_stats'
    DONE = 'done'
    FAILED = 'failed'


@dataclass
class SaleRequest:
    seller_wallet: str
    sale_amount_usd: object
    category: Optional[str] = 'default'
    pay_method: Optional[str] = 'crypto'
    auction: bool = False
    transaction_hash: Optional[str] = None
    broker_referral_code: Optional[str] = None


@dataclass
class SaleRecording:
    seller: Seller
    breakdown: CommissionBreakdown
    broker_id: Optional[str] = None
    attribution_source: Optional[str] = None
    commission: Optional[Commission] = None
    stats_updated: bool = False
    history: List[SaleState] = field(default_factory=list)

    @property
    def commission_usd(self):
        return self.breakdown.commission_usd if self.commission is not None else Decimal('0.00')

    def to_dict(self):
        quote = self.breakdown.quote
        return {
            'success': True,
            'sellerId': self.seller.id,
            'brokerId': self.broker_id,
            'attribution': self.attribution_source,
            'saleAmountUSD': float(quote.price_usd),
            'commission': {
                'id': self.commission.id if self.commission is not None else None,
                'amount': float(self.commission_usd),
                'platformFee': float(quote.platform_fee_usd),
                'rate': float(quote.fee_rate),
                'brokerRate': float(self.breakdown.commission_rate),
            },
            'feeBreakdown': quote.to_dict(),
            'statsUpdated': self.stats_updated,
        }


class SaleRecorder:

    def __init__(self, calculator: CommissionCalculator, require_transaction_hash=True):
        self.calculator = calculator
        self.require_transaction_hash = require_transaction_hash
        self.state = None
        self.history = []

    def _enter(self, state):
        self.state = state
        self.history.append(state)
        logger.debug('Sale recorder -> %s', state.value)

    def record(self, sale: SaleRequest) -> SaleRecording:
        self.history = []
        try:
            return self._run(sale)
        except Exception:
            self._enter(SaleState.FAILED)
            raise

    def _run(self, sale):
        self._enter(SaleState.VALIDATING)
        price = self._validate(sale)

        self._enter(SaleState.ATTRIBUTING)
        seller = Seller.query.filter_by(wallet_address=sale.seller_wallet).first()
        if seller is None:
            raise NotFoundError('Seller not found')
        broker_id, source = resolve_sale_broker(seller, sale.broker_referral_code)

        self._enter(SaleState.COMPUTING_FEES)
        breakdown = self.calculator.calculate(
            sale.category, price, sale.pay_method, sale.auction, broker_id=broker_id
        )

        recording = SaleRecording(
            seller=seller,
            breakdown=breakdown,
            broker_id=broker_id,
            attribution_source=source,
            history=self.history
        )

        self._enter(SaleState.PERSISTING)
        if breakdown.payable:
            recording.commission = self._persist(seller, breakdown, sale.transaction_hash)

            self._enter(SaleState.UPDATING_STATS)
            recording.stats_updated = self._update_stats(recording.commission)

        self._enter(SaleState.DONE)
        return recording

    def _validate(self, sale):
        if not sale.seller_wallet or not isinstance(sale.seller_wallet, str):
            raise RequestValidationError('Missing sellerWallet or saleAmountUSD')
        require_wallet_address(sale.seller_wallet, 'sellerWallet')
        if sale.sale_amount_usd is None or sale.sale_amount_usd == '':
            raise RequestValidationError('Missing sellerWallet or saleAmountUSD')
        price = parse_price(sale.sale_amount_usd)
        if self.require_transaction_hash and not sale.transaction_hash:
            raise RequestValidationError('transactionHash is required to record a sale')
        return price

    def _persist(self, seller, breakdown, transaction_hash):
        if transaction_hash and Commission.query.filter_by(transaction_hash=transaction_hash).first():
            raise DuplicateSaleError(f'Sale {transaction_hash} has already been recorded')

        quote = breakdown.quote
        commission = Commission(
            broker_id=breakdown.broker_id,
            seller_id=seller.id,
            sale_amount_usd=quote.price_usd,
            commission_usd=breakdown.commission_usd,
            platform_fee_usd=quote.platform_fee_usd,
            fee_rate=quote.fee_rate,
            commission_rate=breakdown.commission_rate,
            category=quote.category.value,
            pay_method=quote.pay_method.value,
            auction=quote.auction,
            transaction_hash=transaction_hash or None,
            status='pending'
        )
        try:
            db.session.add(commission)
            db.session.commit()
        except IntegrityError as e:
            db.session.rollback()
            if transaction_hash:
                raise DuplicateSaleError(f'Sale {transaction_hash} has already been recorded')
            logger.error('Commission insert rejected for seller %s: %s', seller.id, e)
            raise PersistenceError('Failed to record commission')
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error('Commission insert failed for seller %s: %s', seller.id, e)
            raise PersistenceError('Failed to record commission')

        logger.info('Recorded commission %s: $%s to broker %s', commission.id,
                    commission.commission_usd, commission.broker_id)
        return commission

    def _update_stats(self, commission):
        try:
            broker_stats.apply_sale(commission.broker_id, commission.commission_usd, commission.sale_amount_usd)
            db.session.commit()
            return True
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.warning('Broker stats update failed for broker %s (commission %s kept): %s',
                           commission.broker_id, commission.id, e)
            return False
