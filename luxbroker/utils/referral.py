"""Referral cookies and broker attribution."""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional
from urllib.parse import quote, unquote

from dateutil.relativedelta import relativedelta
from werkzeug.http import parse_cookie

from luxbroker import db
from luxbroker.models import Broker, ReferralClick, Seller
from luxbroker.utils.validators import is_valid_referral_code

logger = logging.getLogger(__name__)

ATTRIBUTION_COOKIE = 'lux_ref'
SHORT_COOKIE = 'lux_ref_7'
ATTRIBUTION_COOKIE_DAYS = 90
SHORT_COOKIE_DAYS = 7

# Unambiguous alphabet: no 0/O, 1/I/L
REFERRAL_CODE_ALPHABET = '23456789ABCDEFGHJKMNPQRSTUVWXYZ'
REFERRAL_CODE_LENGTH = 8


class AttributionOutcome(str, Enum):
    ATTRIBUTED = 'attributed'
    LOCKED = 'locked'
    UNATTRIBUTED_NO_CODE = 'unattributed_no_code'
    UNATTRIBUTED_INVALID_CODE = 'unattributed_invalid_code'


@dataclass
class AttributionResult:
    outcome: AttributionOutcome
    broker: Optional[Broker] = None
    referral_code: Optional[str] = None

    @property
    def attributed(self):
        return self.outcome is AttributionOutcome.ATTRIBUTED


def referral_code_from_cookies(cookie_header, names=(ATTRIBUTION_COOKIE, SHORT_COOKIE)):
    """Pull the first referral code present in a raw Cookie header."""
    if not cookie_header:
        return None
    cookies = parse_cookie(cookie_header)
    for name in names:
        value = cookies.get(name)
        if value:
            code = unquote(value).strip()
            if code:
                return code
    return None


def set_referral_cookies(response, referral_code):
    """Store the referral code in the 90-day and 7-day cookies."""
    value = quote(referral_code, safe='')
    response.set_cookie(ATTRIBUTION_COOKIE, value, max_age=ATTRIBUTION_COOKIE_DAYS * 24 * 3600,
                        path='/', samesite='Lax')
    response.set_cookie(SHORT_COOKIE, value, max_age=SHORT_COOKIE_DAYS * 24 * 3600,
                        path='/', samesite='Lax')
    return response


def generate_referral_code(length=REFERRAL_CODE_LENGTH):
    return ''.join(secrets.choice(REFERRAL_CODE_ALPHABET) for _ in range(length))


def find_broker_by_code(referral_code):
    if not referral_code:
        return None
    code = referral_code.strip()
    if not is_valid_referral_code(code):
        return None
    return Broker.query.filter_by(referral_code=code).first()


def attribute_seller(seller: Seller, referral_code, now=None, lock_days=ATTRIBUTION_COOKIE_DAYS):
    """Link a seller to the broker behind ``referral_code``.

    Mutates the seller in the current session without committing. An
    existing, still-locked attribution always wins; unknown codes and
    self-referrals leave the seller unattributed instead of raising.
    """
    now = now or datetime.utcnow()

    if seller.attribution_locked(now):
        return AttributionResult(AttributionOutcome.LOCKED, broker=seller.referring_broker)

    if not referral_code:
        return AttributionResult(AttributionOutcome.UNATTRIBUTED_NO_CODE)

    broker = find_broker_by_code(referral_code)
    if broker is None or broker.wallet_address == seller.wallet_address:
        logger.info('Referral code %r did not resolve for seller %s', referral_code, seller.wallet_address)
        return AttributionResult(AttributionOutcome.UNATTRIBUTED_INVALID_CODE, referral_code=referral_code)

    seller.referred_by_broker_id = broker.id
    seller.referral_locked_until = now + relativedelta(days=lock_days)
    return AttributionResult(AttributionOutcome.ATTRIBUTED, broker=broker, referral_code=broker.referral_code)


def resolve_sale_broker(seller: Seller, override_code=None):
    """Pick the broker credited with one sale.

    Returns ``(broker_id, source)`` where source is ``'override'``,
    ``'seller'`` or ``None``. The override never touches the seller row.
    """
    if override_code:
        broker = find_broker_by_code(override_code)
        if broker is not None:
            return broker.id, 'override'
        logger.info('Override referral code %r did not resolve; using stored attribution', override_code)

    if seller.referred_by_broker_id:
        return seller.referred_by_broker_id, 'seller'
    return None, None


def record_click(broker, referral_code, ip_address=None, user_agent=None, referrer=None):
    """Append one row to the click log; errors propagate to the caller."""
    click = ReferralClick(
        referral_code=referral_code,
        broker_id=broker.id,
        ip_address=ip_address,
        user_agent=user_agent or '',
        referrer=referrer or ''
    )
    db.session.add(click)
    db.session.commit()
    return click
