import re

from luxbroker.errors import RequestValidationError

# Classic XRPL address: leading "r" followed by base58 characters (no 0, O, I, l)
XRPL_ADDRESS_RE = re.compile(r'^r[1-9A-HJ-NP-Za-km-z]{24,34}$')
REFERRAL_CODE_RE = re.compile(r'^[A-Za-z0-9]{3,20}$')


def is_valid_wallet_address(address):
    return isinstance(address, str) and bool(XRPL_ADDRESS_RE.match(address))


def require_wallet_address(address, field_name='wallet_address'):
    if not address:
        raise RequestValidationError(f'{field_name} is required')
    if not is_valid_wallet_address(address):
        raise RequestValidationError('Invalid XRPL wallet address format')
    return address


def is_valid_referral_code(code):
    return isinstance(code, str) and bool(REFERRAL_CODE_RE.match(code))
