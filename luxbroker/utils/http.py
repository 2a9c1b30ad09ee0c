from flask import request

from luxbroker.errors import RequestValidationError

WALLET_HEADER = 'X-Wallet-Address'


def client_ip():
    forwarded = request.headers.get('X-Forwarded-For', '')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.headers.get('X-Real-IP') or request.remote_addr or 'unknown'


def wallet_from_header():
    wallet = (request.headers.get(WALLET_HEADER) or '').strip()
    if not wallet:
        raise RequestValidationError('Missing wallet address header')
    return wallet
