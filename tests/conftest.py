"""
Shared fixtures for the API tests.

Every test gets a fresh in-memory database with the broker tiers seeded,
an active application context and a test client.
"""

import pytest

from luxbroker import create_app, db
from luxbroker.models import Broker, Seller

BROKER_WALLET = 'rHb9CJAWyB4rj91VRWn96DkukG4bwdtyTh'
OTHER_BROKER_WALLET = 'rPT1Sjq2YGrBMTttX4GZHjKu9dyfzbpAYe'
SELLER_WALLET = 'rN7n7otQDd6FczFgLdSqtcsAUxDkw6fzRH'
OTHER_SELLER_WALLET = 'rLHzPsX6oXkzU2qL12kHCH8G8cnZv1rBJh'
THIRD_SELLER_WALLET = 'rEb8TK3gBgk5auZkwc6sHnwrGVJH8DuaLh'
UNKNOWN_WALLET = 'rGWrZyQqhTp9Xu7G5Pkayo7bXjH4k4QYpf'


@pytest.fixture
def app():
    app = create_app('luxbroker.config.TestConfig')
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_broker(app):
    """Factory for brokers with a known referral code."""
    def _make(wallet=BROKER_WALLET, code='LUXALPHA', **kwargs):
        kwargs.setdefault('tier_id', 1)
        broker = Broker(wallet_address=wallet, referral_code=code, **kwargs)
        db.session.add(broker)
        db.session.commit()
        return broker
    return _make


@pytest.fixture
def make_seller(app):
    """Factory for sellers, optionally already attributed to a broker."""
    def _make(wallet=SELLER_WALLET, broker=None, locked_until=None):
        seller = Seller(
            wallet_address=wallet,
            referred_by_broker_id=broker.id if broker else None,
            referral_locked_until=locked_until
        )
        db.session.add(seller)
        db.session.commit()
        return seller
    return _make
