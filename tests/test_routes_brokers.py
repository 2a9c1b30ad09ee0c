"""Tests for broker profile, notifications, leaderboard and admin routes."""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from flask_jwt_extended import create_access_token

from luxbroker import db
from luxbroker.models import Broker, BrokerTier, Commission
from luxbroker.routes.leaderboard import period_start
from luxbroker.utils.broker_stats import check_tier_upgrade

from tests.conftest import (
    BROKER_WALLET, OTHER_BROKER_WALLET, OTHER_SELLER_WALLET, SELLER_WALLET, THIRD_SELLER_WALLET
)


def add_commission(broker, seller, sale, commission, created_at=None, tx=None):
    row = Commission(
        broker_id=broker.id,
        seller_id=seller.id,
        sale_amount_usd=Decimal(sale),
        commission_usd=Decimal(commission),
        platform_fee_usd=Decimal(commission) * 2,
        fee_rate=Decimal('0.05'),
        commission_rate=Decimal('0.30'),
        category='default',
        pay_method='crypto',
        transaction_hash=tx,
        created_at=created_at or datetime.utcnow()
    )
    db.session.add(row)
    db.session.commit()
    return row


def admin_headers(role='admin'):
    token = create_access_token(identity='ops', additional_claims={'role': role})
    return {'Authorization': f'Bearer {token}'}


class TestBrokerProfile:

    def test_me(self, client, make_broker, make_seller):
        broker = make_broker()
        seller = make_seller(broker=broker)
        add_commission(broker, seller, '1000', '15')
        add_commission(broker, seller, '2000', '30')

        response = client.get('/api/brokers/me', headers={'X-Wallet-Address': BROKER_WALLET})
        body = response.get_json()

        assert response.status_code == 200
        assert body['broker']['referral_code'] == 'LUXALPHA'
        assert body['stats']['total_sales_usd'] == 3000.0
        assert body['stats']['total_commission_usd'] == 45.0

    def test_me_requires_wallet_header(self, client):
        response = client.get('/api/brokers/me')

        assert response.status_code == 400
        assert response.get_json()['error'] == 'Missing wallet address header'

    def test_me_unknown_broker(self, client):
        response = client.get('/api/brokers/me', headers={'X-Wallet-Address': OTHER_BROKER_WALLET})
        assert response.status_code == 404

    def test_notifications_after_sale(self, client, make_broker, make_seller):
        broker = make_broker()
        make_seller(broker=broker)
        client.post('/api/sales/record', json={
            'sellerWallet': SELLER_WALLET, 'saleAmountUSD': 1000, 'transactionHash': 'TX1'
        })

        response = client.get('/api/brokers/notifications?unread=true',
                              headers={'X-Wallet-Address': BROKER_WALLET})
        items = response.get_json()['items']

        assert response.status_code == 200
        assert [item['type'] for item in items] == ['commission_earned']


class TestTierUpgrade:

    def test_upgrade_requires_both_thresholds(self, app, make_broker):
        broker = make_broker(referred_sellers_count=5, total_sales_volume=Decimal('9999'))
        assert check_tier_upgrade(broker.id) is None

        broker.total_sales_volume = Decimal('10000')
        db.session.commit()

        assert check_tier_upgrade(broker.id).name == 'Silver'

    def test_never_downgrades(self, app, make_broker):
        broker = make_broker(tier_id=3)
        assert check_tier_upgrade(broker.id) is None
        assert db.session.get(Broker, broker.id).tier_id == 3

    def test_tiers_seeded(self, app):
        names = [tier.name for tier in BrokerTier.query.order_by(BrokerTier.id)]
        assert names == ['Bronze', 'Silver', 'Gold', 'Diamond']


class TestLeaderboard:

    @pytest.fixture
    def populated(self, make_broker, make_seller):
        alpha = make_broker()
        bravo = make_broker(wallet=OTHER_BROKER_WALLET, code='LUXBRAVO')
        s1 = make_seller(broker=alpha)
        s2 = make_seller(wallet=OTHER_SELLER_WALLET, broker=alpha)
        s3 = make_seller(wallet=THIRD_SELLER_WALLET, broker=bravo)
        add_commission(alpha, s1, '1000', '15')
        add_commission(alpha, s2, '1000', '15')
        add_commission(bravo, s3, '5000', '75', created_at=datetime.utcnow() - timedelta(days=400))
        return alpha, bravo

    def test_all_time_ordering(self, client, populated):
        body = client.get('/api/leaderboard').get_json()

        assert body['period'] == 'all'
        assert [item['referral_code'] for item in body['items']] == ['LUXBRAVO', 'LUXALPHA']
        alpha = body['items'][1]
        assert alpha['sellers'] == 2
        assert alpha['total_commission_usd'] == 30.0
        assert alpha['tier_name'] == 'Bronze'
        assert 'wallet_address' not in alpha

    def test_month_excludes_old_sales(self, client, populated):
        body = client.get('/api/leaderboard?period=MONTH').get_json()
        assert [item['referral_code'] for item in body['items']] == ['LUXALPHA']

    def test_limit_and_offset(self, client, populated):
        body = client.get('/api/leaderboard?limit=1&offset=1').get_json()

        assert body['limit'] == 1
        assert [item['referral_code'] for item in body['items']] == ['LUXALPHA']
        assert body['items'][0]['rank'] == 2

    def test_limit_is_capped(self, client, populated):
        assert client.get('/api/leaderboard?limit=5000').get_json()['limit'] == 100

    @pytest.mark.parametrize('query', ['period=year', 'limit=0', 'offset=-1', 'limit=abc'])
    def test_invalid_query(self, client, query):
        assert client.get(f'/api/leaderboard?{query}').status_code == 400

    def test_period_start(self):
        wednesday = datetime(2026, 10, 14, 15, 30)

        assert period_start('week', wednesday) == datetime(2026, 10, 12)
        assert period_start('month', wednesday) == datetime(2026, 10, 1)
        assert period_start('all', wednesday) is None


class TestMarkCommissionPaid:

    @pytest.fixture
    def commission(self, make_broker, make_seller):
        broker = make_broker()
        seller = make_seller(broker=broker)
        return add_commission(broker, seller, '1000', '15')

    def test_admin_marks_paid(self, client, commission):
        response = client.post(f'/api/admin/commissions/{commission.id}/mark-paid',
                               json={'transactionHash': 'PAYOUT1'}, headers=admin_headers())
        body = response.get_json()

        assert response.status_code == 200
        assert body['commission']['status'] == 'paid'
        assert body['commission']['payout_transaction_hash'] == 'PAYOUT1'
        assert body['commission']['paid_at'] is not None

    def test_cannot_pay_twice(self, client, commission):
        url = f'/api/admin/commissions/{commission.id}/mark-paid'
        client.post(url, json={}, headers=admin_headers())

        response = client.post(url, json={}, headers=admin_headers())

        assert response.status_code == 409

    def test_unknown_commission(self, client):
        response = client.post('/api/admin/commissions/missing/mark-paid', json={}, headers=admin_headers())
        assert response.status_code == 404

    def test_requires_token(self, client, commission):
        response = client.post(f'/api/admin/commissions/{commission.id}/mark-paid', json={})
        assert response.status_code == 401

    def test_requires_admin_role(self, client, commission):
        response = client.post(f'/api/admin/commissions/{commission.id}/mark-paid',
                               json={}, headers=admin_headers(role='broker'))
        assert response.status_code == 403
