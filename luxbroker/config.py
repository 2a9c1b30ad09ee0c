import os
from decimal import Decimal
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _database_uri():
    uri = os.environ.get('DATABASE_URL') or 'sqlite:///luxbroker.db'
    # Hosted Postgres providers still hand out the old scheme
    if uri.startswith('postgres://'):
        uri = uri.replace('postgres://', 'postgresql://', 1)
    return uri


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key'
    SQLALCHEMY_DATABASE_URI = _database_uri()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JWT_SECRET_KEY = os.environ.get('JWT_SECRET_KEY') or 'dev-jwt-secret'
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
    AUTO_INIT_DB = _env_flag('AUTO_INIT_DB', True)

    # Share of the platform fee paid to the referring broker
    BROKER_COMMISSION_RATE = Decimal(os.environ.get('LUXBROKER_COMMISSION_RATE', '0.30'))
    REFERRAL_LOCK_DAYS = int(os.environ.get('REFERRAL_LOCK_DAYS', '90'))
    REFERRAL_COOKIE_NAME = 'lux_ref'
    REFERRAL_SHORT_COOKIE_NAME = 'lux_ref_7'
    REQUIRE_TRANSACTION_HASH = _env_flag('REQUIRE_TRANSACTION_HASH', True)
    LEADERBOARD_MAX_LIMIT = int(os.environ.get('LEADERBOARD_MAX_LIMIT', '100'))


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    JWT_SECRET_KEY = 'test-jwt-secret-key-with-enough-length'
    LOG_LEVEL = 'WARNING'
    AUTO_INIT_DB = True
    BROKER_COMMISSION_RATE = Decimal('0.30')
    REQUIRE_TRANSACTION_HASH = True
