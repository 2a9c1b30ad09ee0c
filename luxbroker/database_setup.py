import logging
from decimal import Decimal

import click
from sqlalchemy import inspect as sql_inspect, text
from sqlalchemy.exc import SQLAlchemyError

from luxbroker import db
from luxbroker.models import BrokerTier

logger = logging.getLogger(__name__)

# (id, name, min_referrals, min_sales_volume, commission_rate, color, icon)
DEFAULT_TIERS = [
    (1, 'Bronze', 0, Decimal('0'), Decimal('0.10'), '#CD7F32', '🥉'),
    (2, 'Silver', 5, Decimal('10000'), Decimal('0.12'), '#C0C0C0', '🥈'),
    (3, 'Gold', 15, Decimal('50000'), Decimal('0.15'), '#FFD700', '🥇'),
    (4, 'Diamond', 50, Decimal('250000'), Decimal('0.20'), '#B9F2FF', '💎'),
]


def check_database_connection():
    """Check if database connection is working"""
    try:
        db.session.execute(text('SELECT 1'))
        return True
    except SQLAlchemyError as e:
        logger.error('Database connection failed: %s', e)
        return False


def get_missing_tables():
    existing = set(sql_inspect(db.engine).get_table_names())
    return [name for name in db.metadata.tables if name not in existing]


def seed_tiers():
    """Create the broker tier ladder if the table is empty."""
    if BrokerTier.query.first():
        return False

    for tier_id, name, min_referrals, min_volume, rate, color, icon in DEFAULT_TIERS:
        db.session.add(BrokerTier(
            id=tier_id,
            name=name,
            min_referrals=min_referrals,
            min_sales_volume=min_volume,
            commission_rate=rate,
            color=color,
            icon=icon
        ))
    db.session.commit()
    logger.info('Seeded %d broker tiers', len(DEFAULT_TIERS))
    return True


def initialize_database():
    """Create missing tables and seed reference data."""
    if not check_database_connection():
        return False

    missing = get_missing_tables()
    if missing:
        logger.info('Creating %d missing tables: %s', len(missing), ', '.join(sorted(missing)))
        db.create_all()

    try:
        seed_tiers()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error('Could not seed broker tiers: %s', e)
        return False

    logger.info('Database setup complete')
    return True


# Flask CLI commands registration
def register_db_commands(app):
    """Register database commands with Flask CLI"""

    @app.cli.command('init_db')
    def init_db_command():
        """Creates tables and seeds the broker tiers."""
        if initialize_database():
            click.echo('Database initialized.')
        else:
            raise click.ClickException('Database initialization failed.')

    @app.cli.command('reset_db')
    @click.confirmation_option(prompt='This will delete all data. Are you sure?')
    def reset_db_command():
        """Drops all tables and re-initializes the database."""
        db.drop_all()
        initialize_database()
        click.echo('Database has been reset.')

    @app.cli.command('reconcile-stats')
    def reconcile_stats_command():
        """Recomputes broker counters from sellers and commissions."""
        from luxbroker.tasks import reconcile_broker_stats

        changed = reconcile_broker_stats()
        click.echo(f'Reconciled {changed} broker(s).')
