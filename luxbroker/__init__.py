import logging

from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_jwt_extended import JWTManager
from flask_cors import CORS
from flask_marshmallow import Marshmallow


db = SQLAlchemy()
migrate = Migrate()
jwt = JWTManager()
ma = Marshmallow()

LOG_FORMAT = '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'


def configure_logging(app):
    """Attach a single stream handler to the app logger."""
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    app.logger.handlers.clear()
    app.logger.addHandler(handler)
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))


def create_app(config_class='luxbroker.config.Config'):
    app = Flask(__name__)

    # Load configuration
    app.config.from_object(config_class)
    configure_logging(app)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    CORS(app)
    ma.init_app(app)

    from luxbroker import models  # noqa: F401  (registers tables on the metadata)
    from luxbroker.errors import register_error_handlers
    from luxbroker.database_setup import initialize_database, register_db_commands

    register_error_handlers(app)
    register_db_commands(app)

    if app.config.get('AUTO_INIT_DB'):
        with app.app_context():
            initialize_database()

    # Register blueprints
    from luxbroker.routes.sales import sales_bp
    from luxbroker.routes.broker import broker_bp
    from luxbroker.routes.seller import seller_bp
    from luxbroker.routes.referral import referral_bp
    from luxbroker.routes.leaderboard import leaderboard_bp
    from luxbroker.routes.admin import admin_bp

    app.register_blueprint(sales_bp, url_prefix='/api')
    app.register_blueprint(broker_bp, url_prefix='/api/brokers')
    app.register_blueprint(seller_bp, url_prefix='/api/sellers')
    app.register_blueprint(referral_bp, url_prefix='/api/referrals')
    app.register_blueprint(leaderboard_bp, url_prefix='/api/leaderboard')
    app.register_blueprint(admin_bp, url_prefix='/api/admin')

    @app.route('/api/health')
    def health_check():
        return {
            'status': 'healthy',
            'message': 'LuxBroker API is running!',
            'version': '1.0.0'
        }, 200

    return app
