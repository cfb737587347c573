"""Application factory and initialization"""
import logging
from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_migrate import Migrate
from werkzeug.exceptions import HTTPException
from config import config

db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

def configure_logging(app):
    """Attach stream and optional file handlers to the application logger"""
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT)

    # Remove existing handlers to avoid duplicates across app instances
    app.logger.handlers.clear()
    app.logger.setLevel(level)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    app.logger.addHandler(console_handler)

    log_file = app.config.get('LOG_FILE')
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        app.logger.addHandler(file_handler)

    app.logger.propagate = False

def register_error_handlers(app):
    """Render every error as a JSON body"""
    from sqlalchemy.exc import SQLAlchemyError
    from cr3dify.allocation import AllocationError
    from cr3dify.repayments.service import RepaymentError

    @app.errorhandler(AllocationError)
    def handle_allocation_error(error):
        return jsonify({'error': str(error), 'code': error.code}), 400

    @app.errorhandler(RepaymentError)
    def handle_repayment_error(error):
        return jsonify({'error': str(error), 'code': error.code}), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        codes = {401: 'unauthorized', 403: 'forbidden', 404: 'not_found', 405: 'method_not_allowed'}
        return jsonify({
            'error': error.description,
            'code': codes.get(error.code, 'http_error')
        }), error.code

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(error):
        db.session.rollback()
        app.logger.error('Database error: %s', error)
        return jsonify({'error': 'Internal server error', 'code': 'internal_error'}), 500

def create_app(config_name='default'):
    """Create and configure the Flask application"""
    app = Flask(__name__)
    app.config.from_object(config[config_name])

    configure_logging(app)

    # Initialize extensions
    db.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db)

    # Register blueprints
    from cr3dify.main import main_bp
    from cr3dify.clients import clients_bp
    from cr3dify.loans import loans_bp
    from cr3dify.repayments import repayments_bp

    app.register_blueprint(main_bp, url_prefix='/api')
    app.register_blueprint(clients_bp, url_prefix='/api/clients')
    app.register_blueprint(loans_bp, url_prefix='/api/loans')
    app.register_blueprint(repayments_bp, url_prefix='/api/repayments')

    register_error_handlers(app)

    app.logger.debug('Application created with %s configuration', config_name)
    return app

# Imported last so that models can use db and login_manager
from cr3dify import models  # noqa: E402,F401
