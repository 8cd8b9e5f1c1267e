# voting_app/__init__.py

import os

from flask import Flask, jsonify
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from voting_app.config import Config
from voting_app.extensions import db, limiter, migrate

MIGRATIONS_DIR = os.path.join(os.path.dirname(__file__), 'database', 'migrations')


def create_app(config_object=Config, overrides=None):
    app = Flask(__name__)
    app.config.from_object(config_object)
    if overrides:
        app.config.update(overrides)

    # Fix proxy headers for HTTPS
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db, directory=MIGRATIONS_DIR)
    limiter.init_app(app)

    # Ensure model modules are imported so SQLAlchemy metadata is populated
    # for Flask-Migrate / Alembic.
    from voting_app.database import models  # noqa: F401

    from voting_app.audit.audit_logger import AuditLogger
    from voting_app.security.login_guard import LoginGuard

    app.extensions['audit_logger'] = AuditLogger(
        log_dir=app.config['AUDIT_LOG_DIR'],
        signing_key_hex=app.config.get('AUDIT_SIGNING_KEY'),
    )
    app.extensions['login_guard'] = LoginGuard(
        max_attempts=app.config['LOGIN_MAX_ATTEMPTS'],
        window_minutes=app.config['LOGIN_WINDOW_MINUTES'],
        lockout_minutes=app.config['LOGIN_LOCKOUT_MINUTES'],
    )

    from voting_app.authentication.session import load_current_user
    app.before_request(load_current_user)

    from voting_app import routes
    from voting_app.operations import health_monitor
    app.register_blueprint(routes.bp)
    app.register_blueprint(health_monitor.bp)

    from voting_app import cli
    cli.init_app(app)

    register_error_handlers(app)
    return app


def register_error_handlers(app):
    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({'message': e.description}), e.code

    @app.errorhandler(SQLAlchemyError)
    def handle_db_error(e):
        # Driver details stay in the server log
        db.session.rollback()
        app.logger.exception("Database error: %s", e)
        return jsonify({'message': 'Database error'}), 500
