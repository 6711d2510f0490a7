"""
Flask Application Factory

This module implements the application factory pattern for creating
Flask application instances with different configurations.
"""

from collections.abc import Mapping
import logging
import os

from flask import Flask, jsonify
from sqlalchemy import inspect, text
from werkzeug.exceptions import HTTPException

from mindnav.config import config
from mindnav.extensions import db, migrate, login_manager, limiter, csrf


def _safe_log(app, level: str, message: str, *args, **kwargs) -> None:
    """Log without risking startup due to logger misconfiguration."""
    try:
        getattr(app.logger, level)(message, *args, **kwargs)
    except Exception:
        pass


def _check_database(app) -> None:
    """Non-destructive startup check.

    Verifies connectivity and reports missing tables. Never creates or drops
    anything: schema changes go through `flask db upgrade`.
    """
    if os.environ.get('SKIP_STARTUP_DB_TASKS') == '1':
        _safe_log(app, 'warning', 'Skipping startup DB check due to SKIP_STARTUP_DB_TASKS=1')
        return

    with app.app_context():
        try:
            db.session.execute(text('SELECT 1'))
            db.session.commit()
        except Exception as exc:
            db.session.rollback()
            _safe_log(app, 'error', 'Database connectivity check failed (continuing): %s', exc, exc_info=True)
            return

        try:
            existing = set(inspect(db.engine).get_table_names())
            missing = sorted(set(db.metadata.tables.keys()) - existing)
            if missing:
                _safe_log(
                    app,
                    'warning',
                    'Schema appears incomplete. Missing tables: %s. Run `flask db upgrade`.',
                    ', '.join(missing),
                )
            else:
                _safe_log(app, 'info', 'All required tables present (%d)', len(existing & set(db.metadata.tables)))
        except Exception as exc:
            _safe_log(app, 'warning', 'Could not verify schema completeness (continuing): %s', exc, exc_info=True)
        finally:
            db.session.remove()


def create_app(config_name='default'):
    """
    Application factory function

    Args:
        config_name: configuration name ('development', 'production', 'testing'),
            or a mapping of settings applied on top of the testing configuration

    Returns:
        Flask: Configured Flask application instance
    """

    overrides = None
    if isinstance(config_name, Mapping):
        overrides = dict(config_name)
        config_name = 'testing'

    # Normalize config name
    config_name = (config_name or 'default').lower()

    app = Flask(__name__)

    # IMPORTANT: Instantiate the config object so @property values (like
    # ProductionConfig.SQLALCHEMY_DATABASE_URI) are evaluated correctly.
    cfg = config.get(config_name) or config['default']
    app.config.from_object(cfg())
    if overrides:
        app.config.update(overrides)

    app.logger.setLevel(app.config.get('LOG_LEVEL') or (logging.DEBUG if app.debug else logging.INFO))

    # Production: fail fast on missing secrets and database.
    if config_name == 'production':
        if not app.config.get('SECRET_KEY'):
            app.logger.error('Production requires SECRET_KEY to be set via environment variable')
            raise RuntimeError('Missing SECRET_KEY in production')

        db_uri = app.config.get('SQLALCHEMY_DATABASE_URI')
        if not db_uri:
            app.logger.error('Production requires DATABASE_URL (SQLALCHEMY_DATABASE_URI) to be set')
            raise RuntimeError('Missing DATABASE_URL in production')
        if db_uri.strip().startswith('sqlite:'):
            app.logger.error('Production requires PostgreSQL (DATABASE_URL must not be sqlite): %s', db_uri)
            raise RuntimeError('SQLite not allowed in production')

        if not app.config.get('STRIPE_WEBHOOK_SECRET'):
            app.logger.warning('STRIPE_WEBHOOK_SECRET is not set; webhook payloads will not be verified')
    elif not app.config.get('SECRET_KEY'):
        app.config['SECRET_KEY'] = os.urandom(32)
        app.logger.warning('SECRET_KEY was missing; generated an ephemeral key for this process.')

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    limiter.init_app(app)
    csrf.init_app(app)

    # Models must be imported so metadata and the user loader are registered.
    from mindnav import models  # noqa: F401

    if not app.testing:
        _check_database(app)

    register_blueprints(app)
    register_error_handlers(app)
    register_shell_context(app)
    register_cli_commands(app)

    @app.after_request
    def _apply_security_headers(response):
        """Apply safe security headers without affecting app logic."""
        response.headers.setdefault('X-Frame-Options', 'DENY')
        response.headers.setdefault('X-Content-Type-Options', 'nosniff')
        response.headers.setdefault('Referrer-Policy', 'strict-origin-when-cross-origin')
        response.headers.setdefault('Cross-Origin-Resource-Policy', 'same-site')
        return response

    @app.teardown_appcontext
    def _cleanup_appcontext(exc):
        """Ensure scoped sessions are removed when the app context ends."""
        try:
            db.session.remove()
        except Exception as remove_exc:
            app.logger.error('Session remove during appcontext teardown failed: %s', remove_exc, exc_info=True)
        return None

    return app


def register_blueprints(app):
    """Register Flask blueprints"""

    from mindnav.routes.auth import auth_bp
    from mindnav.routes.billing import billing_bp
    from mindnav.routes.budget import budget_bp
    from mindnav.routes.canvas import canvas_bp
    from mindnav.routes.health import health_bp
    from mindnav.routes.help import help_bp
    from mindnav.routes.maps import maps_bp

    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(canvas_bp, url_prefix='/canvas')
    app.register_blueprint(maps_bp, url_prefix='/maps')
    app.register_blueprint(budget_bp, url_prefix='/budget')
    app.register_blueprint(billing_bp, url_prefix='/billing')
    app.register_blueprint(help_bp, url_prefix='/help')
    app.register_blueprint(health_bp)  # No prefix - accessible at /health


def register_error_handlers(app):
    """Every error leaves the API as JSON: {"error": message}"""

    @app.errorhandler(HTTPException)
    def http_error(error):
        return jsonify({'error': error.description or error.name}), error.code

    @app.errorhandler(429)
    def rate_limited(error):
        return jsonify({'error': 'Too many attempts. Please wait a moment and try again.'}), 429

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 errors"""
        app.logger.exception('Unhandled exception (500): %s', error)
        db.session.rollback()
        return jsonify({'error': 'Internal server error'}), 500


def register_shell_context(app):
    """Register shell context for flask shell"""

    @app.shell_context_processor
    def make_shell_context():
        from mindnav.models import User, UserSubscription, DecisionMap, CanvasDraft, BudgetGoal

        return {
            'db': db,
            'User': User,
            'UserSubscription': UserSubscription,
            'DecisionMap': DecisionMap,
            'CanvasDraft': CanvasDraft,
            'BudgetGoal': BudgetGoal,
        }


def register_cli_commands(app):
    """Register custom Flask CLI commands."""
    from mindnav.cli import (
        create_user_command,
        grant_premium_command,
        revoke_premium_command,
        export_map_command,
    )

    app.cli.add_command(create_user_command)
    app.cli.add_command(grant_premium_command)
    app.cli.add_command(revoke_premium_command)
    app.cli.add_command(export_map_command)
