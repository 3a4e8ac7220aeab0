"""
Flask Application Factory

This module implements the application factory pattern for creating
Flask application instances with different configurations.
"""

import os

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from planmarket.config import config
from planmarket.errors import AuthenticationRequired, PlanMarketError
from planmarket.extensions import db, limiter, login_manager, mail


def create_app(config_name='default', overrides=None, backend=None, dispatcher=None):
    """
    Application factory function

    Args:
        config_name (str): Configuration name ('development', 'production', 'testing')
        overrides (dict): Extra configuration applied after the config class
        backend, dispatcher: Prebuilt adapters (tests); built from config otherwise

    Returns:
        Flask: Configured Flask application instance
    """

    config_name = (config_name or 'default').lower()

    app = Flask(__name__)

    cfg = config.get(config_name) or config['default']
    app.config.from_object(cfg())
    if overrides:
        app.config.update(overrides)

    # Production fails fast on missing secrets; elsewhere an ephemeral key
    # keeps sessions working for the life of the process.
    if config_name == 'production':
        if not app.config.get('SECRET_KEY'):
            app.logger.error('Production requires SECRET_KEY to be set via environment variable')
            raise RuntimeError('Missing SECRET_KEY in production')
        if app.config.get('BACKEND') == 'supabase' and not (
            app.config.get('SUPABASE_URL') and app.config.get('SUPABASE_ANON_KEY')
        ):
            app.logger.error('Production requires SUPABASE_URL and SUPABASE_ANON_KEY')
            raise RuntimeError('Missing Supabase settings in production')
    elif not app.config.get('SECRET_KEY'):
        app.config['SECRET_KEY'] = os.urandom(32)
        app.logger.warning('SECRET_KEY was missing; generated an ephemeral key for this process.')

    # Initialize extensions
    db.init_app(app)
    login_manager.init_app(app)
    mail.init_app(app)
    limiter.init_app(app)

    from planmarket.services import init_services

    services = init_services(app, backend=backend, dispatcher=dispatcher)

    if services.backend.name == 'local':
        # Importing models registers the local tables on the metadata.
        import planmarket.models  # noqa: F401

        with app.app_context():
            db.create_all()

    register_blueprints(app)
    register_error_handlers(app)
    register_shell_context(app)
    register_cli_commands(app)

    @login_manager.unauthorized_handler
    def _unauthorized():
        return jsonify(AuthenticationRequired().to_dict()), 401

    @app.after_request
    def _apply_security_headers(response):
        """Apply safe security headers without affecting app logic."""
        response.headers.setdefault('Content-Security-Policy', "default-src 'none'; frame-ancestors 'none'")
        response.headers.setdefault('X-Frame-Options', 'DENY')
        response.headers.setdefault('X-Content-Type-Options', 'nosniff')
        response.headers.setdefault('Referrer-Policy', 'strict-origin-when-cross-origin')
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
    """Register all application blueprints"""
    from planmarket.routes.main import main_bp
    from planmarket.routes.auth import auth_bp
    from planmarket.routes.profile import profile_bp
    from planmarket.routes.health import health_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(profile_bp, url_prefix='/profile')
    app.register_blueprint(health_bp)  # No prefix - accessible at /health


def register_error_handlers(app):
    """Turn application and HTTP errors into JSON responses"""

    @app.errorhandler(PlanMarketError)
    def planmarket_error(error):
        if error.status_code >= 500:
            app.logger.warning('%s: %s', error.__class__.__name__, error.message)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def http_error(error):
        code = (error.name or 'error').lower().replace(' ', '_')
        return jsonify({'error': code, 'message': error.description}), error.code

    @app.errorhandler(500)
    def internal_error(error):
        app.logger.exception('Unhandled exception (500): %s', error)
        db.session.rollback()
        return jsonify({'error': 'internal_error', 'message': 'Something went wrong.'}), 500


def register_shell_context(app):
    """Register shell context for Flask CLI"""

    @app.shell_context_processor
    def make_shell_context():
        from planmarket import models
        from planmarket.services import get_services

        return {
            'db': db,
            'models': models,
            'services': get_services(),
        }


def register_cli_commands(app):
    """Register custom Flask CLI commands."""
    from planmarket.cli import (
        generate_password_command,
        init_db_command,
        seed_sample_plans_command,
        seed_services_command,
    )

    app.cli.add_command(init_db_command)
    app.cli.add_command(seed_services_command)
    app.cli.add_command(seed_sample_plans_command)
    app.cli.add_command(generate_password_command)
