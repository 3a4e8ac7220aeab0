"""
Configuration Module for the PlanMarket Application

This module defines configuration classes for different environments:
- DevelopmentConfig: Local development on the SQLite-backed local backend
- ProductionConfig: Production deployment against the hosted backend
- TestingConfig: Automated testing configuration
"""

import os
from pathlib import Path
from datetime import timedelta


class Config:
    """Base configuration with common settings"""

    # Secret key for session signing.
    # DO NOT provide an insecure default here.
    # - In development, we load from .env (see wsgi.py) or you can set it explicitly.
    # - In production, the app factory enforces presence.
    SECRET_KEY = os.environ.get('SECRET_KEY')

    # Remote data service: 'supabase' (hosted) or 'local' (SQLAlchemy mirror)
    BACKEND = os.environ.get('BACKEND', 'local')
    SUPABASE_URL = os.environ.get('SUPABASE_URL')
    SUPABASE_ANON_KEY = os.environ.get('SUPABASE_ANON_KEY')
    SUPABASE_TIMEOUT = float(os.environ.get('SUPABASE_TIMEOUT', 10))

    # Verification email: 'function' (hosted edge function) or 'mail' (Flask-Mail)
    EMAIL_DISPATCH = os.environ.get('EMAIL_DISPATCH', 'mail')
    VERIFICATION_REDIRECT_URL = os.environ.get('VERIFICATION_REDIRECT_URL', 'http://localhost:5000/verify')
    VERIFICATION_REDIRECT_DELAY = float(os.environ.get('VERIFICATION_REDIRECT_DELAY', 2))
    PROFILE_URL = '/profile'

    # Server-side session contexts (filters, results, pending code)
    SESSION_CONTEXT_TTL = int(os.environ.get('SESSION_CONTEXT_TTL', 1800))
    # Local backend auth sessions
    AUTH_SESSION_TTL = int(os.environ.get('AUTH_SESSION_TTL', 3600))

    # Local backend database
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": 300,
    }

    # Email configuration
    MAIL_SERVER = os.environ.get('MAIL_SERVER', 'smtp.gmail.com')
    MAIL_PORT = int(os.environ.get('MAIL_PORT', 587))
    MAIL_USE_TLS = os.environ.get('MAIL_USE_TLS', 'True').lower() == 'true'
    MAIL_USERNAME = os.environ.get('MAIL_USERNAME')
    MAIL_PASSWORD = os.environ.get('MAIL_PASSWORD')
    MAIL_DEFAULT_SENDER = os.environ.get('MAIL_DEFAULT_SENDER', 'noreply@planmarket.local')

    # Rate limits (Flask-Limiter)
    RATELIMIT_STORAGE_URI = os.environ.get('RATELIMIT_STORAGE_URI', 'memory://')
    AUTH_RATE_LIMIT = os.environ.get('AUTH_RATE_LIMIT', '10 per minute')

    # Session configuration
    PERMANENT_SESSION_LIFETIME = timedelta(minutes=720)
    SESSION_REFRESH_EACH_REQUEST = True

    # Security headers
    SESSION_COOKIE_SECURE = False
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    REMEMBER_COOKIE_SECURE = True
    REMEMBER_COOKIE_HTTPONLY = True

    SITE_NAME = 'PlanMarket'


class DevelopmentConfig(Config):
    """Development environment configuration"""

    DEBUG = True
    TESTING = False

    # IMPORTANT (Windows): SQLAlchemy sqlite URLs must use forward slashes.
    _project_root = Path(__file__).resolve().parent.parent
    _default_db_path = (_project_root / 'planmarket.db').resolve()

    _env_db_url = os.environ.get('DATABASE_URL')
    if _env_db_url and _env_db_url.strip().startswith('sqlite:'):
        _env_db_url = _env_db_url.replace('\\', '/')

    SQLALCHEMY_DATABASE_URI = _env_db_url or f"sqlite:///{_default_db_path.as_posix()}"

    # Disable secure cookies for local development
    SESSION_COOKIE_SECURE = False
    REMEMBER_COOKIE_SECURE = False

    # Print outgoing verification emails instead of sending them
    MAIL_SUPPRESS_SEND = os.environ.get('MAIL_SUPPRESS_SEND', 'True').lower() == 'true'


class ProductionConfig(Config):
    """Production environment configuration"""

    DEBUG = False
    TESTING = False

    BACKEND = os.environ.get('BACKEND', 'supabase')
    EMAIL_DISPATCH = os.environ.get('EMAIL_DISPATCH', 'function')

    # The local backend is unused in production; keep an in-memory URI so
    # Flask-SQLAlchemy initializes without touching disk.
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', 'sqlite:///:memory:')

    # Production security
    SESSION_COOKIE_SECURE = True
    REMEMBER_COOKIE_SECURE = True


class TestingConfig(Config):
    """Testing environment configuration"""

    TESTING = True
    DEBUG = True

    BACKEND = 'local'
    EMAIL_DISPATCH = 'mail'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SECRET_KEY = 'test-secret-key'

    MAIL_SUPPRESS_SEND = True
    RATELIMIT_ENABLED = False
    VERIFICATION_REDIRECT_DELAY = 2.0

    # Disable CSRF for testing
    WTF_CSRF_ENABLED = False

    # Disable secure cookies for testing
    SESSION_COOKIE_SECURE = False
    REMEMBER_COOKIE_SECURE = False


# Configuration dictionary for easy access
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
