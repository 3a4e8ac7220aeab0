"""
WSGI Entry Point for the PlanMarket Application

Entry point for WSGI servers (like Gunicorn). Environment variables must be
set before this module is imported; production fails fast when the secret
key or the hosted backend settings are missing.
"""

import os
import sys

# Load .env ONLY for local development. In production, environment
# variables must be provided by the platform.
if os.environ.get('FLASK_ENV', '').lower() != 'production' and os.environ.get('FLASK_CONFIG', '').lower() != 'production':
    from dotenv import load_dotenv

    load_dotenv(override=False)

from planmarket import create_app

config_name = (os.getenv('FLASK_CONFIG') or os.getenv('FLASK_ENV') or 'development').lower()

print(f'Initializing PlanMarket with config: {config_name}', file=sys.stderr)

if config_name == 'production':
    required_vars = {
        'SECRET_KEY': 'Required for session signing',
        'SUPABASE_URL': 'Base URL of the hosted backend',
        'SUPABASE_ANON_KEY': 'Public API key of the hosted backend',
    }

    missing_vars = [
        f'  - {var_name}: {description}'
        for var_name, description in required_vars.items()
        if not os.getenv(var_name)
    ]
    if missing_vars:
        print('Missing required environment variables:\n' + '\n'.join(missing_vars), file=sys.stderr)
        raise RuntimeError('Missing required environment variables in production')

try:
    app = create_app(config_name)
except Exception as exc:
    print(f'FATAL: application initialization failed: {exc}', file=sys.stderr)
    raise
