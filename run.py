"""Development server.

Seeds the local backend's reference data before serving, so a fresh
checkout runs without the hosted backend.
"""

import os

from wsgi import app
from planmarket.cli import seed_sample_plans, seed_services


if __name__ == '__main__':
    if app.extensions['planmarket'].backend.name == 'local':
        with app.app_context():
            seed_services()
            seed_sample_plans()

    host = os.environ.get('HOST', '127.0.0.1')
    port = int(os.environ.get('PORT', 5000))
    app.run(host=host, port=port)
