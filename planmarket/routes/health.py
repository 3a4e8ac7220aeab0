"""
Health check endpoints for monitoring the application and its backend.

These endpoints are used by:
- The hosting platform to determine service health
- Load balancers to route traffic only to healthy instances
"""

import os
from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify

from planmarket.services import get_services

health_bp = Blueprint('health', __name__)

REQUIRED_TABLES = ('house_plans', 'additional_services')


def _now():
    return datetime.now(timezone.utc).isoformat()


@health_bp.route('/health')
def health_check():
    """
    Lightweight health check for load balancer probes.

    Does NOT reach the backend to keep response time low.
    """
    return jsonify({
        'status': 'healthy',
        'timestamp': _now(),
        'service': current_app.config.get('SITE_NAME', 'PlanMarket').lower(),
    }), 200


@health_bp.route('/health/ready')
def readiness_check():
    """
    Readiness check: the catalog tables must answer a query.
    """
    backend = get_services().backend
    checks = {
        'application': 'healthy',
        'backend': backend.name,
        'timestamp': _now(),
    }
    status_code = 200

    failures = {}
    for table in REQUIRED_TABLES:
        result = backend.select(table)
        if not result.ok:
            failures[table] = str(result.error)
    if failures:
        checks['tables'] = 'unhealthy'
        checks['errors'] = failures
        status_code = 503
        current_app.logger.error('Backend readiness check failed: %s', failures)
    else:
        checks['tables'] = 'healthy'

    checks['overall'] = 'healthy' if status_code == 200 else 'unhealthy'
    return jsonify(checks), status_code


@health_bp.route('/health/live')
def liveness_check():
    """Liveness probe; 200 while the process is alive."""
    return jsonify({
        'status': 'alive',
        'pid': os.getpid(),
        'timestamp': _now(),
    }), 200
