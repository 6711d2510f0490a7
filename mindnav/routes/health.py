"""
Health check endpoints for monitoring the service and its database.

- /health        process is up (no database round-trip)
- /health/ready  database reachable and schema present
"""

from flask import Blueprint, jsonify, current_app
from mindnav.extensions import db
from sqlalchemy import inspect, text
from datetime import datetime


health_bp = Blueprint('health', __name__)

REQUIRED_TABLES = {'users', 'user_subscriptions', 'decision_maps', 'canvas_drafts', 'budget_goals'}


@health_bp.route('/health')
def health_check():
    """Lightweight probe for load balancers; never touches the database."""
    return jsonify({
        'status': 'healthy',
        'timestamp': datetime.utcnow().isoformat(),
        'service': 'mindnav',
    }), 200


@health_bp.route('/health/ready')
def readiness_check():
    """Readiness probe: 200 only when the database answers and every table exists."""
    checks = {
        'application': 'healthy',
        'database': 'unknown',
        'timestamp': datetime.utcnow().isoformat(),
    }
    status_code = 200

    try:
        db.session.execute(text('SELECT 1'))
        db.session.commit()
        checks['database'] = 'healthy'
    except Exception as exc:
        checks['database'] = 'unhealthy'
        status_code = 503
        current_app.logger.error('Database health check failed: %s', exc, exc_info=True)
        db.session.rollback()

    if checks['database'] == 'healthy':
        try:
            missing = REQUIRED_TABLES - set(inspect(db.engine).get_table_names())
            if missing:
                checks['schema'] = 'incomplete'
                checks['missing_tables'] = sorted(missing)
                status_code = 503
            else:
                checks['schema'] = 'complete'
        except Exception as exc:
            checks['schema'] = 'unknown'
            current_app.logger.error('Schema health check failed: %s', exc, exc_info=True)

    checks['overall'] = 'healthy' if status_code == 200 else 'unhealthy'
    return jsonify(checks), status_code
