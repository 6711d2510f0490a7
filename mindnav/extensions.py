"""
Flask Extensions Module

This module initializes all Flask extensions used in the application.
Extensions are initialized here and then attached to the app in the factory.
"""

from flask import jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_login import LoginManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_wtf.csrf import CSRFProtect


def _rate_limit_key() -> str:
	"""Best-effort client IP key for rate limiting.

	Prefers the first X-Forwarded-For hop when the app sits behind a proxy.
	Falls back to remote_addr if resolution fails.
	"""

	try:
		from flask import current_app, has_request_context, request

		if not has_request_context():
			return '0.0.0.0'

		if current_app.config.get('TRUST_PROXY_HEADERS'):
			forwarded = (request.headers.get('X-Forwarded-For') or '').split(',')[0].strip()
			if forwarded:
				return forwarded
		return get_remote_address() or '0.0.0.0'
	except Exception:
		return '0.0.0.0'

# Initialize extensions
# These will be attached to the app in create_app()
db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()
limiter = Limiter(key_func=_rate_limit_key)
csrf = CSRFProtect()

# Configure login manager
login_manager.session_protection = 'strong'


@login_manager.unauthorized_handler
def _unauthorized():
	"""API clients get a JSON 401 instead of a redirect to a login page."""
	return jsonify({'error': 'Authentication required'}), 401
