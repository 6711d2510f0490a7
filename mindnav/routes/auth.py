"""
Authentication Blueprint - User Authentication Routes

This blueprint handles user authentication including:
- Registration
- Login/Logout
- Current-user profile and CSRF token for the browser client
"""

from datetime import datetime

from flask import Blueprint, current_app, jsonify, session
from flask_login import current_user, login_required, login_user, logout_user
from flask_wtf.csrf import generate_csrf

from mindnav.extensions import db, limiter
from mindnav.forms import LoginForm, RegistrationForm, first_error, request_formdata
from mindnav.models import User
from mindnav.services.subscriptions import is_premium
from mindnav.utils.db_resilience import with_db_resilience

# Create Blueprint
auth_bp = Blueprint('auth', __name__)


def _auth_rate_limit():
    return current_app.config.get('AUTH_RATE_LIMIT', '10 per minute')


def _profile(user):
    return {
        'id': user.id,
        'email': user.email,
        'is_premium': is_premium(user),
        'show_help': not user.has_seen_help,
    }


@auth_bp.route('/csrf-token', methods=['GET'])
def csrf_token():
    """Token the browser client sends back in the X-CSRFToken header."""
    return jsonify({'csrf_token': generate_csrf()})


@auth_bp.route('/register', methods=['POST'])
@limiter.limit(_auth_rate_limit)
def register():
    """Create an account and sign it in"""

    form = RegistrationForm(formdata=request_formdata())
    if not form.validate_on_submit():
        return jsonify({'error': first_error(form)}), 400

    user = User(email=form.email.data.strip().lower(), is_active=True)
    user.set_password(form.password.data)
    try:
        db.session.add(user)
        db.session.commit()
    except Exception as exc:
        db.session.rollback()
        current_app.logger.error('Registration failed for %s: %s', form.email.data, exc, exc_info=True)
        return jsonify({'error': 'We could not create your account. Please try again.'}), 503

    login_user(user, remember=True)
    session.permanent = True
    current_app.logger.info('Registered user %s', user.id)
    return jsonify(_profile(user)), 201


@auth_bp.route('/login', methods=['POST'])
@limiter.limit(_auth_rate_limit)
def login():
    """User login route"""

    form = LoginForm(formdata=request_formdata())
    if not form.validate_on_submit():
        return jsonify({'error': first_error(form)}), 400

    email = (form.email.data or '').strip().lower()

    @with_db_resilience(max_retries=2, backoff_ms=100)
    def find_user():
        return User.query.filter_by(email=email).first()

    try:
        user = find_user()
    except Exception as exc:
        current_app.logger.error('Login query failed permanently: %s', exc, exc_info=True)
        return jsonify({'error': 'Database temporarily unavailable. Please try again shortly.'}), 503

    if not user or not user.check_password(form.password.data):
        return jsonify({'error': 'Invalid credentials.'}), 401

    if not user.is_active:
        return jsonify({'error': 'This account is disabled. Contact support.'}), 403

    try:
        login_user(user, remember=bool(form.remember_me.data))
        session.permanent = True
        user.last_login = datetime.utcnow()
        db.session.commit()
    except Exception as exc:
        current_app.logger.exception('Failed to persist login for %s: %s', user.email, exc)
        db.session.rollback()
        return jsonify({'error': 'We could not complete the login. Please try again.'}), 503

    return jsonify(_profile(user))


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    """User logout route"""

    logout_user()
    return jsonify({'logged_out': True})


@auth_bp.route('/me', methods=['GET'])
@login_required
def me():
    """Current user with premium and first-run help flags"""
    return jsonify(_profile(current_user))
