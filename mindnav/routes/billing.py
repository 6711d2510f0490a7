"""
Billing Blueprint - premium status, checkout link and the Stripe webhook
"""

from urllib.parse import urlencode, urlparse, urlunparse, parse_qsl

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required

from mindnav.extensions import csrf, db
from mindnav.services.stripe_webhook import WebhookError, handle_event, parse_event
from mindnav.services.subscriptions import ensure_subscription

billing_bp = Blueprint('billing', __name__)


def _with_query(url, **params):
    parsed = urlparse(url)
    query = dict(parse_qsl(parsed.query))
    query.update({key: value for key, value in params.items() if value})
    return urlunparse(parsed._replace(query=urlencode(query)))


@billing_bp.route('/status', methods=['GET'])
@login_required
def status():
    try:
        subscription = ensure_subscription(current_user.id)
    except Exception as exc:
        current_app.logger.error('Error loading premium status: %s', exc, exc_info=True)
        return jsonify({'error': 'Failed to load premium status'}), 503
    return jsonify(subscription.to_dict())


@billing_bp.route('/checkout', methods=['GET'])
@login_required
def checkout():
    """Stripe Payment Link pre-filled with the user id the webhook reads back"""
    payment_link = current_app.config.get('STRIPE_PAYMENT_LINK')
    if not payment_link:
        current_app.logger.warning('Checkout requested but STRIPE_PAYMENT_LINK is not configured')
        return jsonify({'error': 'Checkout is not available right now'}), 503

    url = _with_query(
        payment_link,
        client_reference_id=str(current_user.id),
        prefilled_email=current_user.email,
    )
    return jsonify({'checkout_url': url})


@billing_bp.route('/webhook', methods=['POST'])
@csrf.exempt
def webhook():
    """Stripe webhook endpoint"""
    try:
        event = parse_event(
            request.get_data(),
            request.headers.get('Stripe-Signature'),
            current_app.config.get('STRIPE_WEBHOOK_SECRET'),
        )
        handle_event(event)
    except WebhookError as exc:
        return jsonify({'error': exc.message}), exc.status_code
    except Exception as exc:
        current_app.logger.exception('Webhook error: %s', exc)
        db.session.rollback()
        return jsonify({'error': str(exc)}), 500

    return jsonify({'received': True})
