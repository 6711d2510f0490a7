"""Stripe webhook handling for the premium subscription flag.

Handled events:
- ``checkout.session.completed``: the Payment Link carries the user id in
  ``client_reference_id``; the user's subscription row becomes premium.
- ``customer.subscription.deleted``: premium is cleared on the row holding that
  Stripe subscription id.

Anything else is acknowledged and logged.
"""

from __future__ import annotations

import json
from typing import Any, Optional

import stripe
from flask import current_app

from mindnav.extensions import db
from mindnav.models import User
from mindnav.services.subscriptions import activate_premium, deactivate_by_stripe_subscription

CHECKOUT_COMPLETED = 'checkout.session.completed'
SUBSCRIPTION_DELETED = 'customer.subscription.deleted'

SIGNATURE_TOLERANCE_SECONDS = 300


class WebhookError(Exception):
    """Webhook request that must be rejected with a 4xx status."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def parse_event(payload: bytes, signature: Optional[str], secret: Optional[str]) -> dict[str, Any]:
    """Verify (when a secret is configured) and decode a webhook payload."""

    try:
        body = payload.decode('utf-8') if isinstance(payload, bytes) else str(payload or '')
    except UnicodeDecodeError as exc:
        raise WebhookError('Invalid webhook payload') from exc

    if secret:
        if not signature:
            raise WebhookError('Webhook signature verification failed')
        try:
            stripe.WebhookSignature.verify_header(body, signature, secret, SIGNATURE_TOLERANCE_SECONDS)
        except stripe.SignatureVerificationError as exc:
            current_app.logger.warning('Webhook signature verification failed: %s', exc)
            raise WebhookError('Webhook signature verification failed') from exc
    else:
        current_app.logger.warning('STRIPE_WEBHOOK_SECRET is not set; accepting unsigned webhook payload')

    try:
        event = json.loads(body)
    except ValueError as exc:
        raise WebhookError('Invalid webhook payload') from exc

    if not isinstance(event, dict) or not isinstance(event.get('type'), str):
        raise WebhookError('Invalid webhook payload')
    return event


def _event_object(event: dict[str, Any]) -> dict[str, Any]:
    data = event.get('data') or {}
    obj = data.get('object') if isinstance(data, dict) else None
    return obj if isinstance(obj, dict) else {}


def handle_event(event: dict[str, Any]) -> str:
    """Apply an event to the subscription table. Returns the event type."""

    event_type = event['type']
    current_app.logger.info('Processing Stripe event: %s', event_type)

    if event_type == CHECKOUT_COMPLETED:
        checkout = _event_object(event)
        user_id = _parse_user_id(checkout.get('client_reference_id'))
        if user_id is None:
            current_app.logger.error('No client_reference_id found in checkout session')
            raise WebhookError('No user ID found')
        if db.session.get(User, user_id) is None:
            current_app.logger.error('Checkout completed for unknown user id %s', user_id)
            raise WebhookError('No user ID found')

        activate_premium(
            user_id,
            customer_id=checkout.get('customer'),
            subscription_id=checkout.get('subscription'),
        )
        current_app.logger.info('Premium activated for user: %s', user_id)

    elif event_type == SUBSCRIPTION_DELETED:
        subscription_id = _event_object(event).get('id')
        if not subscription_id:
            raise WebhookError('No subscription ID found')
        changed = deactivate_by_stripe_subscription(subscription_id)
        current_app.logger.info(
            'Premium deactivated for subscription %s (%d row(s))', subscription_id, changed
        )

    else:
        current_app.logger.info('Unhandled Stripe event type: %s', event_type)

    return event_type


def _parse_user_id(value: Any) -> Optional[int]:
    if value in (None, ''):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
