"""Premium status, checkout link and Stripe webhook."""

import hashlib
import hmac
import json
import time

from mindnav.models import UserSubscription

WEBHOOK_SECRET = 'whsec_test_secret'


def sign(payload, secret=WEBHOOK_SECRET, timestamp=None):
    timestamp = timestamp or int(time.time())
    signed = f'{timestamp}.{payload}'.encode('utf-8')
    digest = hmac.new(secret.encode('utf-8'), signed, hashlib.sha256).hexdigest()
    return f't={timestamp},v1={digest}'


def post_event(client, event, signature=None):
    payload = json.dumps(event)
    headers = {'Content-Type': 'application/json'}
    if signature is not None:
        headers['Stripe-Signature'] = signature(payload) if callable(signature) else signature
    return client.post('/billing/webhook', data=payload, headers=headers)


def checkout_event(user_id, subscription_id='sub_123'):
    return {
        'type': 'checkout.session.completed',
        'data': {'object': {
            'client_reference_id': str(user_id),
            'customer': 'cus_123',
            'subscription': subscription_id,
        }},
    }


def test_status_defaults_to_free(auth_client):
    data = auth_client.get('/billing/status').get_json()
    assert data == {'is_premium': False, 'premium_since': None}


def test_checkout_link_carries_user(auth_client, user):
    url = auth_client.get('/billing/checkout').get_json()['checkout_url']
    assert url.startswith('https://buy.stripe.com/test_link?')
    assert f'client_reference_id={user.id}' in url
    assert 'prefilled_email=ada%40mindnav.io' in url


def test_checkout_unavailable_without_link(app, auth_client):
    app.config['STRIPE_PAYMENT_LINK'] = None
    assert auth_client.get('/billing/checkout').status_code == 503


def test_unsigned_webhook_accepted_without_secret(auth_client, user):
    response = post_event(auth_client, checkout_event(user.id))
    assert response.status_code == 200
    assert response.get_json() == {'received': True}
    assert auth_client.get('/billing/status').get_json()['is_premium'] is True


def test_signed_webhook_activates_premium(app, auth_client, user):
    app.config['STRIPE_WEBHOOK_SECRET'] = WEBHOOK_SECRET
    response = post_event(auth_client, checkout_event(user.id), signature=sign)
    assert response.status_code == 200

    subscription = UserSubscription.query.filter_by(user_id=user.id).one()
    assert subscription.is_premium is True
    assert subscription.stripe_subscription_id == 'sub_123'
    assert subscription.premium_since is not None


def test_bad_signature_rejected(app, auth_client, user):
    app.config['STRIPE_WEBHOOK_SECRET'] = WEBHOOK_SECRET
    forged = lambda payload: sign(payload, secret='whsec_wrong')  # noqa: E731

    response = post_event(auth_client, checkout_event(user.id), signature=forged)
    assert response.status_code == 400
    assert response.get_json() == {'error': 'Webhook signature verification failed'}
    assert auth_client.get('/billing/status').get_json()['is_premium'] is False


def test_missing_signature_rejected(app, auth_client, user):
    app.config['STRIPE_WEBHOOK_SECRET'] = WEBHOOK_SECRET
    response = post_event(auth_client, checkout_event(user.id))
    assert response.status_code == 400


def test_checkout_without_user_rejected(client):
    event = {'type': 'checkout.session.completed', 'data': {'object': {}}}
    response = post_event(client, event)
    assert response.status_code == 400
    assert response.get_json() == {'error': 'No user ID found'}


def test_checkout_for_unknown_user_rejected(client):
    response = post_event(client, checkout_event(4242))
    assert response.status_code == 400


def test_subscription_deleted_revokes_premium(auth_client, user):
    post_event(auth_client, checkout_event(user.id, subscription_id='sub_cancel'))
    event = {'type': 'customer.subscription.deleted', 'data': {'object': {'id': 'sub_cancel'}}}

    response = post_event(auth_client, event)
    assert response.status_code == 200
    assert auth_client.get('/billing/status').get_json()['is_premium'] is False


def test_other_events_acknowledged(client):
    response = post_event(client, {'type': 'invoice.paid', 'data': {'object': {}}})
    assert response.status_code == 200


def test_invalid_payload_rejected(client):
    response = client.post('/billing/webhook', data='not json', headers={'Content-Type': 'application/json'})
    assert response.status_code == 400


def test_non_utf8_payload_rejected(client):
    response = client.post(
        '/billing/webhook',
        data=b'\xff\xfe{"type": "invoice.paid"}',
        headers={'Content-Type': 'application/json'},
    )
    assert response.status_code == 400
    assert response.get_json() == {'error': 'Invalid webhook payload'}
