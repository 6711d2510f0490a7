"""Premium subscription flag.

One ``UserSubscription`` row per user. Rows are created lazily, non-premium,
the first time a user's status is read. Only the Stripe webhook and the CLI
flip ``is_premium``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from mindnav.extensions import db
from mindnav.models import User, UserSubscription
from mindnav.utils.db_resilience import with_db_resilience


@with_db_resilience(max_retries=2, backoff_ms=100)
def ensure_subscription(user_id: int) -> UserSubscription:
    subscription = UserSubscription.query.filter_by(user_id=user_id).first()
    if subscription is None:
        subscription = UserSubscription(user_id=user_id, is_premium=False)
        db.session.add(subscription)
        db.session.commit()
    return subscription


def is_premium(user: Optional[User]) -> bool:
    if user is None or not getattr(user, 'is_authenticated', False):
        return False
    return bool(ensure_subscription(user.id).is_premium)


def activate_premium(
    user_id: int,
    customer_id: Optional[str] = None,
    subscription_id: Optional[str] = None,
) -> UserSubscription:
    """Upsert the user's row as premium (checkout completed)."""

    subscription = UserSubscription.query.filter_by(user_id=user_id).first()
    if subscription is None:
        subscription = UserSubscription(user_id=user_id)
        db.session.add(subscription)

    subscription.is_premium = True
    subscription.premium_since = datetime.utcnow()
    if customer_id:
        subscription.stripe_customer_id = customer_id
    if subscription_id:
        subscription.stripe_subscription_id = subscription_id

    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return subscription


def deactivate_by_stripe_subscription(stripe_subscription_id: str) -> int:
    """Clear the premium flag for a cancelled Stripe subscription. Returns rows changed."""

    rows = UserSubscription.query.filter_by(stripe_subscription_id=stripe_subscription_id).all()
    for row in rows:
        row.is_premium = False

    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return len(rows)


def revoke_premium(user_id: int) -> bool:
    subscription = UserSubscription.query.filter_by(user_id=user_id).first()
    if subscription is None or not subscription.is_premium:
        return False
    subscription.is_premium = False
    db.session.commit()
    return True
