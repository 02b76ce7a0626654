# resumepro/services/billing.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

import stripe
from flask import current_app

from ..errors import BadRequest, NotFound
from . import subscriptions as subs
from .logs import log_event

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = ("active", "trialing")


# ---------- price <-> tier ----------
def price_ids() -> dict:
    return {tier: pid for tier, pid in (current_app.config.get("STRIPE_PRICE_IDS") or {}).items() if pid}


def price_for_tier(tier: str | None) -> Optional[str]:
    return price_ids().get((tier or "").lower())


def tier_for_price(price_id: str | None) -> str:
    for tier, pid in price_ids().items():
        if pid == price_id:
            return tier
    if price_id:
        logger.warning("Unknown Stripe price %s; treating as free", price_id)
    return "free"


# ---------- stripe object helpers ----------
def _get(obj: Any, key: str, default=None):
    """Index into a Stripe object or plain dict without tripping over missing keys."""
    if obj is None:
        return default
    try:
        val = obj[key]
    except (KeyError, TypeError, AttributeError, IndexError):
        return default
    return default if val is None else val


def _first_item(sub) -> Any:
    data = _get(_get(sub, "items"), "data") or []
    return data[0] if data else None


def subscription_price_id(sub) -> Optional[str]:
    return _get(_get(_first_item(sub), "price"), "id")


def _period_end_iso(sub) -> Optional[str]:
    # newer API versions carry the period on the item
    ts = _get(sub, "current_period_end") or _get(_first_item(sub), "current_period_end")
    if not ts:
        return None
    return datetime.fromtimestamp(int(ts), tz=timezone.utc).isoformat()


def _id_of(val) -> Optional[str]:
    if val is None or isinstance(val, str):
        return val
    return _get(val, "id")


# ---------- checkout ----------
def create_checkout_session(price_id: str, user_id: str, email: str | None = None) -> str:
    if not price_id or price_id not in price_ids().values():
        raise BadRequest("Invalid price ID")
    frontend = current_app.config["FRONTEND_URL"]
    kwargs = {}
    if email:
        kwargs["customer_email"] = email
    session = stripe.checkout.Session.create(
        mode="subscription",
        payment_method_types=["card"],
        line_items=[{"price": price_id, "quantity": 1}],
        success_url=f"{frontend}/success?session_id={{CHECKOUT_SESSION_ID}}",
        cancel_url=f"{frontend}/pricing",
        client_reference_id=user_id,
        metadata={"userId": user_id, "tier": tier_for_price(price_id)},
        **kwargs,
    )
    return session["url"]


def get_session_details(session_id: str) -> dict:
    session = stripe.checkout.Session.retrieve(session_id, expand=["subscription"])
    sub = _get(session, "subscription")
    if isinstance(sub, str):
        sub = stripe.Subscription.retrieve(sub)
    details = _get(session, "customer_details") or {}
    return {
        "id": _get(session, "id"),
        "status": _get(session, "status"),
        "paymentStatus": _get(session, "payment_status"),
        "customerEmail": _get(session, "customer_email") or _get(details, "email"),
        "tier": tier_for_price(subscription_price_id(sub)) if sub else _get(_get(session, "metadata"), "tier", "free"),
        "subscriptionId": _id_of(sub),
    }


# ---------- subscription document sync ----------
def find_user_id_by_customer(customer_id: str | None) -> Optional[str]:
    if not customer_id:
        return None
    supabase = current_app.config["SUPABASE_ADMIN"]
    r = supabase.table("subscriptions").select("user_id").eq("stripe_customer_id", customer_id).limit(1).execute()
    data = getattr(r, "data", None) or []
    return data[0].get("user_id") if data else None


def write_subscription(user_id: str, sub, deleted: bool = False) -> dict:
    """Sync the subscriptions row with a Stripe subscription object."""
    status = _get(sub, "status") or "none"
    ends_at = _period_end_iso(sub)
    active = status in ACTIVE_STATUSES and not deleted
    fields = {
        "tier": "free" if deleted else tier_for_price(subscription_price_id(sub)),
        "status": status,
        "is_active": active,
        "stripe_subscription_id": None if deleted else _get(sub, "id"),
        "stripe_customer_id": _id_of(_get(sub, "customer")),
        "subscription_end_date": ends_at,
        "renewal_date": ends_at if active and not _get(sub, "cancel_at_period_end", False) else None,
    }
    subs.merge_subscription(user_id, fields)
    return fields


def handle_checkout_completed(session) -> None:
    user_id = _get(_get(session, "metadata"), "userId") or _get(session, "client_reference_id")
    if not user_id:
        raise ValueError("No user ID in session metadata")
    sub_id = _id_of(_get(session, "subscription"))
    if not sub_id:
        raise ValueError("No subscription on checkout session")
    sub = stripe.Subscription.retrieve(sub_id)
    write_subscription(user_id, sub)


def handle_subscription_change(sub, deleted: bool = False) -> None:
    customer_id = _id_of(_get(sub, "customer"))
    user_id = find_user_id_by_customer(customer_id)
    if not user_id:
        raise ValueError(f"User not found for customer ID: {customer_id}")
    write_subscription(user_id, sub, deleted=deleted)
    log_event("INFO", f"Subscription {_get(sub, 'status')} for user", {
        "userId": user_id,
        "subscriptionId": _get(sub, "id"),
        "status": _get(sub, "status"),
    })


def handle_webhook(payload: bytes | str, signature: str) -> str:
    """
    Verify and dispatch a Stripe event. Returns the event type.
    Signature and processing errors propagate; the route turns them into 400s.
    """
    event = stripe.Webhook.construct_event(payload, signature, current_app.config["STRIPE_WEBHOOK_SECRET"])
    etype = event["type"]
    obj = event["data"]["object"]

    if etype == "checkout.session.completed":
        handle_checkout_completed(obj)
    elif etype == "customer.subscription.updated":
        handle_subscription_change(obj)
    elif etype == "customer.subscription.deleted":
        handle_subscription_change(obj, deleted=True)
    else:
        log_event("WARNING", f"Unhandled webhook event type: {etype}", {"eventType": etype})
    return etype


# ---------- self-service ----------
def cancel_subscription(user_id: str) -> None:
    row = subs.get_subscription_row(user_id)
    if not row:
        raise NotFound("No subscription found for user")
    sub_id = row.get("stripe_subscription_id")
    if not sub_id:
        raise NotFound("No Stripe subscription ID found")
    stripe.Subscription.cancel(sub_id)
    subs.merge_subscription(user_id, {
        "tier": "free",
        "status": "cancelled",
        "is_active": False,
        "stripe_subscription_id": None,
        "renewal_date": None,
    })


def create_change_subscription_session(user_id: str, return_url: str | None = None) -> str:
    row = subs.get_subscription_row(user_id) or {}
    customer_id = row.get("stripe_customer_id")
    if not customer_id:
        raise NotFound("No Stripe customer found for user")
    session = stripe.billing_portal.Session.create(
        customer=customer_id,
        return_url=return_url or f"{current_app.config['FRONTEND_URL']}/settings",
    )
    return session["url"]
