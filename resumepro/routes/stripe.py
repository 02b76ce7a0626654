# resumepro/routes/stripe.py
from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user

from ..errors import APIError
from ..extensions import limiter
from ..security.auth import api_login_required, owner_required
from ..services import billing
from ..services import subscriptions as subs
from ..services.logs import safe_log_event

stripe_bp = Blueprint("stripe", __name__, url_prefix="/api/stripe")


def _failure(message: str, e: Exception, status: int = 500, **data):
    current_app.logger.exception(message)
    safe_log_event("ERROR", message, {"error": str(e), **data})
    return jsonify(error=str(e) or message), status


@stripe_bp.post("/create-checkout-session")
@owner_required
def create_checkout_session():
    data = request.get_json(silent=True) or {}
    user_id = data.get("userId")
    price_id = data.get("priceId") or billing.price_for_tier(data.get("tier"))
    if not user_id:
        safe_log_event("ERROR", "User ID is required for checkout session", {"priceId": price_id})
        return jsonify(error="User ID is required"), 400
    try:
        url = billing.create_checkout_session(price_id, user_id, data.get("email") or current_user.email)
    except APIError:
        raise
    except Exception as e:
        return _failure("Failed to create checkout session", e, userId=user_id)
    return jsonify(url=url)


@stripe_bp.post("/webhook")
@limiter.exempt
def webhook():
    signature = request.headers.get("Stripe-Signature")
    if not signature:
        safe_log_event("ERROR", "Missing stripe-signature header", {})
        return jsonify(error="Missing stripe-signature header"), 400
    try:
        etype = billing.handle_webhook(request.get_data(), signature)
    except Exception as e:
        # bad signatures and processing failures both go back to Stripe as 400
        return _failure("Failed to process webhook", e, status=400)
    current_app.logger.info("Stripe webhook processed: %s", etype)
    return jsonify(received=True)


@stripe_bp.get("/subscription-status/<user_id>")
@owner_required
def subscription_status(user_id):
    try:
        return jsonify(subs.get_subscription_status(user_id))
    except Exception as e:
        return _failure("Failed to fetch subscription status", e, userId=user_id)


@stripe_bp.post("/cancel-subscription")
@owner_required
def cancel_subscription():
    data = request.get_json(silent=True) or {}
    user_id = data.get("userId")
    if not user_id:
        safe_log_event("ERROR", "User ID is required for subscription cancellation", {})
        return jsonify(error="User ID is required"), 400
    try:
        billing.cancel_subscription(user_id)
    except APIError:
        raise
    except Exception as e:
        return _failure("Failed to cancel subscription", e, userId=user_id)
    safe_log_event("INFO", "Subscription cancelled successfully", {"userId": user_id})
    return jsonify(message="Subscription cancelled successfully")


@stripe_bp.post("/change")
@owner_required
def change_subscription():
    data = request.get_json(silent=True) or {}
    user_id = data.get("userId")
    if not user_id:
        return jsonify(error="User ID is required"), 400
    try:
        url = billing.create_change_subscription_session(user_id, data.get("returnUrl"))
    except APIError:
        raise
    except Exception as e:
        return _failure("Failed to create billing portal session", e, userId=user_id)
    return jsonify(url=url)


@stripe_bp.get("/session/<session_id>")
@api_login_required
def session_details(session_id):
    try:
        return jsonify(billing.get_session_details(session_id))
    except Exception as e:
        return _failure("Failed to fetch checkout session", e, sessionId=session_id)
