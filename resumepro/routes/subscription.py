# resumepro/routes/subscription.py
from flask import Blueprint, current_app, jsonify, request

from ..security.auth import owner_required
from ..services import subscriptions as subs
from ..services.logs import safe_log_event

subscription_bp = Blueprint("subscription", __name__, url_prefix="/api/subscription")


@subscription_bp.get("/status/<user_id>")
@owner_required
def status(user_id):
    try:
        return jsonify(subs.get_subscription_status(user_id))
    except Exception as e:
        current_app.logger.exception("Error getting subscription status")
        safe_log_event("ERROR", "Failed to get subscription status", {"error": str(e), "userId": user_id})
        return jsonify(success=False, message="Failed to get subscription status", error=str(e)), 500


@subscription_bp.post("/trial")
@owner_required
def trial():
    data = request.get_json(silent=True) or {}
    user_id, trial_type = data.get("userId"), data.get("trialType")
    if not user_id or not trial_type:
        return jsonify(success=False, message="User ID and trial type are required"), 400
    if trial_type not in subs.TRIAL_TYPES:
        return jsonify(success=False, message="Invalid trial type"), 400
    subs.update_trial_status(user_id, trial_type)
    return jsonify(success=True, message=f"{trial_type} trial status updated successfully")


@subscription_bp.post("/start-trial")
@owner_required
def start_trial():
    data = request.get_json(silent=True) or {}
    user_id = data.get("userId")
    if not user_id:
        return jsonify(success=False, message="User ID is required"), 400
    return jsonify(subs.start_trial(user_id))


@subscription_bp.post("/decrement-trial")
@owner_required
def decrement_trial():
    data = request.get_json(silent=True) or {}
    user_id, feature = data.get("userId"), data.get("feature")
    if not user_id or not feature:
        return jsonify(success=False, message="User ID and feature are required"), 400
    return jsonify(subs.decrement_trial_use(user_id, feature))
