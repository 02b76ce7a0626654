# resumepro/routes/feedback.py
from flask import Blueprint, current_app, jsonify, request

from ..security.auth import owner_required
from ..services import feedback
from ..services.logs import safe_log_event

bug_bp = Blueprint("bug", __name__, url_prefix="/api/bug")
affiliate_bp = Blueprint("affiliate", __name__, url_prefix="/api/affiliate")


@bug_bp.post("/report/<user_id>")
@owner_required
def report_bug(user_id):
    data = request.get_json(silent=True) or {}
    title = (data.get("title") or "").strip()
    description = (data.get("description") or "").strip()
    if not title or not description:
        return jsonify(error="Title and description are required"), 400
    try:
        report = feedback.create_bug_report(user_id, title, description)
    except Exception as e:
        current_app.logger.exception("Error submitting bug report")
        safe_log_event("ERROR", "Failed to submit bug report", {"error": str(e), "userId": user_id})
        return jsonify(error="Failed to submit bug report"), 500
    return jsonify(bugReport=report), 201


@affiliate_bp.post("/create")
def create_affiliate():
    data = request.get_json(silent=True) or {}
    name = (data.get("name") or "").strip()
    email = (data.get("email") or "").strip()
    if not name or not email:
        return jsonify(error="Name and email are required"), 400
    try:
        if feedback.find_affiliate_by_email(email):
            return jsonify(error="An affiliate request for this email already exists"), 400
        created = feedback.create_affiliate(name, email, data.get("phone"))
    except Exception as e:
        current_app.logger.exception("Error creating affiliate request")
        safe_log_event("ERROR", "Failed to create affiliate request", {"error": str(e)})
        return jsonify(error="Failed to create affiliate request"), 500
    return jsonify(created), 201


@affiliate_bp.get("/<email>")
@affiliate_bp.get("/status/<email>")
def get_affiliate(email):
    found = feedback.find_affiliate_by_email(email)
    if not found:
        return jsonify(error="Affiliate request not found"), 404
    return jsonify(found)
