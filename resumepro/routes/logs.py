# resumepro/routes/logs.py
from flask import Blueprint, current_app, jsonify, request

from ..services.logs import EVENT_TYPES, log_event, safe_log_event

logs_bp = Blueprint("logs", __name__, url_prefix="/api/logs")


@logs_bp.post("/log")
def create_log():
    data = request.get_json(silent=True) or {}
    event_type, message = data.get("eventType"), data.get("message")
    if event_type not in EVENT_TYPES or not message:
        return jsonify(error="Invalid log entry"), 400
    try:
        log_event(event_type, message, data.get("data"), data.get("timestamp"))
    except Exception as e:
        current_app.logger.exception("Error writing log entry")
        safe_log_event("ERROR", "Failed to write log entry", {"error": str(e)})
        return jsonify(error="Failed to write log entry"), 500
    return jsonify(success=True), 201
