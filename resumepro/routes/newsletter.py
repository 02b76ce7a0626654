# resumepro/routes/newsletter.py
from flask import Blueprint, current_app, jsonify, request

from ..services.newsletter import NewsletterConfigError, NewsletterService

newsletter_bp = Blueprint("newsletter", __name__, url_prefix="/api/newsletter")


@newsletter_bp.post("/subscribe")
def subscribe():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip()
    if not email:
        return jsonify(error="Email is required"), 400
    try:
        service = NewsletterService.from_config(current_app.config)
    except NewsletterConfigError as e:
        current_app.logger.error("Newsletter not configured")
        return jsonify(error=str(e)), 500
    result = service.subscribe(email)
    if not result["success"]:
        return jsonify(error=result["error"]), 400
    return jsonify(result["data"])
