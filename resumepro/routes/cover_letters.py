# resumepro/routes/cover_letters.py
from flask import Blueprint, jsonify, request
from flask_login import current_user

from ..errors import BadRequest, NotFound
from ..security.auth import api_login_required
from ..services import ai, cover_letters
from ..services.subscriptions import consume_feature

cover_letters_bp = Blueprint("cover_letters", __name__, url_prefix="/api/cover-letters")


@cover_letters_bp.post("/generate")
@api_login_required
def generate():
    data = request.get_json(silent=True) or {}
    resume_data = data.get("resumeData")
    if not resume_data:
        raise BadRequest("resumeData is required")
    ai.require_client()
    consume_feature(current_user.id, "career_pro")
    content = cover_letters.generate_cover_letter(
        current_user.id, resume_data, data.get("jobDescription"), data.get("jobUrl")
    )
    return jsonify(coverLetter=content)


@cover_letters_bp.post("/save")
@api_login_required
def save():
    data = request.get_json(silent=True) or {}
    content = (data.get("content") or "").strip()
    if not content:
        raise BadRequest("content is required")
    try:
        cover_id = cover_letters.save_cover_letter(
            current_user.id,
            data.get("resumeId"),
            content,
            data.get("jobDescription"),
            data.get("jobUrl"),
            data.get("coverId"),
        )
    except RuntimeError as e:
        return jsonify(error=str(e)), 500
    return jsonify(coverId=cover_id)


@cover_letters_bp.get("/<cover_id>")
@api_login_required
def get_one(cover_id):
    try:
        doc = cover_letters.get_cover_letter(current_user.id, cover_id)
    except RuntimeError as e:
        return jsonify(error=str(e)), 500
    if doc is None:
        raise NotFound("Cover letter not found")
    return jsonify(doc)


@cover_letters_bp.get("/", strict_slashes=False)
@api_login_required
def get_all():
    try:
        return jsonify(cover_letters.get_all_cover_letters(current_user.id))
    except RuntimeError as e:
        return jsonify(error=str(e)), 500


@cover_letters_bp.delete("/<cover_id>")
@api_login_required
def delete(cover_id):
    cover_letters.delete_cover_letter(current_user.id, cover_id)
    return jsonify(message="Cover letter deleted successfully")
