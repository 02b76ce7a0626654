# resumepro/routes/resume.py
from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user

from ..errors import BadRequest
from ..security.auth import api_login_required
from ..services import resumes

resume_bp = Blueprint("resume", __name__, url_prefix="/api/resume")


@resume_bp.post("/saveresume")
@api_login_required
def save_resume():
    data = request.get_json(silent=True) or {}
    resume_data = data.get("resumeData")
    if not isinstance(resume_data, dict):
        raise BadRequest("resumeData is required")
    try:
        resume_id = resumes.save_resume(current_user.id, resume_data, data.get("name"), data.get("resumeId"))
    except RuntimeError as e:
        return jsonify(error=str(e)), 500
    return jsonify(resumeId=resume_id)


@resume_bp.get("/getresume/<resume_id>")
@api_login_required
def get_resume(resume_id):
    try:
        doc = resumes.get_resume(current_user.id, resume_id)
    except RuntimeError as e:
        return jsonify(error=str(e)), 500
    if doc is None:
        return jsonify(error="Resume not found"), 404
    return jsonify(doc)


@resume_bp.get("/getallresumes")
@api_login_required
def get_all_resumes():
    try:
        return jsonify(resumes.get_all_resumes(current_user.id))
    except RuntimeError as e:
        return jsonify(error=str(e)), 500


@resume_bp.delete("/<resume_id>")
@api_login_required
def delete_resume(resume_id):
    try:
        resumes.delete_resume(current_user.id, resume_id)
    except RuntimeError as e:
        return jsonify(error=str(e)), 500
    current_app.logger.info("Resume %s deleted", resume_id)
    return jsonify(message="Resume deleted successfully")
