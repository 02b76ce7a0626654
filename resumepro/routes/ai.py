# resumepro/routes/ai.py
from flask import Blueprint, current_app, jsonify, request

from ..errors import BadRequest
from ..parsing import parse_document
from ..security.auth import owner_required
from ..services import ai
from ..services.subscriptions import consume_feature

ai_bp = Blueprint("ai", __name__, url_prefix="/api/ai")


def _body() -> dict:
    return request.get_json(silent=True) or {}


def _gate(user_id: str, feature: str) -> None:
    # no trial use is spent when the provider is not configured
    ai.require_client()
    consume_feature(user_id, feature)


@ai_bp.post("/parse-resume/<user_id>")
@owner_required
def parse_resume(user_id):
    text = (_body().get("resumeText") or "").strip()
    if not text:
        raise BadRequest("resumeText is required")
    return jsonify(ai.parse_resume(text))


@ai_bp.post("/parse-document/<user_id>")
@owner_required
def parse_uploaded_document(user_id):
    f = request.files.get("file")
    if f is None or not f.filename:
        raise BadRequest("No file uploaded")
    raw = f.read()
    classifier = ai.classify_section if current_app.config.get("OPENAI_CLIENT") is not None else None
    result = parse_document(f.filename, f.mimetype, raw, classifier=classifier)
    current_app.logger.info(
        "Parsed %s for %s: %d sections", result["metadata"]["source"], user_id, result["metadata"]["totalSections"]
    )
    return jsonify(result)


@ai_bp.post("/analyze-resume/<user_id>")
@owner_required
def analyze_resume(user_id):
    resume_data = _body().get("resumeData")
    if not resume_data:
        raise BadRequest("resumeData is required")
    if current_app.config.get("OPENAI_CLIENT") is not None:
        consume_feature(user_id, "resume_pro")
    return jsonify(ai.analyze_resume(resume_data))


@ai_bp.post("/enhance-resume/<user_id>")
@owner_required
def enhance_resume(user_id):
    resume_data = _body().get("resumeData")
    if not resume_data:
        raise BadRequest("resumeData is required")
    _gate(user_id, "resume_creator")
    return jsonify(ai.enhance_resume(resume_data))


@ai_bp.post("/classify-section/<user_id>")
@owner_required
def classify_section(user_id):
    data = _body()
    text = (data.get("text") or "").strip()
    if not text:
        raise BadRequest("text is required")
    return jsonify(ai.classify_section(text, data.get("context")))


@ai_bp.post("/generate-cover-letter/<user_id>")
@owner_required
def generate_cover_letter(user_id):
    data = _body()
    resume_data = data.get("resumeData")
    if not resume_data:
        raise BadRequest("resumeData is required")
    _gate(user_id, "career_pro")
    letter = ai.generate_cover_letter(resume_data, data.get("jobDescription"), data.get("jobUrl"))
    return jsonify(coverLetter=letter)
