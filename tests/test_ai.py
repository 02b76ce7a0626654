# tests/test_ai.py
import json
from io import BytesIO

import pytest

from resumepro.services import ai

REVIEW = """Score: 82

Strengths:
- Clear progression
- Strong metrics

Suggestions:
- Quantify the 2019 role
"""


def test_parse_resume_unwraps_fenced_json(client, auth_headers, openai_fake):
    payload = {"sections": {"Skills": "Python"}, "metadata": {"totalSections": 1, "sectionsList": ["Skills"]}}
    openai_fake.reply_with("```json\n" + json.dumps(payload) + "\n```")
    r = client.post("/api/ai/parse-resume/user-1", json={"resumeText": "SKILLS\nPython"}, headers=auth_headers)
    assert r.status_code == 200
    assert r.get_json() == payload
    call = openai_fake.completions.calls[0]
    assert call["temperature"] == 0
    assert call["response_format"] == {"type": "json_object"}


def test_parse_resume_fills_metadata(app, openai_fake):
    openai_fake.reply_with(json.dumps({"sections": {"Header": "Jane", "Skills": "Go"}}))
    with app.app_context():
        result = ai.parse_resume("text")
    assert result["metadata"] == {"sectionsList": ["Header", "Skills"], "totalSections": 2}


def test_invalid_json_reply_is_upstream_error(client, auth_headers, openai_fake):
    openai_fake.reply_with("not json at all")
    r = client.post("/api/ai/parse-resume/user-1", json={"resumeText": "x"}, headers=auth_headers)
    assert r.status_code == 502


def test_owner_enforced(client, other_headers):
    r = client.post("/api/ai/parse-resume/user-1", json={"resumeText": "x"}, headers=other_headers)
    assert r.status_code == 403


def test_analyze_with_trial(client, auth_headers, openai_fake, db):
    db.tables["subscriptions"] = [{
        "user_id": "user-1", "has_started_trial": True,
        "trials": {"resume_creator": {"remaining": 3}, "resume_pro": {"remaining": 1}, "career_pro": {"remaining": 3}},
    }]
    openai_fake.reply_with(REVIEW)
    r = client.post("/api/ai/analyze-resume/user-1", json={"resumeData": "plain text resume"}, headers=auth_headers)
    assert r.status_code == 200
    assert r.get_json() == {
        "score": 82,
        "strengths": ["Clear progression", "Strong metrics"],
        "suggestions": ["Quantify the 2019 role"],
    }
    assert db.rows("subscriptions")[0]["trials"]["resume_pro"]["remaining"] == 0
    assert "=== Content ===\nplain text resume" in openai_fake.completions.calls[0]["messages"][1]["content"]

    # trial used up
    r = client.post("/api/ai/analyze-resume/user-1", json={"resumeData": "again"}, headers=auth_headers)
    assert r.status_code == 402


def test_analyze_without_key_returns_placeholder(app, client, auth_headers):
    app.config["OPENAI_CLIENT"] = None
    r = client.post("/api/ai/analyze-resume/user-1", json={"resumeData": "x"}, headers=auth_headers)
    assert r.status_code == 200
    body = r.get_json()
    assert body["score"] == 0
    assert "configure your OpenAI API key" in body["suggestions"][0]


def test_enhance_without_key_is_503(app, client, auth_headers, active_subscription):
    active_subscription()
    app.config["OPENAI_CLIENT"] = None
    r = client.post("/api/ai/enhance-resume/user-1", json={"resumeData": {"Summary": "x"}}, headers=auth_headers)
    assert r.status_code == 503
    assert r.get_json()["error"] == "OpenAI API key not configured"


def test_enhance_splits_sections(client, auth_headers, openai_fake, active_subscription):
    active_subscription(tier="resume_creator")
    openai_fake.reply_with("=== Summary ===\nSharper summary\n\n=== Skills ===\nPython, Go")
    r = client.post(
        "/api/ai/enhance-resume/user-1",
        json={"resumeData": {"Summary": "summary", "Skills": ["Python", "Go"]}},
        headers=auth_headers,
    )
    assert r.status_code == 200
    assert r.get_json() == {"summary": "Sharper summary", "skills": "Python, Go"}
    prompt = openai_fake.completions.calls[0]["messages"][1]["content"]
    assert "=== Skills ===\nPython, Go" in prompt


def test_classify_section_clamps_confidence(client, auth_headers, openai_fake):
    openai_fake.reply_with('{"sectionType": "Skills", "confidence": 1.7}')
    r = client.post(
        "/api/ai/classify-section/user-1", json={"text": "Python, Go", "context": None}, headers=auth_headers
    )
    assert r.get_json() == {"sectionType": "Skills", "confidence": 1.0}


def test_provider_error_is_502(client, auth_headers, openai_fake):
    openai_fake.completions.error = RuntimeError("rate limited")
    r = client.post("/api/ai/classify-section/user-1", json={"text": "x"}, headers=auth_headers)
    assert r.status_code == 502


def test_generate_cover_letter_route(client, auth_headers, openai_fake, active_subscription):
    active_subscription(tier="career_pro")
    openai_fake.reply_with("Letter body")
    r = client.post(
        "/api/ai/generate-cover-letter/user-1",
        json={"resumeData": {"fullName": "Jane"}, "jobUrl": "https://jobs.example.com/9"},
        headers=auth_headers,
    )
    assert r.get_json() == {"coverLetter": "Letter body"}


def test_experience_rendering():
    text = ai.render_sections({"Experience": {"2019-2021": {"Position": "Dev", "Company": "Acme", "Location": "NYC"}}})
    assert text == "=== Experience ===\n2019-2021\nPosition: Dev\nCompany: Acme\nLocation: NYC"


@pytest.mark.parametrize("reply, expected", [
    ("Score: 150", 100),
    ("no score here", 0),
])
def test_review_score_bounds(reply, expected):
    assert ai.parse_review(reply)["score"] == expected


def test_parse_document_upload(client, auth_headers, openai_fake):
    openai_fake.reply_with('{"sectionType": "Skills", "confidence": 0.9}')
    data = {"file": (BytesIO(b"Jane Doe\nTOOLBOX\nPython, Go\n"), "cv.txt", "text/plain")}
    r = client.post(
        "/api/ai/parse-document/user-1", data=data, headers=auth_headers, content_type="multipart/form-data"
    )
    assert r.status_code == 200
    body = r.get_json()
    assert [s["category"] for s in body["sections"]] == ["Header", "Skills"]
    assert body["metadata"]["source"] == "txt"


def test_parse_document_rejects_unsupported(client, auth_headers):
    data = {"file": (BytesIO(b"\x89PNG"), "photo.png", "image/png")}
    r = client.post(
        "/api/ai/parse-document/user-1", data=data, headers=auth_headers, content_type="multipart/form-data"
    )
    assert r.status_code == 400
    assert r.get_json()["error"] == "Unsupported file type: image/png"


def test_parse_document_requires_file(client, auth_headers):
    r = client.post("/api/ai/parse-document/user-1", data={}, headers=auth_headers, content_type="multipart/form-data")
    assert r.status_code == 400
