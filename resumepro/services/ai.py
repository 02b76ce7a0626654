# resumepro/services/ai.py
from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Optional

from flask import current_app

from ..errors import ServiceUnavailable, UpstreamError

PARSE_PROMPT = """You are a helpful assistant that parses resumes into structured sections. Given a resume text, you will return a JSON object containing the sections and their content.

Instructions:
- Analyze the provided resume text.
- Identify the main sections (e.g., Personal Information, Professional Summary, Skills, Experience, Education, Miscellaneous).
- Return a JSON object with each section as a key and the corresponding content as the value.
- Preserve line breaks and spacing where appropriate.
- Handle both traditional and modern resume formats.

The response should be in the following format:
{
  "sections": {"Section Name": "Section Content"},
  "metadata": {"totalSections": number, "sectionsList": ["Section Name"]}
}

Do not include any additional explanations or notes."""

ANALYZE_PROMPT = """You are a professional resume reviewer. You will analyze the provided resume sections and provide specific, non-repetitive feedback.

Important Context:
- You will receive resume data already parsed into sections
- DO NOT suggest adding sections that already exist
- DO NOT suggest formatting changes for sections that show good structure

Analyze and provide:
1. A score from 0-100 based on: quality and impact of achievements (40%), skills relevance and depth (20%), experience progression (20%), overall presentation (20%).
2. Specific suggestions for improvement (content quality, quantified achievements, truly missing sections, weak or vague content).
3. Current strengths (strong achievements and metrics, role progression, action verbs, technical depth).

Format your response in plain text with clear headers:
Score: [number]

Strengths:
- [strength 1]

Suggestions:
- [suggestion 1]"""

ENHANCE_PROMPT = """You are a professional resume writer tasked with enhancing resume content. Focus on:
1. Making achievements more impactful: specific metrics, strong action verbs, business impact.
2. Improving clarity and conciseness: remove redundancy, direct sentences, professional tone.
3. Enhancing technical content: current terminology, relevant technologies.

Keep every section header exactly as given, in the form "=== section ===", followed by the enhanced content.
Respond with enhanced content only. Do not include explanations or formatting instructions."""

CLASSIFY_PROMPT = """You are an AI trained to classify resume sections. Given a text snippet and optional context, determine which resume section it belongs to.

Common resume sections include: Contact Information, Professional Summary / Summary, Work Experience / Experience, Education, Skills, Projects, Certifications, Awards & Achievements, Languages, Volunteer Experience, Publications, References.

Respond with a JSON object containing:
{"sectionType": "most appropriate section name", "confidence": confidence score between 0 and 1}"""

COVER_LETTER_PROMPT = """You are a professional cover letter writer. Create a compelling cover letter that:
1. Matches the candidate's experience with job requirements
2. Highlights relevant achievements and skills
3. Shows enthusiasm for the role and company
4. Maintains a professional yet engaging tone
5. Includes specific examples from their experience

Format the cover letter properly with a professional greeting, 2-3 focused paragraphs and a professional closing.

Do not include: the date, physical addresses, or generic phrases like "To Whom It May Concern"."""

NOT_CONFIGURED = "OpenAI API key not configured"
HEADER_RE = re.compile(r"^\s*===\s*(.+?)\s*===\s*$")


# ---------- client helpers ----------
def require_client():
    client = current_app.config.get("OPENAI_CLIENT")
    if client is None:
        raise ServiceUnavailable(NOT_CONFIGURED)
    return client


def _chat(system: str, user: str, *, model: str, temperature: float, json_mode: bool = False) -> str:
    client = require_client()
    kwargs: Dict[str, Any] = {}
    if json_mode:
        kwargs["response_format"] = {"type": "json_object"}
    try:
        resp = client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            temperature=temperature,
            **kwargs,
        )
    except Exception as e:
        current_app.logger.exception("OpenAI request failed")
        raise UpstreamError("AI provider error. Please try again.") from e
    content = (resp.choices[0].message.content or "").strip()
    if not content:
        raise UpstreamError("No response from OpenAI")
    return content


def _fast_model() -> str:
    return current_app.config.get("OPENAI_MODEL_FAST", "gpt-4o-mini")


def _quality_model() -> str:
    return current_app.config.get("OPENAI_MODEL_QUALITY", "gpt-4o")


def strip_fences(text: str) -> str:
    return re.sub(r"```(?:json)?", "", text or "").strip()


def load_json_reply(text: str) -> dict:
    content = strip_fences(text)
    s, e = content.find("{"), content.rfind("}")
    if s == -1 or e <= s:
        raise UpstreamError("AI reply was not valid JSON")
    try:
        return json.loads(content[s:e + 1])
    except ValueError as exc:
        raise UpstreamError("AI reply was not valid JSON") from exc


# ---------- rendering helpers ----------
def _render_value(name: str, content: Any) -> str:
    if isinstance(content, str):
        return content
    if name.lower() == "experience" and isinstance(content, dict):
        blocks = []
        for period, details in content.items():
            details = details or {}
            block = [
                str(period),
                f"Position: {details.get('Position', '')}",
                f"Company: {details.get('Company', '')}",
                f"Location: {details.get('Location', '')}",
            ]
            if details.get("Description"):
                block.append(f"Description: {details['Description']}")
            blocks.append("\n".join(block))
        return "\n\n".join(blocks)
    if name.lower() == "skills" and isinstance(content, list):
        return ", ".join(str(s) for s in content)
    if isinstance(content, (list, dict)):
        return json.dumps(content, ensure_ascii=False, indent=2)
    return "" if content is None else str(content)


def render_sections(sections: Dict[str, Any]) -> str:
    return "\n\n".join(f"=== {name} ===\n{_render_value(name, content)}" for name, content in sections.items())


def _as_sections(resume_data: Any) -> Dict[str, Any]:
    """Accept parsed ({sections: ...}), flat dict, or raw/JSON text."""
    if isinstance(resume_data, str):
        try:
            resume_data = json.loads(resume_data)
        except ValueError:
            return {"Content": resume_data}
    if not isinstance(resume_data, dict):
        return {"Content": str(resume_data or "")}
    sections = resume_data.get("sections")
    if isinstance(sections, dict):
        return sections
    if isinstance(sections, list):
        # output of parsing.parse_document
        return {(s.get("heading") or s.get("category") or "Section"): s.get("content", "") for s in sections}
    return resume_data


# ---------- public API ----------
def parse_resume(resume_text: str) -> dict:
    reply = _chat(PARSE_PROMPT, f"Resume Text:\n```\n{resume_text}\n```",
                  model=_fast_model(), temperature=0, json_mode=True)
    parsed = load_json_reply(reply)
    sections = parsed.get("sections") or {}
    meta = parsed.get("metadata") or {}
    meta.setdefault("sectionsList", list(sections.keys()))
    meta.setdefault("totalSections", len(sections))
    return {"sections": sections, "metadata": meta}


def parse_review(reply: str) -> dict:
    score_m = re.search(r"score\s*:\s*(\d{1,3})", reply, re.I)
    score = min(100, int(score_m.group(1))) if score_m else 0
    strengths: List[str] = []
    suggestions: List[str] = []
    current: Optional[List[str]] = None
    for line in reply.splitlines():
        s = line.strip()
        if s.lower().startswith("strengths"):
            current = strengths
        elif s.lower().startswith("suggestions"):
            current = suggestions
        elif s[:1] in ("-", "•", "*") and current is not None:
            item = s[1:].strip()
            if item:
                current.append(item)
    return {"score": score, "strengths": strengths, "suggestions": suggestions}


def analyze_resume(resume_data: Any) -> dict:
    if current_app.config.get("OPENAI_CLIENT") is None:
        return {
            "score": 0,
            "suggestions": ["Please configure your OpenAI API key in the .env file"],
            "strengths": [],
        }
    user = "Resume Content:\n" + render_sections(_as_sections(resume_data))
    reply = _chat(ANALYZE_PROMPT, user, model=_fast_model(), temperature=0.7)
    return parse_review(reply)


def split_sections(reply: str) -> Dict[str, str]:
    out: Dict[str, List[str]] = {}
    current = None
    for line in reply.splitlines():
        m = HEADER_RE.match(line)
        if m:
            current = m.group(1).strip().lower()
            out[current] = []
        elif current is not None:
            out[current].append(line)
    return {k: "\n".join(v).strip() for k, v in out.items()}


def enhance_resume(resume_data: Dict[str, Any]) -> Dict[str, str]:
    user = "Original Resume Content:\n\n" + render_sections(_as_sections(resume_data))
    reply = _chat(ENHANCE_PROMPT, user, model=_quality_model(), temperature=0.7)
    enhanced = split_sections(reply)
    if not enhanced:
        raise UpstreamError("AI reply had no sections")
    return enhanced


def classify_section(text: str, context: str | None = None) -> dict:
    user = f"Text to classify:\n```\n{text}\n```\n\nContext (if any):\n{context or 'No additional context provided'}"
    reply = _chat(CLASSIFY_PROMPT, user, model=_fast_model(), temperature=0, json_mode=True)
    js = load_json_reply(reply)
    try:
        confidence = float(js.get("confidence", 0))
    except (TypeError, ValueError):
        confidence = 0.0
    return {
        "sectionType": str(js.get("sectionType") or "Miscellaneous"),
        "confidence": max(0.0, min(1.0, confidence)),
    }


def generate_cover_letter(resume_data: Any, job_description: str | None = None, job_url: str | None = None) -> str:
    user = (
        "Resume Content:\n" + render_sections(_as_sections(resume_data))
        + f"\n\nJob Description:\n{job_description or 'No job description provided'}"
        + f"\n\nJob URL:\n{job_url or 'No job URL provided'}"
    )
    return _chat(COVER_LETTER_PROMPT, user, model=_quality_model(), temperature=0.7)
