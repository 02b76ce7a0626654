# resumepro/parsing/headings.py
from __future__ import annotations

import re
from typing import Optional, Tuple

from .formatting import EMAIL_PAT, PHONE_PAT, URL_PAT

CATEGORIES = ("Header", "Summary", "Experience", "Education", "Skills", "Miscellaneous")

# canonical heading keywords per category (lower-case, whole line)
SECTION_KEYWORDS = {
    "Header": (
        "contact", "contact information", "contact info", "contact details",
        "personal information", "personal details",
    ),
    "Summary": (
        "summary", "professional summary", "career summary", "executive summary",
        "profile", "professional profile", "personal profile", "objective",
        "career objective", "about", "about me",
    ),
    "Experience": (
        "experience", "work experience", "professional experience", "employment",
        "employment history", "work history", "career history", "relevant experience",
    ),
    "Education": (
        "education", "academic background", "education and training",
        "qualifications", "academic qualifications",
    ),
    "Skills": (
        "skills", "technical skills", "key skills", "core skills", "core competencies",
        "competencies", "areas of expertise", "expertise", "skills and abilities",
    ),
    "Miscellaneous": (
        "projects", "certifications", "certificates", "awards", "achievements",
        "awards and achievements", "languages", "volunteer", "volunteer experience",
        "volunteering", "publications", "references", "interests", "hobbies",
        "courses", "training", "activities", "leadership",
    ),
}

# looser substring fallbacks used for headings and LLM labels
_CONTAINS = (
    ("Header", ("contact", "personal information", "personal details")),
    ("Summary", ("summary", "profile", "objective", "about")),
    ("Experience", ("experience", "employment", "work history", "career history")),
    ("Education", ("education", "academic", "qualification")),
    ("Skills", ("skill", "competenc", "expertise", "technolog")),
)

ALL_KEYWORDS = {kw for words in SECTION_KEYWORDS.values() for kw in words}

MAX_HEADING_WORDS = 5
MAX_HEADING_CHARS = 40
LARGER_FONT_RATIO = 1.15

SENTENCE_END = re.compile(r"[.,;]$")
HAS_DIGIT = re.compile(r"\d")
HAS_LETTER = re.compile(r"[A-Za-z]")
HEADING_STYLE = re.compile(r"^heading\s*\d*$", re.I)


def normalize_heading(text: str) -> str:
    s = re.sub(r"[\s:|_\-–—]+$", "", (text or "").strip())
    s = s.replace("&", "and")
    return re.sub(r"\s+", " ", s).lower()


def keyword_category(heading: str | None) -> Tuple[Optional[str], float]:
    """(category, confidence) for a heading; exact keyword hit is 1.0, substring 0.8."""
    h = normalize_heading(heading or "")
    if not h:
        return None, 0.0
    for category, words in SECTION_KEYWORDS.items():
        if h in words:
            return category, 1.0
    for category, needles in _CONTAINS:
        if any(n in h for n in needles):
            return category, 0.8
    return None, 0.0


def label_category(label: str | None) -> str:
    """Map a free-text section label (e.g. from the classifier) onto a category."""
    category, _ = keyword_category(label)
    if category:
        return category
    h = normalize_heading(label or "")
    if h in (c.lower() for c in CATEGORIES):
        return h.capitalize()
    return "Miscellaneous"


def _is_short(text: str) -> bool:
    return len(text) <= MAX_HEADING_CHARS and len(text.split()) <= MAX_HEADING_WORDS


def is_heading(line, body_font_size: float | None = None) -> bool:
    """
    Accepts a TextLine or a plain string.
    Order matters: contact details and sentences are rejected before any styling is trusted.
    """
    text = getattr(line, "text", line) or ""
    text = text.strip()
    if not text or not HAS_LETTER.search(text):
        return False
    if EMAIL_PAT.search(text) or URL_PAT.search(text) or PHONE_PAT.search(text):
        return False

    bare = re.sub(r"[\s:]+$", "", text)
    if SENTENCE_END.search(bare) or HAS_DIGIT.search(bare):
        return False

    style = getattr(line, "style", None) or ""
    if HEADING_STYLE.match(style.strip()):
        return True

    if normalize_heading(bare) in ALL_KEYWORDS:
        return True

    if not _is_short(bare):
        return False

    if getattr(line, "bold", False):
        return True

    font_size = getattr(line, "font_size", None)
    if font_size and body_font_size and font_size >= body_font_size * LARGER_FONT_RATIO:
        return True

    letters = re.sub(r"[^A-Za-z]", "", bare)
    return bool(letters) and letters.isupper()
