# resumepro/parsing/sections.py
from __future__ import annotations

import logging
import statistics
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .extract import TextLine
from .formatting import format_section
from .headings import is_heading, keyword_category, label_category

logger = logging.getLogger(__name__)

ACCEPT_CONFIDENCE = 0.7
AGREE_CONFIDENCE = 0.5
CONTEXT_CHARS = 500

# classifier(text, context) -> {"sectionType": str, "confidence": float}
Classifier = Callable[[str, str], dict]


@dataclass
class CandidateSection:
    heading: Optional[str]
    lines: List[str] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


@dataclass
class Section:
    category: str
    heading: Optional[str]
    lines: List[str]
    confidence: float

    @property
    def content(self) -> str:
        return format_section(self.category, self.lines)

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "heading": self.heading,
            "content": self.content,
            "confidence": round(self.confidence, 2),
        }


def body_font_size(lines: List[TextLine]) -> Optional[float]:
    sizes = [ln.font_size for ln in lines if ln.font_size]
    return statistics.median(sizes) if sizes else None


def segment(lines: List[TextLine]) -> List[CandidateSection]:
    """Split lines at headings. Text above the first heading becomes a headerless candidate."""
    body = body_font_size(lines)
    out: List[CandidateSection] = []
    current = CandidateSection(heading=None)
    for i, line in enumerate(lines):
        # the first line is the candidate's name unless it is a section keyword
        heading = is_heading(line, body) and (i > 0 or keyword_category(line.text)[1] == 1.0)
        if heading:
            if current.heading is not None or current.lines:
                out.append(current)
            current = CandidateSection(heading=line.text.strip().rstrip(":").strip())
        else:
            current.lines.append(line.text)
    if current.heading is not None or current.lines:
        out.append(current)
    return out


def context_window(candidates: List[CandidateSection], index: int, size: int = CONTEXT_CHARS) -> str:
    half = size // 2
    before = candidates[index - 1].text[-half:] if index > 0 else ""
    after = candidates[index + 1].text[:half] if index + 1 < len(candidates) else ""
    parts = []
    if before:
        parts.append(f"Previous section:\n{before}")
    if after:
        parts.append(f"Next section:\n{after}")
    return "\n\n".join(parts)


def _classify_one(
    candidate: CandidateSection,
    candidates: List[CandidateSection],
    index: int,
    previous: Optional[str],
    classifier: Optional[Classifier],
) -> tuple:
    if candidate.heading is None and index == 0:
        return "Header", 1.0

    category, confidence = keyword_category(candidate.heading)
    if category:
        return category, confidence
    if classifier is None:
        return "Miscellaneous", 0.0

    snippet = "\n".join(filter(None, [candidate.heading, candidate.text]))
    try:
        result = classifier(snippet, context_window(candidates, index)) or {}
    except Exception:
        logger.warning("Section classifier failed for %r", candidate.heading, exc_info=True)
        return "Miscellaneous", 0.0

    label = label_category(result.get("sectionType"))
    try:
        confidence = float(result.get("confidence") or 0)
    except (TypeError, ValueError):
        confidence = 0.0
    if confidence >= ACCEPT_CONFIDENCE:
        return label, confidence
    if confidence >= AGREE_CONFIDENCE and label == previous:
        return label, confidence
    return "Miscellaneous", confidence


def merge_adjacent(sections: List[Section]) -> List[Section]:
    merged: List[Section] = []
    for s in sections:
        if merged and merged[-1].category == s.category:
            prev = merged[-1]
            if prev.heading is None:
                prev.heading = s.heading
                prev.lines = prev.lines + s.lines
            else:
                # later headings stay visible inside the merged body
                prev.lines = prev.lines + ([s.heading] if s.heading else []) + s.lines
            prev.confidence = max(prev.confidence, s.confidence)
            continue
        merged.append(Section(s.category, s.heading, list(s.lines), s.confidence))
    return merged


def classify_sections(candidates: List[CandidateSection], classifier: Optional[Classifier] = None) -> List[Section]:
    sections: List[Section] = []
    for i, cand in enumerate(candidates):
        previous = sections[-1].category if sections else None
        category, confidence = _classify_one(cand, candidates, i, previous, classifier)
        sections.append(Section(category, cand.heading, list(cand.lines), confidence))
    return merge_adjacent(sections)
