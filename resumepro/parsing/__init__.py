# resumepro/parsing/__init__.py
"""
Résumé document parsing:
  extract (PDF / DOCX / DOC / TXT) -> heading detection -> segmentation
  -> keyword / classifier labelling -> merge -> per-category formatting
"""
from __future__ import annotations

from typing import Optional

from .extract import ExtractedDocument, TextLine, extract_document
from .formatting import format_phone_number, format_section
from .headings import is_heading
from .sections import CandidateSection, Classifier, Section, classify_sections, segment

__all__ = [
    "CandidateSection", "ExtractedDocument", "Section", "TextLine",
    "classify_sections", "extract_document", "format_phone_number",
    "format_section", "is_heading", "parse_document", "segment",
]


def parse_document(filename: str | None, content_type: str | None, raw: bytes,
                   classifier: Optional[Classifier] = None) -> dict:
    doc = extract_document(filename, content_type, raw)
    sections = [s.to_dict() for s in classify_sections(segment(doc.lines), classifier)]
    return {
        "sections": sections,
        "text": doc.text,
        "metadata": {
            "totalSections": len(sections),
            "sectionsList": [s["category"] for s in sections],
            "source": doc.kind,
        },
    }
