# resumepro/parsing/extract.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from io import BytesIO
from typing import List, Optional

import docx
from PyPDF2 import PdfReader

from ..errors import DocumentParseError

logger = logging.getLogger(__name__)

MIME_TYPES = {
    "application/pdf": "pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "application/msword": "doc",
    "text/plain": "txt",
}
EXTENSIONS = {".pdf": "pdf", ".docx": "docx", ".doc": "doc", ".txt": "txt"}

LINE_TOLERANCE = 2.0  # points; fragments closer than this share a line

DOC_FAILED = "Failed to parse .doc file. Please try converting it to .docx or PDF format."
EMPTY_PDF = "No text could be extracted from the PDF. It may be a scanned image; please upload a text-based PDF or DOCX."
EMPTY_DOC = "No text could be extracted from the document."


@dataclass
class TextLine:
    text: str
    y: float = 0.0
    page: int = 0
    font_size: Optional[float] = None
    bold: bool = False
    style: Optional[str] = None


@dataclass
class ExtractedDocument:
    kind: str
    lines: List[TextLine] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "\n".join(ln.text for ln in self.lines)


def resolve_kind(filename: str | None, content_type: str | None) -> str:
    ctype = (content_type or "").split(";")[0].strip().lower()
    if ctype in MIME_TYPES:
        return MIME_TYPES[ctype]
    ext = os.path.splitext(filename or "")[1].lower()
    if ext in EXTENSIONS:
        return EXTENSIONS[ext]
    raise DocumentParseError(f"Unsupported file type: {ctype or ext or 'unknown'}")


# ---------- PDF ----------
def _is_bold_font(font_dict) -> bool:
    try:
        name = str((font_dict or {}).get("/BaseFont", ""))
    except Exception:
        return False
    return "bold" in name.lower()


def _pdf_lines(raw: bytes) -> List[TextLine]:
    reader = PdfReader(BytesIO(raw))
    fragments = []  # (page, y, x, text, font_size, bold)

    for page_no, page in enumerate(reader.pages):
        def visitor(text, cm, tm, font_dict, font_size, _page=page_no):
            if not text or not text.strip():
                return
            # text space -> device space: translation part of tm x cm
            x = tm[4] * cm[0] + tm[5] * cm[2] + cm[4]
            y = tm[4] * cm[1] + tm[5] * cm[3] + cm[5]
            scale = abs(tm[3] * cm[3]) or 1.0
            size = float(font_size or 0) * scale or None
            for part in text.split("\n"):
                if part.strip():
                    fragments.append((_page, y, x, part, size, _is_bold_font(font_dict)))

        page.extract_text(visitor_text=visitor)

    # top-to-bottom, then left-to-right
    fragments.sort(key=lambda f: (f[0], -f[1], f[2]))

    lines: List[TextLine] = []
    parts: List[tuple] = []

    def flush():
        if not parts:
            return
        parts.sort(key=lambda f: f[2])
        text = ""
        for frag in parts:
            piece = frag[3]
            if text and not text.endswith(" ") and not piece.startswith(" "):
                text += " "
            text += piece
        sizes = [f[4] for f in parts if f[4]]
        lines.append(TextLine(
            text=" ".join(text.split()),
            y=parts[0][1],
            page=parts[0][0],
            font_size=max(sizes) if sizes else None,
            bold=all(f[5] for f in parts),
        ))
        parts.clear()

    for frag in fragments:
        if parts and (frag[0] != parts[0][0] or abs(round(frag[1]) - round(parts[0][1])) > LINE_TOLERANCE):
            flush()
        parts.append(frag)
    flush()

    if not lines:
        # some producers give no positional callbacks; fall back to plain extraction
        for page_no, page in enumerate(reader.pages):
            for text in (page.extract_text() or "").splitlines():
                if text.strip():
                    lines.append(TextLine(text=text.strip(), page=page_no))
    return lines


# ---------- Word ----------
def _docx_lines(raw: bytes) -> List[TextLine]:
    d = docx.Document(BytesIO(raw))
    lines: List[TextLine] = []
    for p in d.paragraphs:
        text = (p.text or "").strip()
        if not text:
            continue
        runs = [r for r in p.runs if (r.text or "").strip()]
        sizes = [r.font.size.pt for r in runs if r.font is not None and r.font.size is not None]
        lines.append(TextLine(
            text=text,
            y=float(-len(lines)),
            font_size=max(sizes) if sizes else None,
            bold=bool(runs) and all(bool(r.bold) for r in runs),
            style=p.style.name if p.style is not None else None,
        ))
    for table in d.tables:
        for row in table.rows:
            seen = set()
            for cell in row.cells:
                # merged cells repeat across the row
                text = (cell.text or "").strip()
                if text and text not in seen:
                    seen.add(text)
                    for part in text.splitlines():
                        if part.strip():
                            lines.append(TextLine(text=part.strip(), y=float(-len(lines))))
    return lines


def _txt_lines(raw: bytes) -> List[TextLine]:
    text = raw.decode("utf-8", errors="ignore")
    return [TextLine(text=ln.strip(), y=float(-i)) for i, ln in enumerate(text.splitlines()) if ln.strip()]


def extract_document(filename: str | None, content_type: str | None, raw: bytes) -> ExtractedDocument:
    kind = resolve_kind(filename, content_type)
    if not raw:
        raise DocumentParseError(EMPTY_DOC)

    try:
        if kind == "pdf":
            lines = _pdf_lines(raw)
        elif kind in ("docx", "doc"):
            lines = _docx_lines(raw)
        else:
            lines = _txt_lines(raw)
    except Exception as e:
        logger.info("Extraction failed for %s (%s)", filename, kind, exc_info=True)
        if kind == "doc":
            raise DocumentParseError(DOC_FAILED) from e
        raise DocumentParseError(f"Failed to read {kind.upper()} file") from e

    if not lines:
        raise DocumentParseError(EMPTY_PDF if kind == "pdf" else EMPTY_DOC)
    return ExtractedDocument(kind=kind, lines=lines)
