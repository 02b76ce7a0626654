# resumepro/parsing/formatting.py
from __future__ import annotations

import re
from typing import List

# ========= Patterns =========
MONTHS = r"(?:jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|jun(?:e)?|jul(?:y)?|aug(?:ust)?|sep(?:t|tember)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)"
DATE_TOKEN = rf"(?:{MONTHS}\.?\s+\d{{4}}|\d{{1,2}}/\d{{4}}|(?:19|20)\d{{2}})"
DATE_RANGE_PAT = re.compile(
    rf"\b({DATE_TOKEN})\s*(?:-|–|—|to|until)\s*({DATE_TOKEN}|present|current|now|today)\b",
    re.I,
)
EMAIL_PAT = re.compile(r"[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}", re.I)
PHONE_PAT = re.compile(r"\+?\d[\d\-\s().]{7,}\d")
URL_PAT   = re.compile(r"(?:https?://|www\.)\S+|\b(?:linkedin\.com|github\.com)/\S+", re.I)
BULLET_MARKERS = ("•", "-", "–", "—", "*", "▪", "●", "◦")
BULLET_PAT = re.compile(r"^\s*(?:[•\-–—*▪●◦])\s*")
CONTACT_SPLIT = re.compile(r"\s*(?:\||•|·|\s{3,})\s*")
SKILL_SPLIT = re.compile(r"\s*(?:,|;|\||•|·|▪|\n)\s*")


def format_phone_number(phone: str) -> str:
    """
    10 digits            -> (555) 123-4567
    11 digits leading 1  -> +1 (555) 123-4567
    anything else        -> digits grouped in threes
    """
    cleaned = re.sub(r"\D", "", phone or "")
    if len(cleaned) == 10:
        return f"({cleaned[:3]}) {cleaned[3:6]}-{cleaned[6:]}"
    if len(cleaned) == 11 and cleaned.startswith("1"):
        return f"+1 ({cleaned[1:4]}) {cleaned[4:7]}-{cleaned[7:]}"
    return re.sub(r"(\d{3})(?=\d)", r"\1-", cleaned)


def _title_month(token: str) -> str:
    token = re.sub(r"\s+", " ", token.strip())
    if token[:1].isalpha():
        return token[:1].upper() + token[1:].lower()
    return token


def normalize_date_ranges(text: str) -> str:
    def repl(m: re.Match) -> str:
        start, end = _title_month(m.group(1)), m.group(2)
        end = "Present" if end.lower() in ("present", "current", "now", "today") else _title_month(end)
        return f"{start} - {end}"
    return DATE_RANGE_PAT.sub(repl, text or "")


def is_bullet(line: str) -> bool:
    s = (line or "").lstrip()
    return bool(s) and s[0] in BULLET_MARKERS and (len(s) == 1 or s[1] == " " or s[0] not in "-*")


def normalize_bullets(lines: List[str]) -> List[str]:
    """Bullets become '- text'; lowercase continuation lines join their bullet."""
    out: List[str] = []
    for raw in lines:
        line = raw.strip()
        if not line:
            continue
        if is_bullet(line):
            item = BULLET_PAT.sub("", line).strip()
            if item:
                out.append(f"- {item}")
            continue
        if out and out[-1].startswith("- ") and line[:1].islower():
            out[-1] = f"{out[-1]} {line}"
            continue
        out.append(line)
    return out


def format_contact_lines(lines: List[str]) -> List[str]:
    """Email, phone and URLs each get their own line; other header text is kept in order."""
    out: List[str] = []
    for line in lines:
        for piece in CONTACT_SPLIT.split(line.strip()):
            piece = piece.strip(" ,;")
            if not piece:
                continue
            if EMAIL_PAT.fullmatch(piece) or URL_PAT.fullmatch(piece):
                out.append(piece)
            elif PHONE_PAT.fullmatch(piece):
                out.append(format_phone_number(piece))
            else:
                start = len(out)
                for pat in (EMAIL_PAT, URL_PAT):
                    for m in pat.finditer(piece):
                        out.append(m.group(0))
                        piece = piece.replace(m.group(0), " ")
                for m in PHONE_PAT.finditer(piece):
                    out.append(format_phone_number(m.group(0)))
                    piece = piece.replace(m.group(0), " ")
                rest = re.sub(r"\s+", " ", piece).strip(" ,;|")
                if rest:
                    # non-contact text stays ahead of the tokens pulled from it
                    out.insert(start, rest)
    return out


def format_skills(lines: List[str]) -> str:
    seen, skills = set(), []
    for line in lines:
        for s in SKILL_SPLIT.split(BULLET_PAT.sub("", line)):
            s = s.strip(" .")
            key = s.lower()
            if s and key not in seen:
                seen.add(key)
                skills.append(s)
    return ", ".join(skills)


def format_section(category: str, lines: List[str]) -> str:
    lines = [ln for ln in (l.strip() for l in lines) if ln]
    if category == "Header":
        return "\n".join(format_contact_lines(lines))
    if category == "Skills":
        return format_skills(lines)
    if category == "Summary":
        return " ".join(BULLET_PAT.sub("", ln) for ln in lines)
    if category in ("Experience", "Education"):
        return "\n".join(normalize_bullets([normalize_date_ranges(ln) for ln in lines]))
    return "\n".join(normalize_bullets(lines))
