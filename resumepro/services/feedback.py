# resumepro/services/feedback.py
"""Bug reports and affiliate requests: small insert/lookup tables."""
from __future__ import annotations

import uuid
from typing import List, Optional

from flask import current_app

from .logs import now_iso


def _supabase():
    return current_app.config["SUPABASE_ADMIN"]


# ---------- bug reports ----------
def create_bug_report(user_id: str, title: str, description: str) -> dict:
    report = {
        "id": uuid.uuid4().hex,
        "user_id": user_id,
        "title": title,
        "description": description,
        "status": "open",
        "created_at": now_iso(),
    }
    try:
        _supabase().table("bug_reports").insert(report).execute()
    except Exception as e:
        current_app.logger.exception("Error creating bug report")
        raise RuntimeError("Failed to create bug report") from e
    return report


def get_bug_reports() -> List[dict]:
    try:
        res = _supabase().table("bug_reports").select("*").order("created_at", desc=True).execute()
    except Exception as e:
        current_app.logger.exception("Error fetching bug reports")
        raise RuntimeError("Failed to fetch bug reports") from e
    return list(getattr(res, "data", None) or [])


# ---------- affiliates ----------
def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def find_affiliate_by_email(email: str) -> Optional[dict]:
    res = (
        _supabase().table("affiliate_requests")
        .select("*")
        .eq("email", _normalize_email(email))
        .limit(1)
        .execute()
    )
    data = getattr(res, "data", None) or []
    return data[0] if data else None


def create_affiliate(name: str, email: str, phone: str | None = None) -> dict:
    request_row = {
        "id": uuid.uuid4().hex,
        "name": name.strip(),
        "email": _normalize_email(email),
        "phone": (phone or "").strip() or None,
        "status": "pending",
        "created_at": now_iso(),
    }
    _supabase().table("affiliate_requests").insert(request_row).execute()
    return request_row
