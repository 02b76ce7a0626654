# resumepro/services/cover_letters.py
from __future__ import annotations

import uuid
from typing import Any, List, Optional

from flask import current_app

from ..errors import Forbidden, NotFound
from . import ai
from .logs import now_iso, safe_log_event


def _table():
    return current_app.config["SUPABASE_ADMIN"].table("cover_letters")


def _fetch(cover_id: str) -> Optional[dict]:
    res = _table().select("*").eq("id", cover_id).limit(1).execute()
    data = getattr(res, "data", None) or []
    return data[0] if data else None


def generate_cover_letter(user_id: str, resume_data: Any, job_description: str | None = None,
                          job_url: str | None = None) -> str:
    current_app.logger.info("Generating cover letter for %s", user_id)
    return ai.generate_cover_letter(resume_data, job_description, job_url)


def save_cover_letter(user_id: str, resume_id: str | None, content: str, job_description: str | None = None,
                      job_url: str | None = None, cover_id: str | None = None) -> str:
    ts = now_iso()
    row = {
        "user_id": user_id,
        "resume_id": resume_id,
        "content": content,
        "job_description": job_description,
        "job_url": job_url,
        "updated_at": ts,
    }
    try:
        if cover_id:
            existing = _fetch(cover_id)
            if existing and existing.get("user_id") != user_id:
                raise Forbidden("Unauthorized")
            row["id"] = cover_id
            row["created_at"] = (existing or {}).get("created_at") or ts
            _table().upsert(row, on_conflict="id").execute()
            return cover_id
        row["id"] = uuid.uuid4().hex
        row["created_at"] = ts
        _table().insert(row).execute()
        return row["id"]
    except Forbidden:
        raise
    except Exception as e:
        current_app.logger.exception("Error saving cover letter")
        safe_log_event("ERROR", "Failed to save cover letter", {"error": str(e), "userId": user_id})
        raise RuntimeError("Failed to save cover letter") from e


def get_cover_letter(user_id: str, cover_id: str) -> Optional[dict]:
    try:
        row = _fetch(cover_id)
    except Exception as e:
        current_app.logger.exception("Error fetching cover letter")
        safe_log_event("ERROR", "Failed to fetch cover letter", {"error": str(e), "userId": user_id, "coverId": cover_id})
        raise RuntimeError("Failed to fetch cover letter") from e
    if not row or row.get("user_id") != user_id:
        return None
    return row


def get_all_cover_letters(user_id: str) -> List[dict]:
    try:
        res = _table().select("*").eq("user_id", user_id).order("created_at", desc=True).execute()
    except Exception as e:
        current_app.logger.exception("Error fetching cover letters")
        safe_log_event("ERROR", "Failed to fetch cover letters", {"error": str(e), "userId": user_id})
        raise RuntimeError("Failed to fetch cover letters") from e
    return list(getattr(res, "data", None) or [])


def delete_cover_letter(user_id: str, cover_id: str) -> None:
    row = _fetch(cover_id)
    if not row:
        raise NotFound("Cover letter not found")
    if row.get("user_id") != user_id:
        raise Forbidden("Unauthorized")
    _table().delete().eq("id", cover_id).execute()
