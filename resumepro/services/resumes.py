# resumepro/services/resumes.py
from __future__ import annotations

import uuid
from typing import Any, Dict, List, Optional

from flask import current_app

from ..errors import NotFound
from ..parsing.formatting import format_phone_number
from .logs import now_iso, safe_log_event

MAX_LISTED = 50


def _first(resp) -> Optional[dict]:
    data = getattr(resp, "data", None) or []
    return data[0] if data else None


def _normalize_data(resume_data: Dict[str, Any] | None) -> Dict[str, Any]:
    data = dict(resume_data or {})
    if data.get("phone"):
        data["phone"] = format_phone_number(str(data["phone"]))
    data.setdefault("jobs", [])
    data.setdefault("education", [])
    if isinstance(data.get("skills"), list):
        data["skills"] = ", ".join(str(s).strip() for s in data["skills"] if str(s).strip())
    return data


def save_resume(user_id: str, resume_data: Dict[str, Any], name: str | None = None, resume_id: str | None = None) -> str:
    """
    Full-document write. With resume_id the row is overwritten (created_at kept when it exists),
    otherwise a new row is inserted.
    """
    supabase = current_app.config["SUPABASE_ADMIN"]
    ts = now_iso()
    row = {
        "user_id": user_id,
        "name": (name or "").strip() or "Untitled Resume",
        "data": _normalize_data(resume_data),
        "updated_at": ts,
    }
    try:
        if resume_id:
            existing = _first(
                supabase.table("resumes").select("user_id,created_at").eq("id", resume_id).limit(1).execute()
            )
            if existing and existing.get("user_id") != user_id:
                raise NotFound("Resume not found")
            row["id"] = resume_id
            row["created_at"] = (existing or {}).get("created_at") or ts
            supabase.table("resumes").upsert(row, on_conflict="id").execute()
            return resume_id

        row["id"] = uuid.uuid4().hex
        row["created_at"] = ts
        supabase.table("resumes").insert(row).execute()
        return row["id"]
    except NotFound:
        raise
    except Exception as e:
        current_app.logger.exception("Error saving resume")
        safe_log_event("ERROR", "Failed to save resume", {"error": str(e), "userId": user_id})
        raise RuntimeError("Failed to save resume") from e


def get_resume(user_id: str, resume_id: str) -> Optional[dict]:
    supabase = current_app.config["SUPABASE_ADMIN"]
    try:
        row = _first(supabase.table("resumes").select("*").eq("id", resume_id).limit(1).execute())
    except Exception as e:
        current_app.logger.exception("Error fetching resume")
        safe_log_event("ERROR", "Failed to fetch resume", {"error": str(e), "userId": user_id, "resumeId": resume_id})
        raise RuntimeError("Failed to fetch resume") from e
    if not row or row.get("user_id") != user_id:
        return None
    return row


def get_all_resumes(user_id: str) -> List[dict]:
    supabase = current_app.config["SUPABASE_ADMIN"]
    try:
        resp = (
            supabase.table("resumes")
            .select("*")
            .eq("user_id", user_id)
            .order("updated_at", desc=True)
            .limit(MAX_LISTED)
            .execute()
        )
    except Exception as e:
        current_app.logger.exception("Error fetching all resumes")
        safe_log_event("ERROR", "Failed to fetch all resumes", {"error": str(e), "userId": user_id})
        raise RuntimeError("Failed to fetch all resumes") from e
    return list(getattr(resp, "data", None) or [])


def delete_resume(user_id: str, resume_id: str) -> None:
    if get_resume(user_id, resume_id) is None:
        raise NotFound("Resume not found")
    supabase = current_app.config["SUPABASE_ADMIN"]
    supabase.table("resumes").delete().eq("id", resume_id).eq("user_id", user_id).execute()
