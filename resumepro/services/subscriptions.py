# resumepro/services/subscriptions.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from flask import current_app

from ..errors import BadRequest, UpgradeRequired
from .logs import log_event, now_iso, safe_log_event

logger = logging.getLogger(__name__)

# ---------- Plan config ----------
TIERS = ("free", "resume_creator", "resume_pro", "career_pro")
FEATURES = ("resume_creator", "resume_pro", "career_pro")

# feature keys are tier names: resume_creator = create, resume_pro = review, career_pro = cover letter
TIER_FEATURES = {
    "free":           frozenset(),
    "resume_creator": frozenset({"resume_creator"}),
    "resume_pro":     frozenset({"resume_creator", "resume_pro"}),
    "career_pro":     frozenset({"resume_creator", "resume_pro", "career_pro"}),
}

# legacy one-shot trial flags
TRIAL_TYPES = {
    "creator":  "has_used_creator_trial",
    "reviewer": "has_used_reviewer_trial",
}

ACTIVE_STATUSES = ("active", "trialing")


def _tier_code(tier: str | None) -> str:
    t = (tier or "free").lower()
    return t if t in TIER_FEATURES else "free"


def _empty_trials() -> Dict[str, Dict[str, int]]:
    return {f: {"remaining": 0} for f in FEATURES}


def _as_int(val) -> int:
    try:
        return max(0, int(val))
    except Exception:
        return 0


def _normalize_trials(raw: Any) -> Dict[str, Dict[str, int]]:
    trials = _empty_trials()
    if isinstance(raw, dict):
        for f in FEATURES:
            entry = raw.get(f)
            if isinstance(entry, dict):
                trials[f]["remaining"] = _as_int(entry.get("remaining"))
            elif entry is not None:
                trials[f]["remaining"] = _as_int(entry)
    return trials


def _supabase():
    return current_app.config["SUPABASE_ADMIN"]


def get_subscription_row(user_id: str) -> Optional[dict]:
    res = _supabase().table("subscriptions").select("*").eq("user_id", user_id).limit(1).execute()
    data = getattr(res, "data", None) or []
    return data[0] if data else None


def merge_subscription(user_id: str, fields: Dict[str, Any]) -> None:
    payload = {"user_id": user_id, **fields, "updated_at": now_iso()}
    _supabase().table("subscriptions").upsert(payload, on_conflict="user_id").execute()


def status_from_row(row: Optional[dict]) -> dict:
    row = row or {}
    tier = _tier_code(row.get("tier"))
    return {
        "tier": tier,
        "status": row.get("status") or "none",
        "is_active": bool(row.get("is_active", False)),
        "hasStartedTrial": bool(row.get("has_started_trial", False)),
        "trials": _normalize_trials(row.get("trials")),
        "subscription_end_date": row.get("subscription_end_date"),
        "renewal_date": row.get("renewal_date"),
        "stripeCustomerId": row.get("stripe_customer_id"),
        "stripeSubscriptionId": row.get("stripe_subscription_id"),
        "has_used_creator_trial": bool(row.get("has_used_creator_trial", False)),
        "has_used_reviewer_trial": bool(row.get("has_used_reviewer_trial", False)),
        "features": sorted(TIER_FEATURES[tier]),
    }


# ---------- Public API ----------
def get_subscription_status(user_id: str) -> dict:
    return status_from_row(get_subscription_row(user_id))


def start_trial(user_id: str) -> dict:
    """Grant TRIAL_USES per feature once; later calls leave the counters alone."""
    row = get_subscription_row(user_id)
    if row and row.get("has_started_trial"):
        return status_from_row(row)
    uses = int(current_app.config.get("TRIAL_USES", 3))
    merge_subscription(user_id, {
        "has_started_trial": True,
        "trials": {f: {"remaining": uses} for f in FEATURES},
    })
    return get_subscription_status(user_id)


def decrement_trial_use(user_id: str, feature: str) -> dict:
    if feature not in FEATURES:
        raise BadRequest(f"Invalid feature: {feature}")
    row = get_subscription_row(user_id) or {}
    trials = _normalize_trials(row.get("trials"))
    trials[feature]["remaining"] = max(0, trials[feature]["remaining"] - 1)
    merge_subscription(user_id, {"trials": trials})
    return get_subscription_status(user_id)


def update_trial_status(user_id: str, trial_type: str) -> None:
    column = TRIAL_TYPES.get(trial_type)
    if not column:
        raise BadRequest("Invalid trial type")
    merge_subscription(user_id, {column: True})


def has_subscription_access(status: dict | None, feature: str) -> bool:
    if not status:
        return False
    active = status.get("is_active") or (status.get("status") in ACTIVE_STATUSES)
    if not active:
        return False
    return feature in TIER_FEATURES[_tier_code(status.get("tier"))]


def trial_remaining(status: dict | None, feature: str) -> int:
    if not status or not status.get("hasStartedTrial"):
        return 0
    return _as_int(((status.get("trials") or {}).get(feature) or {}).get("remaining"))


def can_use_feature(status: dict | None, feature: str) -> bool:
    return trial_remaining(status, feature) > 0 or has_subscription_access(status, feature)


def consume_feature(user_id: str, feature: str) -> dict:
    """
    Server-side gate for metered AI features.
    Subscription access is free; otherwise one trial use is spent; otherwise 402.
    """
    status = get_subscription_status(user_id)
    if has_subscription_access(status, feature):
        return {"allowed": True, "via": "subscription", "tier": status["tier"]}
    if trial_remaining(status, feature) > 0:
        status = decrement_trial_use(user_id, feature)
        return {"allowed": True, "via": "trial", "remaining": trial_remaining(status, feature)}
    raise UpgradeRequired("Upgrade required to use this feature")


def expire_subscriptions(now: datetime | None = None, batch_size: int | None = None, dry_run: bool = False) -> int:
    """Deactivate every active subscription whose end date has passed. Returns the count."""
    now = now or datetime.now(timezone.utc)
    batch_size = batch_size or int(current_app.config.get("EXPIRY_BATCH_SIZE", 500))
    supabase = _supabase()
    try:
        res = (
            supabase.table("subscriptions")
            .select("user_id")
            .eq("is_active", True)
            .lte("subscription_end_date", now.isoformat())
            .execute()
        )
        ids = [r["user_id"] for r in (getattr(res, "data", None) or []) if r.get("user_id")]
        if not ids:
            logger.info("No expired subscriptions found.")
            return 0
        if dry_run:
            logger.info("%d subscriptions would be deactivated.", len(ids))
            return len(ids)

        processed = 0
        for i in range(0, len(ids), batch_size):
            subset = ids[i:i + batch_size]
            supabase.table("subscriptions").update({
                "tier": "free",
                "status": "expired",
                "is_active": False,
                "renewal_date": None,
                "updated_at": now_iso(),
            }).in_("user_id", subset).execute()
            processed += len(subset)

        log_event("INFO", "Expired subscriptions deactivated", {"count": processed})
        logger.info("%d subscriptions deactivated.", processed)
        return processed
    except Exception as e:
        logger.exception("Error deactivating expired subscriptions")
        safe_log_event("ERROR", "Error checking expired subscriptions", {"error": str(e)})
        raise
