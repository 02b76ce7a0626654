# resumepro/services/logs.py
from __future__ import annotations

import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from flask import Flask, current_app, g, request

logger = logging.getLogger(__name__)

EVENT_TYPES = ("INFO", "WARNING", "ERROR", "ERROR_RESPONSE")


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def log_event(event_type: str, message: str, data: Optional[Any] = None, timestamp: Optional[str] = None) -> None:
    """
    Store a free-form event in the `logs` table.
    Errors are logged and re-raised; handler boundaries decide whether to swallow them.
    """
    supabase = current_app.config["SUPABASE_ADMIN"]
    row = {
        "id": uuid.uuid4().hex,
        "eventType": event_type,
        "message": message,
        "data": data if data is not None else {},
        "timestamp": timestamp or now_iso(),
    }
    try:
        supabase.table("logs").insert(row).execute()
    except Exception:
        logger.exception("Event store write failed (%s: %s)", event_type, message)
        raise


def safe_log_event(event_type: str, message: str, data: Optional[Any] = None) -> None:
    """log_event for error paths: never raises."""
    try:
        log_event(event_type, message, data)
    except Exception:
        pass


# ---------- request logger ----------
def init_request_logger(app: Flask) -> None:
    @app.before_request
    def _start_timer():
        g.correlation_id = request.headers.get("Correlation-Id") or str(uuid.uuid4())
        g.request_started = time.monotonic()

    @app.after_request
    def _record_errors(response):
        correlation_id = g.get("correlation_id")
        if correlation_id:
            response.headers["Correlation-Id"] = correlation_id
        if response.status_code >= 400:
            started = g.get("request_started") or time.monotonic()
            data = {
                "endpoint": request.full_path.rstrip("?"),
                "method": request.method,
                "statusCode": response.status_code,
                "duration": int((time.monotonic() - started) * 1000),
                "correlationId": correlation_id,
            }
            try:
                log_event("ERROR_RESPONSE", "Error in response", data)
            except Exception:
                app.logger.error("Failed to log error response: %s", data)
        return response
