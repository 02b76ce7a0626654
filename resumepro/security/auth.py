# resumepro/security/auth.py
from __future__ import annotations
import logging
from functools import wraps

from flask import Request, current_app, request, jsonify
from flask_login import UserMixin, current_user

logger = logging.getLogger(__name__)


class ApiUser(UserMixin):
    """User resolved from a verified bearer token; never stored in a session."""

    def __init__(self, uid: str, email: str | None = None):
        self.id = uid
        self.uid = uid
        self.email = email

    def to_dict(self) -> dict:
        return {"uid": self.uid, "email": self.email}


def client_ip(req: Request | None = None) -> str:
    # Prefer Cloudflare header, then common proxy headers, then remote_addr
    req = req or request
    return (
        req.headers.get("CF-Connecting-IP")
        or req.headers.get("X-Forwarded-For", "").split(",")[0].strip()
        or req.remote_addr
        or "127.0.0.1"
    )


def bearer_token(req: Request) -> str | None:
    header = req.headers.get("Authorization") or ""
    if not header.startswith("Bearer "):
        return None
    token = header[len("Bearer "):].strip()
    return token or None


def verify_token(token: str) -> ApiUser | None:
    """Validate an access token with Supabase Auth. Returns None when rejected."""
    supabase = current_app.config["SUPABASE_ADMIN"]
    try:
        res = supabase.auth.get_user(token)
    except Exception:
        logger.info("Token verification failed", exc_info=True)
        return None
    user = getattr(res, "user", None)
    uid = getattr(user, "id", None)
    if not uid:
        return None
    return ApiUser(uid=str(uid), email=getattr(user, "email", None))


def load_user_from_request(req: Request) -> ApiUser | None:
    token = bearer_token(req)
    if not token:
        return None
    return verify_token(token)


def api_login_required(view):
    """
    Bearer-token gate for JSON APIs.
      - no Authorization header  -> 401 {"error": "No token provided"}
      - token rejected           -> 401 {"error": "Invalid token"}
    """
    @wraps(view)
    def wrapped(*args, **kwargs):
        if current_user.is_authenticated:
            return view(*args, **kwargs)
        if not bearer_token(request):
            return jsonify(error="No token provided"), 401
        return jsonify(error="Invalid token"), 401
    return wrapped


def _requested_user_id(kwargs) -> str | None:
    if kwargs.get("user_id"):
        return str(kwargs["user_id"])
    body = request.get_json(silent=True) or {}
    uid = body.get("userId") or request.args.get("userId")
    return str(uid) if uid else None


def owner_required(view):
    """
    Authenticated caller must own the user id named by the route
    (path <user_id>, or userId in the JSON body / query string).
    """
    @wraps(view)
    @api_login_required
    def wrapped(*args, **kwargs):
        requested = _requested_user_id(kwargs)
        if requested and requested != current_user.id:
            return jsonify(error="Forbidden"), 403
        return view(*args, **kwargs)
    return wrapped
