# resumepro/routes/auth.py
from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user

from ..security.auth import api_login_required, verify_token

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _credentials():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    return email, password


def _auth_message(e: Exception) -> str:
    return getattr(e, "message", None) or str(e) or "Authentication failed"


def _user_dict(user) -> dict:
    if user is None:
        return {}
    return {
        "uid": getattr(user, "id", None),
        "email": getattr(user, "email", None),
        "emailVerified": bool(getattr(user, "email_confirmed_at", None)),
    }


def _session_dict(session) -> dict | None:
    if session is None:
        return None
    return {
        "accessToken": getattr(session, "access_token", None),
        "refreshToken": getattr(session, "refresh_token", None),
        "expiresAt": getattr(session, "expires_at", None),
    }


@auth_bp.post("/register")
def register():
    email, password = _credentials()
    if not email or not password:
        return jsonify(error="Email and password are required"), 400
    supabase = current_app.config["SUPABASE_ADMIN"]
    try:
        resp = supabase.auth.sign_up({"email": email, "password": password})
    except Exception as e:
        current_app.logger.exception("Error signing up")
        return jsonify(error=_auth_message(e)), 500
    if not getattr(resp, "user", None):
        return jsonify(error="Signup failed"), 400
    return jsonify(user=_user_dict(resp.user), session=_session_dict(getattr(resp, "session", None)))


@auth_bp.post("/login")
def login():
    email, password = _credentials()
    if not email or not password:
        return jsonify(error="Email and password are required"), 400
    supabase = current_app.config["SUPABASE_ADMIN"]
    try:
        resp = supabase.auth.sign_in_with_password({"email": email, "password": password})
    except Exception as e:
        current_app.logger.info("Sign-in rejected for %s", email)
        return jsonify(error=_auth_message(e)), 401
    if not getattr(resp, "user", None):
        return jsonify(error="Invalid credentials"), 401
    return jsonify(user=_user_dict(resp.user), session=_session_dict(getattr(resp, "session", None)))


@auth_bp.post("/verify-token")
def verify():
    data = request.get_json(silent=True) or {}
    token = (data.get("token") or "").strip()
    if not token:
        return jsonify(error="No token provided"), 401
    user = verify_token(token)
    if user is None:
        return jsonify(error="Invalid token"), 401
    return jsonify(user.to_dict())


@auth_bp.post("/resend-verification")
def resend_verification():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    if not email:
        return jsonify(error="Email is required"), 400
    supabase = current_app.config["SUPABASE_ADMIN"]
    try:
        supabase.auth.resend({"type": "signup", "email": email})
    except Exception as e:
        current_app.logger.exception("Error resending verification email")
        return jsonify(error=_auth_message(e)), 500
    return jsonify(message="Verification email sent")


@auth_bp.get("/user")
@api_login_required
def user_info():
    return jsonify(current_user.to_dict())
