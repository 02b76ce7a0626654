import logging

import stripe
from flask import current_app
from flask_limiter import Limiter
from flask_login import LoginManager
from openai import OpenAI
from supabase import create_client

from resumepro.security.auth import client_ip, load_user_from_request

# 1) A single LoginManager; users come from the bearer token on every request
login_manager = LoginManager()
login_manager.request_loader(load_user_from_request)

# 2) Rate limiter keyed on the real client IP; the default limit is read from app config per request
def _default_limit() -> str:
    return current_app.config.get("RATELIMIT_DEFAULT") or "100 per minute"


limiter = Limiter(key_func=client_ip, default_limits=[_default_limit])

# 3) Small factory to build a Supabase client from config
def init_supabase(url: str, key: str):
    if not url or not key:
        raise RuntimeError("Missing SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY")
    return create_client(url, key)

# 4) Small factory to build an OpenAI client; None when no key is configured
def init_openai(api_key: str):
    if not api_key:
        logging.getLogger(__name__).warning("OPENAI_API_KEY not set; AI features disabled")
        return None
    return OpenAI(api_key=api_key)

# 5) Stripe uses a module-level key
def init_stripe(secret_key: str) -> None:
    if not secret_key:
        logging.getLogger(__name__).warning("STRIPE_SECRET_KEY not set; billing disabled")
    stripe.api_key = secret_key or None
