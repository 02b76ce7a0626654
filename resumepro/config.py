# resumepro/config.py
from __future__ import annotations
import os


def _csv(name: str, default: str = "") -> list[str]:
    return [s.strip() for s in os.environ.get(name, default).split(",") if s.strip()]


class Config:
    # Flask
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-key")
    MAX_CONTENT_LENGTH = int(os.environ.get("MAX_UPLOAD_MB", "5")) * 1024 * 1024

    # Supabase (document store + auth)
    SUPABASE_URL = os.environ.get("SUPABASE_URL", "")
    SUPABASE_SERVICE_ROLE_KEY = os.environ.get("SUPABASE_SERVICE_ROLE_KEY", "")

    # OpenAI
    OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY", "")
    OPENAI_MODEL_FAST = os.environ.get("OPENAI_MODEL_FAST", "gpt-4o-mini")
    OPENAI_MODEL_QUALITY = os.environ.get("OPENAI_MODEL_QUALITY", "gpt-4o")

    # Stripe
    STRIPE_SECRET_KEY = os.environ.get("STRIPE_SECRET_KEY", "")
    STRIPE_WEBHOOK_SECRET = os.environ.get("STRIPE_WEBHOOK_SECRET", "")
    STRIPE_PRICE_IDS = {
        "resume_creator": os.environ.get("STRIPE_PRICE_RESUME_CREATOR"),
        "resume_pro":     os.environ.get("STRIPE_PRICE_RESUME_PRO"),
        "career_pro":     os.environ.get("STRIPE_PRICE_CAREER_PRO"),
    }
    FRONTEND_URL = os.environ.get("FRONTEND_URL", "http://localhost:8080").rstrip("/")

    # Beehiiv newsletter
    BEEHIIV_API_KEY = os.environ.get("BEEHIIV_API_KEY", "")
    BEEHIIV_PUBLICATION_KEY = os.environ.get("BEEHIIV_PUBLICATION_KEY", "")

    # CORS origins (comma-separated)
    CORS_ORIGINS = _csv("CORS_ORIGINS", "http://localhost:8080,http://localhost:8081")

    # flask-limiter
    RATELIMIT_DEFAULT = os.environ.get("RATELIMIT_DEFAULT", "100 per minute")
    RATELIMIT_STORAGE_URI = os.environ.get("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_ENABLED = True

    # Trials / subscriptions
    TRIAL_USES = int(os.environ.get("TRIAL_USES", "3"))
    EXPIRY_BATCH_SIZE = int(os.environ.get("EXPIRY_BATCH_SIZE", "500"))


class DevConfig(Config):
    DEBUG = True


class ProdConfig(Config):
    DEBUG = False


class TestConfig(Config):
    TESTING = True
    DEBUG = True
    RATELIMIT_ENABLED = False
    OPENAI_API_KEY = "test-key"
    STRIPE_SECRET_KEY = "sk_test_dummy"
    STRIPE_WEBHOOK_SECRET = "whsec_test"
    STRIPE_PRICE_IDS = {
        "resume_creator": "price_creator",
        "resume_pro":     "price_pro",
        "career_pro":     "price_career",
    }
    FRONTEND_URL = "http://frontend.test"
    BEEHIIV_API_KEY = "bh-test"
    BEEHIIV_PUBLICATION_KEY = "pub_test"


def get_config(env: str | None = None):
    """Resolve config by env string or environment variables."""
    env = (env or os.environ.get("RESUMEPRO_ENV") or os.environ.get("FLASK_ENV") or "production").lower()
    if env in ("dev", "development"):
        return DevConfig
    if env in ("test", "testing"):
        return TestConfig
    return ProdConfig
