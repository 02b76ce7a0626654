# resumepro/__init__.py
from __future__ import annotations
import logging
from datetime import datetime, timezone

import click
from dotenv import load_dotenv
from flask import Flask
from flask_cors import CORS

from .config import get_config
from .errors import register_error_handlers
from .extensions import init_openai, init_stripe, init_supabase, limiter, login_manager
from .routes import register_routes
from .services.logs import init_request_logger


def create_app(env: str | None = None) -> Flask:
    load_dotenv()
    app = Flask(__name__)
    app.config.from_object(get_config(env))

    # CORS & logging
    CORS(
        app,
        origins=app.config["CORS_ORIGINS"],
        supports_credentials=True,
        methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    logging.basicConfig(level=logging.INFO)

    # Extensions / clients (tests inject fakes instead)
    if not app.config.get("TESTING"):
        app.config["SUPABASE_ADMIN"] = init_supabase(
            app.config["SUPABASE_URL"], app.config["SUPABASE_SERVICE_ROLE_KEY"]
        )
        app.config["OPENAI_CLIENT"] = init_openai(app.config["OPENAI_API_KEY"])
        init_stripe(app.config["STRIPE_SECRET_KEY"])
    else:
        app.config.setdefault("SUPABASE_ADMIN", None)
        app.config.setdefault("OPENAI_CLIENT", None)

    login_manager.init_app(app)
    limiter.init_app(app)
    register_error_handlers(app)
    init_request_logger(app)

    # ---------- Blueprints ----------
    register_routes(app)

    @app.get("/")
    def index():
        return "Backend running..."

    @app.get("/healthz")
    def health():
        return {"ok": True, "ts": datetime.now(timezone.utc).isoformat()}

    # ---------- CLI ----------
    @app.cli.command("expire-subscriptions")
    @click.option("--batch-size", type=int, default=None, help="Rows updated per batch.")
    @click.option("--dry-run", is_flag=True, help="Count expired subscriptions without updating them.")
    def expire_subscriptions_command(batch_size, dry_run):
        """Deactivate subscriptions whose end date has passed."""
        from .services.subscriptions import expire_subscriptions
        count = expire_subscriptions(batch_size=batch_size, dry_run=dry_run)
        click.echo(f"{count} subscriptions {'would be ' if dry_run else ''}deactivated.")

    return app
