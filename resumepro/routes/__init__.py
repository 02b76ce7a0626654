from __future__ import annotations
from flask import Flask


def register_routes(app: Flask) -> None:
    from .auth import auth_bp
    from .logs import logs_bp
    from .resume import resume_bp
    from .cover_letters import cover_letters_bp
    from .ai import ai_bp
    from .subscription import subscription_bp
    from .stripe import stripe_bp
    from .feedback import bug_bp, affiliate_bp
    from .newsletter import newsletter_bp

    for bp in (
        auth_bp,
        logs_bp,
        resume_bp,
        cover_letters_bp,
        ai_bp,
        subscription_bp,
        stripe_bp,
        bug_bp,
        affiliate_bp,
        newsletter_bp,
    ):
        app.register_blueprint(bp)
