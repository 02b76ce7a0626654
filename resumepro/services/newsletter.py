# resumepro/services/newsletter.py
from __future__ import annotations

import logging
from typing import Any, Dict

import requests

logger = logging.getLogger(__name__)

BEEHIIV_API = "https://api.beehiiv.com/v2"
DEFAULT_ERROR = "Failed to subscribe to newsletter"


class NewsletterConfigError(RuntimeError):
    pass


class NewsletterService:
    def __init__(self, api_key: str | None, publication_id: str | None, timeout: int = 10):
        if not api_key or not publication_id:
            raise NewsletterConfigError("Newsletter service configuration missing")
        self.api_key = api_key
        self.publication_id = publication_id
        self.timeout = timeout

    @classmethod
    def from_config(cls, config) -> "NewsletterService":
        return cls(config.get("BEEHIIV_API_KEY"), config.get("BEEHIIV_PUBLICATION_KEY"))

    def subscribe(self, email: str) -> Dict[str, Any]:
        url = f"{BEEHIIV_API}/publications/{self.publication_id}/subscriptions"
        payload = {
            "email": email,
            "reactivate_existing": False,
            "send_welcome_email": False,
            "utm_source": "website",
            "utm_medium": "organic",
            "utm_campaign": "signup_form",
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        try:
            r = requests.post(url, json=payload, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("Newsletter subscription error: %s", e)
            return {"success": False, "error": DEFAULT_ERROR}

        try:
            data = r.json()
        except ValueError:
            data = {}

        if not r.ok:
            errors = data.get("errors") if isinstance(data, dict) else None
            message = DEFAULT_ERROR
            if errors and isinstance(errors, list) and isinstance(errors[0], dict):
                message = errors[0].get("message") or DEFAULT_ERROR
            logger.warning("Beehiiv rejected subscription (%s): %s", r.status_code, message)
            return {"success": False, "error": message}

        return {"success": True, "data": data}
