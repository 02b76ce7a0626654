"""API error types and the JSON error handler."""

from __future__ import annotations

from typing import Any, Dict, Optional

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException


class APIError(Exception):
    """Application-level error carrying an HTTP status."""

    status_code = 500
    code = "server_error"

    def __init__(self, message: str, status_code: Optional[int] = None, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.code != type(self).code:
            body["code"] = self.code
        return body


class BadRequest(APIError):
    status_code = 400
    code = "bad_request"


class UpgradeRequired(APIError):
    status_code = 402
    code = "upgrade_required"


class Forbidden(APIError):
    status_code = 403
    code = "forbidden"


class NotFound(APIError):
    status_code = 404
    code = "not_found"


class UpstreamError(APIError):
    status_code = 502
    code = "upstream_error"


class ServiceUnavailable(APIError):
    status_code = 503
    code = "service_unavailable"


class DocumentParseError(BadRequest):
    code = "document_parse_error"


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(APIError)
    def _api_error(exc: APIError):
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(413)
    def _too_large(_exc):
        return jsonify(error="File too large"), 413

    @app.errorhandler(429)
    def _rate_limited(_exc):
        return jsonify(error="Too many requests. Please try again later."), 429

    @app.errorhandler(Exception)
    def _unhandled(exc: Exception):
        if isinstance(exc, HTTPException):
            return exc
        app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify(error="Internal server error"), 500
