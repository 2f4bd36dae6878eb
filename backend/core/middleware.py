from __future__ import annotations
import json
import logging
import re
import uuid
from typing import Any, Dict

from rostering.conf import get_config

REDACTED = "***redacted***"
SENSITIVE_KEYS = {"password", "token", "authorization", "csrfmiddlewaretoken", "email", "phone"}

# Personal availability links carry the member's secret in the path.
_TOKEN_PATH = re.compile(r"(/availability/)(?!periods(?:[/?]|$))[^/?]+")

def _client_ip(request):
    xff = request.META.get("HTTP_X_FORWARDED_FOR")
    if xff:
        return xff.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR")

def _safe_path(request) -> str:
    return _TOKEN_PATH.sub(rf"\g<1>{REDACTED}", request.get_full_path())

def _redact(data: Any) -> Any:
    """Masks sensitive keys at any depth of a query dict or decoded JSON body."""
    if isinstance(data, dict):
        return {k: REDACTED if str(k).lower() in SENSITIVE_KEYS else _redact(v) for k, v in data.items()}
    if isinstance(data, list):
        return [_redact(v) for v in data[:20]]
    if isinstance(data, (str, int, float, bool, type(None))):
        return data
    return str(data)

def _json_body(request) -> Any:
    if "application/json" not in request.META.get("CONTENT_TYPE", ""):
        return None
    try:
        raw = (request.body or b"")[:4096]
        return _redact(json.loads(raw.decode("utf-8"))) if raw else None
    except Exception:
        return "<unavailable>"

def _actor_label(request) -> str:
    """Describes the actor a view resolved for this request, if any."""
    actor = getattr(request, "_actor", None)
    if actor is None:
        return "Anonymous"
    return f"{actor.name} ({actor.role}, id={actor.id})"


class ErrorLoggingMiddleware:
    """Tags each request with an id and logs failures with redacted context.

    Session cookies are reported by name only, and availability tokens are
    masked in the logged path.
    """

    def __init__(self, get_response):
        self.get_response = get_response
        self.logger = logging.getLogger("django.request")

    def __call__(self, request):
        req_id = request.META.get("HTTP_X_REQUEST_ID") or uuid.uuid4().hex
        request._request_id = req_id
        try:
            response = self.get_response(request)
        except Exception:
            self.logger.error(
                "Unhandled exception | ctx=%s", self._context(request), exc_info=True,
            )
            raise
        status_code = getattr(response, "status_code", 200)
        if status_code >= 500:
            self.logger.error("5xx response | ctx=%s", self._context(request, status_code=status_code))
        response["X-Request-ID"] = req_id
        return response

    def _context(self, request, **extra) -> str:
        config = get_config()
        cookies = getattr(request, "COOKIES", {}) or {}
        ctx: Dict[str, Any] = {
            "id": getattr(request, "_request_id", None),
            "method": request.method,
            "path": _safe_path(request),
            "ip": _client_ip(request),
            "actor": _actor_label(request),
            "ua": request.META.get("HTTP_USER_AGENT", ""),
            "get": _redact(dict(getattr(request, "GET", {}).items())),
            "session_cookie": config.session_cookie in cookies,
            "dev_bypass": config.dev_mode and cookies.get(config.dev_bypass_cookie) == "1",
            "body": _json_body(request),
            **extra,
        }
        return json.dumps(ctx, ensure_ascii=False)
