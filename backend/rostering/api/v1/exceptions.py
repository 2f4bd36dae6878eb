from __future__ import annotations

import logging
from typing import Any

from django.db import DatabaseError
from django.http import Http404
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

log = logging.getLogger(__name__)


def _flatten(detail: Any) -> str:
    """Reduces a DRF error detail (str, list or dict) to one readable line."""
    if isinstance(detail, dict):
        parts = []
        for field, value in detail.items():
            text = _flatten(value)
            parts.append(text if field == "non_field_errors" else f"{field}: {text}")
        return "; ".join(parts)
    if isinstance(detail, (list, tuple)):
        return "; ".join(_flatten(v) for v in detail)
    return str(detail)


def json_error_handler(exc, context):
    """Renders every API error as ``{"error": message}``.

    Database errors become 500 with the driver message when it has one, so
    a failed write is never reported as success.
    """
    if isinstance(exc, DatabaseError):
        log.exception("Database error in %s", context.get("view").__class__.__name__ if context.get("view") else "view")
        message = str(exc).strip() or "Database error"
        return Response({"error": message}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if isinstance(exc, Http404):
        return Response({"error": "Not found"}, status=status.HTTP_404_NOT_FOUND)

    response = exception_handler(exc, context)
    if response is None:
        return None
    detail = getattr(exc, "detail", None)
    response.data = {"error": _flatten(detail) if detail is not None else "Request failed"}
    return response
