from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
import json
import logging
from typing import Any, Dict, Optional

from rostering.conf import RosterConfig, get_config
from rostering.domain.models import AppRole
from rostering.domain.repositories import MemberRepository

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Actor:
    """Identity and role of the caller of one request."""
    id: Optional[int]
    name: str
    role: AppRole

    def as_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "role": str(self.role)}


DEV_ACTOR = Actor(id=None, name="Dev Admin", role=AppRole.ADMIN)

# =========================
# Session token
# =========================

def decode_token_payload(token: Optional[str]) -> Optional[Dict[str, Any]]:
    """Reads the claims of a three-segment session token.

    The signature is not verified here; the token is issued and checked by the
    identity provider, this only extracts the ``email`` claim.

    Args:
        token (Optional[str]): Raw cookie value.

    Returns:
        Optional[Dict[str, Any]]: The payload object, or None for any other shape.
    """
    if not token:
        return None
    parts = token.split(".")
    if len(parts) != 3 or not parts[1]:
        return None
    segment = parts[1].replace("+", "-").replace("/", "_")
    segment += "=" * (-len(segment) % 4)
    try:
        raw = base64.urlsafe_b64decode(segment)
        payload = json.loads(raw.decode("utf-8"))
    except (binascii.Error, ValueError):
        return None
    if not isinstance(payload, dict):
        return None
    return payload

# =========================
# Resolution
# =========================

def resolve_actor(request, config: Optional[RosterConfig] = None) -> Optional[Actor]:
    """Identifies the caller from the request cookies. Never raises.

    Args:
        request: Django or DRF request.
        config (Optional[RosterConfig], optional): Defaults to the settings-derived config.

    Returns:
        Optional[Actor]: The actor, or None when the caller cannot be identified.
    """
    config = config or get_config()
    cookies = getattr(request, "COOKIES", {}) or {}

    if config.dev_mode and cookies.get(config.dev_bypass_cookie) == "1":
        return DEV_ACTOR

    if not config.datastore_configured:
        return None

    payload = decode_token_payload(cookies.get(config.session_cookie))
    if payload is None:
        return None
    email = payload.get("email")
    if not isinstance(email, str) or not email:
        return None

    try:
        row = MemberRepository.identity_by_email(email)
    except Exception:
        log.warning("Actor lookup failed for %s", email, exc_info=True)
        return None
    if row is None:
        return None

    try:
        role = AppRole(row["app_role"])
    except ValueError:
        log.warning("Member %s has unknown app_role %r", row["id"], row["app_role"])
        return None
    return Actor(id=row["id"], name=row["name"], role=role)


def get_actor(request) -> Optional[Actor]:
    """Resolves the actor once per request and caches it on the Django request."""
    target = getattr(request, "_request", request)
    if not hasattr(target, "_actor"):
        target._actor = resolve_actor(request)
    return target._actor
