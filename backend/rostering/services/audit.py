from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from django.db import transaction
from django.db.models import QuerySet

from rostering.domain.repositories import AuditLogRepository
from rostering.services.actor import Actor

log = logging.getLogger(__name__)


def pluralize(count: int, noun: str, plural: Optional[str] = None) -> str:
    """Formats ``count`` with a singular noun for exactly one and a plural otherwise.

    >>> pluralize(1, "assignment")
    '1 assignment'
    >>> pluralize(3, "assignment")
    '3 assignments'
    """
    word = noun if count == 1 else (plural or f"{noun}s")
    return f"{count} {word}"


class AuditRecorder:
    """Writes audit entries on a best-effort basis.

    Call ``record`` only after the change it describes has been saved. A failed
    audit write is logged and dropped; it never reaches the caller.
    """

    def record(
        self,
        action: str,
        entity_type: str,
        entity_id: Any,
        actor: Optional[Actor],
        summary: str,
    ) -> None:
        """Appends one audit entry.

        Args:
            action (str): Short verb such as "publish_setlist".
            entity_type (str): Kind of entity changed.
            entity_id (Any): Identifier of the entity; stored as text.
            actor (Optional[Actor]): Who made the change. Anonymous changes are not recorded.
            summary (str): Human-readable line naming the date, title or count involved.
        """
        if actor is None:
            log.warning("Audit skipped for anonymous %s on %s %s", action, entity_type, entity_id)
            return
        try:
            # savepoint: a failed insert must not poison an enclosing transaction
            with transaction.atomic():
                AuditLogRepository.append(
                    actor_id=actor.id,
                    actor_name=actor.name,
                    actor_role=str(actor.role),
                    action=action,
                    entity_type=entity_type,
                    entity_id="" if entity_id is None else str(entity_id),
                    summary=summary[:255],
                )
        except Exception:
            log.exception("Audit write failed: action=%s entity=%s:%s", action, entity_type, entity_id)


recorder = AuditRecorder()


def record(action: str, entity_type: str, entity_id: Any, actor: Optional[Actor], summary: str) -> None:
    recorder.record(action, entity_type, entity_id, actor, summary)


def audit_page(qs: QuerySet, page: int, page_size: int, sort: str = "desc") -> Dict[str, Any]:
    """Slices an audit queryset into one page.

    Args:
        qs (QuerySet): Already filtered audit entries.
        page (int): 1-based page number.
        page_size (int): Entries per page.
        sort (str, optional): "asc" or "desc" by creation time. Defaults to "desc".

    Returns:
        Dict[str, Any]: ``entries`` (queryset slice), ``total``, ``page`` and ``page_size``.
    """
    ordering = ("created_at", "id") if sort == "asc" else ("-created_at", "-id")
    total = qs.count()
    start = (page - 1) * page_size
    return {
        "entries": qs.order_by(*ordering)[start:start + page_size],
        "total": total,
        "page": page,
        "page_size": page_size,
    }
