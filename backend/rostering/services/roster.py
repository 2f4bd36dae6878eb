from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Tuple

from django.db import transaction

from rostering.conf import RosterConfig, get_config
from rostering.domain.models import RosterAssignment, RosterNote, RosterStatus
from rostering.domain.repositories import CatalogueRepository, MemberRepository, RosterRepository
from rostering.services.actor import Actor
from rostering.services.audit import AuditRecorder, pluralize, recorder as default_recorder
from rostering.services.calendar import month_bounds, sundays_in_month
from rostering.services.clock import Clock, get_clock
from rostering.services.errors import ValidationFailed
from rostering.utils import month_key, parse_iso_date, parse_month

INVALID_PAYLOAD = "Invalid payload"

# =========================
# Worship lead lookup
# =========================

def worship_lead_for(d: date) -> Optional[int]:
    return RosterRepository.worship_lead_id(d)

def is_assigned_worship_lead(d: date, actor_id: Optional[int]) -> bool:
    """True when ``actor_id`` is rostered as worship lead on ``d``."""
    if actor_id is None:
        return False
    return worship_lead_for(d) == actor_id

# =========================
# Helpers
# =========================

def _month(raw: Any) -> Tuple[int, int]:
    parsed = parse_month(raw) if isinstance(raw, str) and len(raw) == 7 else None
    if parsed is None:
        raise ValidationFailed("Missing or invalid month (YYYY-MM)")
    return parsed

def _clean_assignments(raw: Any) -> List[Tuple[date, int, Optional[int]]]:
    """Validates ``[{date, role_id, member_id}]`` and resolves the referenced rows."""
    if not isinstance(raw, list):
        raise ValidationFailed(INVALID_PAYLOAD)
    rows = []
    for item in raw:
        if not isinstance(item, dict):
            raise ValidationFailed(INVALID_PAYLOAD)
        d = parse_iso_date(item.get("date"))
        role_id = item.get("role_id")
        member_id = item.get("member_id")
        if d is None or isinstance(role_id, bool) or not isinstance(role_id, int):
            raise ValidationFailed(INVALID_PAYLOAD)
        if member_id is not None and (isinstance(member_id, bool) or not isinstance(member_id, int)):
            raise ValidationFailed(INVALID_PAYLOAD)
        rows.append((d, role_id, member_id))

    known_roles = CatalogueRepository.team_role_ids({r for _, r, _ in rows})
    wanted_members = {m for _, _, m in rows if m is not None}
    known_members = set(MemberRepository.by_ids(wanted_members).values_list("id", flat=True))
    for _, role_id, member_id in rows:
        if role_id not in known_roles:
            raise ValidationFailed(f"Unknown role_id: {role_id}")
        if member_id is not None and member_id not in known_members:
            raise ValidationFailed(f"Unknown member_id: {member_id}")
    return rows

# ==========================================================
# Roster manager
# ==========================================================
class RosterManager:
    """Monthly roster: draft assignments, finalize, revert and month notes."""

    def __init__(
        self,
        config: Optional[RosterConfig] = None,
        clock: Optional[Clock] = None,
        recorder: Optional[AuditRecorder] = None,
    ):
        self.config = config or get_config()
        self.clock = clock or get_clock()
        self.recorder = recorder or default_recorder

    def month_view(self, raw_month: Any) -> Dict[str, Any]:
        year, month = _month(raw_month)
        start, end = month_bounds(year, month)
        assignments = list(RosterRepository.between(start, end))
        note = RosterRepository.note(month_key(year, month))
        locked = bool(assignments) and all(a.status == RosterStatus.LOCKED for a in assignments)
        return {
            "month": month_key(year, month),
            "sundays": [d.isoformat() for d in sundays_in_month(year, month)],
            "status": RosterStatus.LOCKED if locked else RosterStatus.DRAFT,
            "assignments": assignments,
            "notes": note.notes if note else "",
        }

    @transaction.atomic
    def save_draft(self, actor: Actor, payload: Mapping[str, Any]) -> int:
        """Upserts ``(date, role) -> member`` rows as DRAFT.

        Args:
            actor (Actor): Staff member saving the roster.
            payload (Mapping[str, Any]): ``{"assignments": [{date, role_id, member_id}]}``.

        Returns:
            int: Number of assignments written.
        """
        rows = _clean_assignments(payload.get("assignments"))
        for d, role_id, member_id in rows:
            RosterAssignment.objects.update_or_create(
                date=d,
                role_id=role_id,
                defaults={"member_id": member_id, "status": RosterStatus.DRAFT, "locked_at": None},
            )
        if rows:
            months = sorted({month_key(d.year, d.month) for d, _, _ in rows})
            self.recorder.record(
                "save_roster_draft", "roster", ",".join(months), actor,
                f"Saved roster draft for {', '.join(months)} ({pluralize(len(rows), 'assignment')})",
            )
        return len(rows)

    def finalize(self, actor: Actor, raw_month: Any) -> int:
        year, month = _month(raw_month)
        start, end = month_bounds(year, month)
        count = RosterRepository.rows_between(start, end).update(
            status=RosterStatus.LOCKED, locked_at=self.clock.now()
        )
        self.recorder.record(
            "finalize_roster", "roster", month_key(year, month), actor,
            f"Finalized roster for {month_key(year, month)} ({pluralize(count, 'assignment')})",
        )
        return count

    def revert(self, actor: Actor, raw_month: Any) -> int:
        year, month = _month(raw_month)
        start, end = month_bounds(year, month)
        count = RosterRepository.rows_between(start, end).update(status=RosterStatus.DRAFT, locked_at=None)
        self.recorder.record(
            "revert_roster", "roster", month_key(year, month), actor,
            f"Reverted roster for {month_key(year, month)} to draft",
        )
        return count

    def save_note(self, actor: Actor, raw_month: Any, notes: Any) -> RosterNote:
        year, month = _month(raw_month)
        if not isinstance(notes, str):
            raise ValidationFailed("notes must be a string")
        key = month_key(year, month)
        note, _ = RosterNote.objects.update_or_create(month=key, defaults={"notes": notes})
        self.recorder.record("save_roster_note", "roster", key, actor, f"Updated roster notes for {key}")
        return note
