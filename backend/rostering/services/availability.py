from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Tuple

from django.db import transaction

from rostering.conf import RosterConfig, get_config
from rostering.domain.models import (
    AppRole,
    AvailabilityDate,
    AvailabilityPeriod,
    AvailabilityResponse,
    AvailabilityStatus,
    Member,
    MonthlyAvailability,
)
from rostering.domain.repositories import (
    CatalogueRepository,
    MemberRepository,
    MonthlyAvailabilityRepository,
    PeriodRepository,
)
from rostering.services.actor import Actor
from rostering.services.audit import AuditRecorder, pluralize, recorder as default_recorder
from rostering.services.calendar import (
    lockout_date,
    month_bounds,
    next_month,
    sundays_between,
    sundays_in_month,
)
from rostering.services.clock import Clock, get_clock
from rostering.services.errors import (
    ConflictDetected,
    NotFoundError,
    StateLocked,
    ValidationFailed,
)
from rostering.utils import month_key, parse_iso_date, parse_month

log = logging.getLogger(__name__)

MISSING_PERIOD_FIELDS = "Missing required fields: label, starts_on, ends_on"
BAD_PERIOD_DATES = "starts_on and ends_on must be YYYY-MM-DD"
INVERTED_PERIOD = "starts_on must be before or equal to ends_on"
BAD_DEADLINE = "deadline must be YYYY-MM-DD or null"

# =========================
# Helpers
# =========================

def _optional_date(data: Mapping[str, Any], field: str) -> Tuple[bool, Optional[date]]:
    """Reads an optional nullable date field.

    Returns:
        Tuple[bool, Optional[date]]: (present, value). Raises on a malformed value.
    """
    if field not in data:
        return False, None
    raw = data.get(field)
    if raw is None or raw == "":
        return True, None
    value = parse_iso_date(raw)
    if value is None:
        raise ValidationFailed(BAD_DEADLINE)
    return True, value

def _period_range(data: Mapping[str, Any]) -> Tuple[date, date]:
    starts_on = parse_iso_date(data.get("starts_on"))
    ends_on = parse_iso_date(data.get("ends_on"))
    if starts_on is None or ends_on is None:
        raise ValidationFailed(BAD_PERIOD_DATES)
    if starts_on > ends_on:
        raise ValidationFailed(INVERTED_PERIOD)
    return starts_on, ends_on

def _member_actor(member: Member) -> Actor:
    return Actor(id=member.id, name=member.name, role=AppRole(member.app_role))

def _role_payload(member: Member) -> List[Dict[str, Any]]:
    roles = member.roles.all().order_by("sort_order", "name")
    return [{"id": r.id, "name": r.name, "label": r.label} for r in roles]

def _preferred_role_id(data: Mapping[str, Any]) -> Optional[int]:
    raw = data.get("preferred_role_id")
    if raw in (None, ""):
        return None
    if isinstance(raw, bool) or not isinstance(raw, (int, str)) or not str(raw).isdigit():
        raise ValidationFailed("Invalid preferred_role_id")
    role_id = int(raw)
    if role_id not in CatalogueRepository.team_role_ids([role_id]):
        raise ValidationFailed("Invalid preferred_role_id")
    return role_id

def _notes(data: Mapping[str, Any]) -> str:
    notes = data.get("notes")
    if notes is None:
        return ""
    if not isinstance(notes, str):
        raise ValidationFailed("notes must be a string")
    return notes.strip()

def _chosen_sundays(data: Mapping[str, Any], allowed: List[date]) -> set:
    """Validates ``available_dates`` against the Sundays the member was asked about."""
    raw = data.get("available_dates", [])
    if raw is None:
        raw = []
    if not isinstance(raw, list):
        raise ValidationFailed("available_dates must be a list of YYYY-MM-DD dates")
    allowed_set = set(allowed)
    chosen = set()
    for item in raw:
        d = parse_iso_date(item)
        if d is None or d not in allowed_set:
            raise ValidationFailed(f"Invalid date: {item}")
        chosen.add(d)
    return chosen

# ==========================================================
# Period manager (staff side)
# ==========================================================
class PeriodManager:
    """Lifecycle of availability periods: create, edit, close, delete."""

    def __init__(
        self,
        config: Optional[RosterConfig] = None,
        clock: Optional[Clock] = None,
        recorder: Optional[AuditRecorder] = None,
    ):
        self.config = config or get_config()
        self.clock = clock or get_clock()
        self.recorder = recorder or default_recorder

    def get(self, period_id: int) -> AvailabilityPeriod:
        period = PeriodRepository.by_id(period_id)
        if period is None:
            raise NotFoundError("Period not found")
        return period

    def list_periods(self) -> Dict[str, Any]:
        """Returns every period with its response count, plus the musician head count."""
        return {
            "periods": list(PeriodRepository.with_response_counts()),
            "total_musicians": MemberRepository.active_musicians().count(),
        }

    def detail(self, period_id: int) -> Dict[str, Any]:
        """Returns a period with one row per active musician, answered or not.

        Args:
            period_id (int): Period to inspect.

        Returns:
            Dict[str, Any]: ``period``, ``sundays`` and ``members``; each member row
            carries ``responded``, ``response`` and ``dates`` sorted by date.
        """
        period = self.get(period_id)
        by_member = {r.member_id: r for r in PeriodRepository.responses(period)}
        members = []
        for m in MemberRepository.active_musicians():
            resp = by_member.get(m.id)
            dates = sorted(resp.dates.all(), key=lambda d: d.date) if resp else []
            members.append({
                "id": m.id,
                "name": m.name,
                "email": m.email,
                "responded": resp is not None,
                "response": {
                    "id": resp.id,
                    "notes": resp.notes,
                    "preferred_role_id": resp.preferred_role_id,
                    "submitted_at": resp.submitted_at.isoformat(),
                } if resp else None,
                "dates": [{"date": d.date.isoformat(), "available": d.available} for d in dates],
            })
        return {
            "period": period,
            "sundays": [d.isoformat() for d in sundays_between(period.starts_on, period.ends_on)],
            "members": members,
        }

    def create(self, actor: Actor, data: Mapping[str, Any]) -> AvailabilityPeriod:
        """Opens a new period unless it overlaps an open one.

        Args:
            actor (Actor): Staff member creating the period.
            data (Mapping[str, Any]): ``label``, ``starts_on``, ``ends_on`` and optional ``deadline``.

        Returns:
            AvailabilityPeriod: The saved period.
        """
        label = data.get("label")
        label = label.strip() if isinstance(label, str) else ""
        if not label or not data.get("starts_on") or not data.get("ends_on"):
            raise ValidationFailed(MISSING_PERIOD_FIELDS)
        starts_on, ends_on = _period_range(data)
        _, deadline = _optional_date(data, "deadline")

        clash = PeriodRepository.open_overlapping(starts_on, ends_on).first()
        if clash is not None:
            raise ConflictDetected(
                f'Date range overlaps the existing open period "{clash.label}" '
                f"({clash.starts_on.isoformat()} to {clash.ends_on.isoformat()})"
            )

        period = AvailabilityPeriod.objects.create(
            label=label,
            starts_on=starts_on,
            ends_on=ends_on,
            deadline=deadline,
            created_by_id=actor.id,
        )
        log.info("Availability period %s created (%s to %s)", period.id, starts_on, ends_on)
        self.recorder.record(
            "create_period", "availability_period", period.id, actor,
            f'Created availability period "{label}" ({starts_on.isoformat()} to {ends_on.isoformat()})',
        )
        return period

    def update(self, actor: Actor, period_id: int, data: Mapping[str, Any]) -> AvailabilityPeriod:
        """Edits label and deadline; dates only while nobody has responded."""
        period = self.get(period_id)
        label = data.get("label")
        label = label.strip() if isinstance(label, str) else ""
        if not label:
            raise ValidationFailed("label is required")
        has_deadline, deadline = _optional_date(data, "deadline")

        starts_on, ends_on = period.starts_on, period.ends_on
        if "starts_on" in data or "ends_on" in data:
            merged = {
                "starts_on": data.get("starts_on", period.starts_on.isoformat()),
                "ends_on": data.get("ends_on", period.ends_on.isoformat()),
            }
            starts_on, ends_on = _period_range(merged)
        dates_changed = (starts_on, ends_on) != (period.starts_on, period.ends_on)
        if dates_changed and PeriodRepository.response_count(period) > 0:
            raise StateLocked("Date range cannot be changed once responses have been collected.")

        period.label = label
        if has_deadline:
            period.deadline = deadline
        period.starts_on, period.ends_on = starts_on, ends_on
        period.save(update_fields=["label", "deadline", "starts_on", "ends_on"])
        self.recorder.record(
            "update_period", "availability_period", period.id, actor,
            f'Updated availability period "{label}"',
        )
        return period

    def close(self, actor: Actor, period_id: int) -> AvailabilityPeriod:
        period = self.get(period_id)
        period.closed_at = self.clock.now()
        period.save(update_fields=["closed_at"])
        self.recorder.record(
            "close_period", "availability_period", period.id, actor,
            f'Closed availability period "{period.label}"',
        )
        return period

    def delete(self, actor: Actor, period_id: int) -> None:
        period = self.get(period_id)
        if PeriodRepository.response_count(period) > 0:
            raise ConflictDetected("Cannot delete a period that has responses. Close it instead.")
        label, pk = period.label, period.id
        period.delete()
        self.recorder.record(
            "delete_period", "availability_period", pk, actor,
            f'Deleted availability period "{label}"',
        )

# ==========================================================
# Member submission window (token side)
# ==========================================================
class AvailabilityWindow:
    """What a member may see and submit through their personal link.

    Two independent locks apply. Monthly links are for next month only and lock
    on ``lockout_day`` of the current month. Period links lock when the period
    is closed or its deadline has passed.
    """

    def __init__(
        self,
        config: Optional[RosterConfig] = None,
        clock: Optional[Clock] = None,
        recorder: Optional[AuditRecorder] = None,
    ):
        self.config = config or get_config()
        self.clock = clock or get_clock()
        self.recorder = recorder or default_recorder

    def member_for_token(self, token: str) -> Member:
        member = MemberRepository.by_token(token)
        if member is None:
            raise NotFoundError("Invalid token")
        return member

    # ---- monthly links ----

    def target_month(self, raw: Optional[str]) -> Tuple[int, int]:
        """Validates ``targetMonth``; only the month after today is accepted."""
        if not raw:
            raise ValidationFailed("Missing targetMonth (YYYY-MM-01) or periodId")
        parsed = parse_month(raw)
        if parsed is None:
            raise ValidationFailed("Invalid targetMonth format")
        if parsed != next_month(self.clock.today()):
            raise ValidationFailed("targetMonth not allowed")
        return parsed

    def monthly_lock(self, year: int, month: int) -> Tuple[bool, date]:
        first_locked = lockout_date(year, month, self.config.lockout_day)
        return self.clock.today() >= first_locked, first_locked

    def monthly_view(self, member: Member, raw_month: Optional[str]) -> Dict[str, Any]:
        year, month = self.target_month(raw_month)
        locked, first_locked = self.monthly_lock(year, month)
        start, end = month_bounds(year, month)
        rows = MonthlyAvailabilityRepository.for_member_between(member, start, end)
        return {
            "member": {"id": member.id, "name": member.name},
            "targetMonth": f"{month_key(year, month)}-01",
            "sundays": [d.isoformat() for d in sundays_in_month(year, month)],
            "availability": [
                {
                    "date": r.date.isoformat(),
                    "status": r.status,
                    "preferred_role_id": r.preferred_role_id,
                    "notes": r.notes,
                }
                for r in rows
            ],
            "roles": _role_payload(member),
            "lockout": locked,
            "lockout_date": first_locked.isoformat(),
        }

    @transaction.atomic
    def submit_monthly(self, member: Member, raw_month: Optional[str], data: Mapping[str, Any]) -> int:
        """Stores one AVAILABLE/UNAVAILABLE row per Sunday of the target month.

        Args:
            member (Member): Token holder.
            raw_month (Optional[str]): ``targetMonth`` query value.
            data (Mapping[str, Any]): ``available_dates``, ``preferred_role_id``, ``notes``.

        Returns:
            int: Number of Sundays marked available.
        """
        year, month = self.target_month(raw_month)
        locked, _ = self.monthly_lock(year, month)
        if locked:
            raise StateLocked("Availability is locked")

        sundays = sundays_in_month(year, month)
        chosen = _chosen_sundays(data, sundays)
        role_id = _preferred_role_id(data)
        notes = _notes(data)

        for d in sundays:
            MonthlyAvailability.objects.update_or_create(
                member=member,
                date=d,
                defaults={
                    "status": AvailabilityStatus.AVAILABLE if d in chosen else AvailabilityStatus.UNAVAILABLE,
                    "preferred_role_id": role_id,
                    "notes": notes,
                },
            )
        self.recorder.record(
            "submit_availability", "availability", member.id, _member_actor(member),
            f"{member.name} submitted availability for {month_key(year, month)} "
            f"({pluralize(len(chosen), 'available Sunday')})",
        )
        return len(chosen)

    # ---- period links ----

    def period(self, raw_id: Any) -> AvailabilityPeriod:
        if not str(raw_id).isdigit():
            raise ValidationFailed("Invalid periodId")
        period = PeriodRepository.by_id(int(raw_id))
        if period is None:
            raise NotFoundError("Period not found")
        return period

    def period_locked(self, period: AvailabilityPeriod) -> bool:
        if period.closed_at is not None:
            return True
        return period.deadline is not None and self.clock.today() > period.deadline

    def period_view(self, member: Member, raw_id: Any) -> Dict[str, Any]:
        period = self.period(raw_id)
        resp = PeriodRepository.response_for(period, member)
        return {
            "member": {"id": member.id, "name": member.name},
            "period": {
                "id": period.id,
                "label": period.label,
                "starts_on": period.starts_on.isoformat(),
                "ends_on": period.ends_on.isoformat(),
                "deadline": period.deadline.isoformat() if period.deadline else None,
                "closed": period.closed_at is not None,
            },
            "sundays": [d.isoformat() for d in sundays_between(period.starts_on, period.ends_on)],
            "response": {
                "notes": resp.notes,
                "preferred_role_id": resp.preferred_role_id,
                "dates": [
                    {"date": d.date.isoformat(), "available": d.available}
                    for d in sorted(resp.dates.all(), key=lambda x: x.date)
                ],
            } if resp else None,
            "roles": _role_payload(member),
            "lockout": self.period_locked(period),
        }

    @transaction.atomic
    def submit_period(self, member: Member, raw_id: Any, data: Mapping[str, Any]) -> AvailabilityResponse:
        """Replaces the member's answer for a period."""
        period = self.period(raw_id)
        if self.period_locked(period):
            raise StateLocked("This availability period is closed")

        sundays = sundays_between(period.starts_on, period.ends_on)
        chosen = _chosen_sundays(data, sundays)
        role_id = _preferred_role_id(data)
        notes = _notes(data)

        resp, _ = AvailabilityResponse.objects.update_or_create(
            period=period,
            member=member,
            defaults={"notes": notes, "preferred_role_id": role_id},
        )
        resp.dates.all().delete()
        AvailabilityDate.objects.bulk_create(
            [AvailabilityDate(response=resp, date=d, available=d in chosen) for d in sundays]
        )
        self.recorder.record(
            "submit_availability", "availability_period", period.id, _member_actor(member),
            f'{member.name} responded to "{period.label}" ({pluralize(len(chosen), "available Sunday")})',
        )
        return resp
