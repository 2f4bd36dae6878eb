from __future__ import annotations

from datetime import date
from typing import Any, Dict, Iterable, Optional

from django.db.models import Count, QuerySet

from rostering.domain.models import (
    WORSHIP_LEAD_ROLE,
    AppRole,
    AuditLog,
    AvailabilityPeriod,
    AvailabilityResponse,
    Member,
    MonthlyAvailability,
    RosterAssignment,
    RosterNote,
    SetlistSlot,
    SetlistStatus,
    Song,
    TeamRole,
)

# ==========================================================
# Member Repository
# ==========================================================
class MemberRepository:
    """Repository for Member lookups."""

    @classmethod
    def identity_by_email(cls, email: str) -> Optional[Dict[str, Any]]:
        """Returns the id, name and app_role of the member with that email.

        Args:
            email (str): Email claim taken from the session token.

        Returns:
            Optional[Dict[str, Any]]: The identity columns, or None when no member matches.
        """
        return Member.objects.filter(email=email).values("id", "name", "app_role").first()

    @classmethod
    def by_token(cls, token: str) -> Optional[Member]:
        """Returns the active member owning a personal availability link."""
        if not token:
            return None
        return Member.objects.filter(magic_token=token, is_active=True).first()

    @classmethod
    def actives(cls) -> QuerySet[Member]:
        return Member.objects.filter(is_active=True).order_by("name")

    @classmethod
    def active_musicians(cls) -> QuerySet[Member]:
        """Returns the active members who are asked for availability (everyone but Admins).

        Returns:
            QuerySet[Member]: Active non-Admin members ordered by name.
        """
        return cls.actives().exclude(app_role=AppRole.ADMIN)

    @classmethod
    def by_ids(cls, ids: Iterable[int]) -> QuerySet[Member]:
        return Member.objects.filter(id__in=ids).order_by("name")

# ==========================================================
# Catalogue Repository (team roles and songs)
# ==========================================================
class CatalogueRepository:
    """Repository for the reference rows scheduling points at."""

    @classmethod
    def team_roles(cls) -> QuerySet[TeamRole]:
        return TeamRole.objects.all().order_by("sort_order", "name")

    @classmethod
    def team_role_ids(cls, ids: Iterable[int]) -> set:
        return set(TeamRole.objects.filter(id__in=ids).values_list("id", flat=True))

    @classmethod
    def song(cls, song_id: int) -> Optional[Song]:
        return Song.objects.filter(id=song_id).first()

# ==========================================================
# Availability Repository
# ==========================================================
class PeriodRepository:
    """Repository for availability periods and their responses."""

    @classmethod
    def with_response_counts(cls) -> QuerySet[AvailabilityPeriod]:
        """Returns every period, newest first, annotated with ``response_count``.

        Returns:
            QuerySet[AvailabilityPeriod]: Periods ordered by ``-starts_on``.
        """
        return (
            AvailabilityPeriod.objects
            .annotate(response_count=Count("responses"))
            .order_by("-starts_on", "-id")
        )

    @classmethod
    def by_id(cls, period_id: int) -> Optional[AvailabilityPeriod]:
        return AvailabilityPeriod.objects.filter(id=period_id).first()

    @classmethod
    def open_overlapping(cls, starts_on: date, ends_on: date) -> QuerySet[AvailabilityPeriod]:
        """Returns the open periods whose range intersects [starts_on, ends_on].

        Args:
            starts_on (date): First day of the candidate range.
            ends_on (date): Last day of the candidate range.

        Returns:
            QuerySet[AvailabilityPeriod]: Overlapping open periods, earliest first.
        """
        return (
            AvailabilityPeriod.objects
            .filter(closed_at__isnull=True, starts_on__lte=ends_on, ends_on__gte=starts_on)
            .order_by("starts_on")
        )

    @classmethod
    def response_count(cls, period: AvailabilityPeriod) -> int:
        return AvailabilityResponse.objects.filter(period=period).count()

    @classmethod
    def responses(cls, period: AvailabilityPeriod) -> QuerySet[AvailabilityResponse]:
        return (
            AvailabilityResponse.objects
            .filter(period=period)
            .select_related("member")
            .prefetch_related("dates")
        )

    @classmethod
    def response_for(cls, period: AvailabilityPeriod, member: Member) -> Optional[AvailabilityResponse]:
        return (
            AvailabilityResponse.objects
            .filter(period=period, member=member)
            .prefetch_related("dates")
            .first()
        )

class MonthlyAvailabilityRepository:

    @classmethod
    def for_member_between(cls, member: Member, start: date, end: date) -> QuerySet[MonthlyAvailability]:
        return MonthlyAvailability.objects.filter(member=member, date__gte=start, date__lte=end).order_by("date")

    @classmethod
    def responded_member_ids(cls, start: date, end: date) -> set:
        return set(
            MonthlyAvailability.objects
            .filter(date__gte=start, date__lte=end)
            .values_list("member_id", flat=True)
        )

# ==========================================================
# Setlist Repository
# ==========================================================
class SetlistRepository:
    """Repository for setlist slots."""

    @classmethod
    def for_date(cls, sunday_date: date, published_only: bool = False) -> QuerySet[SetlistSlot]:
        """Returns the slots of one Sunday in position order.

        Args:
            sunday_date (date): Service date.
            published_only (bool, optional): Keep only PUBLISHED slots. Defaults to False.

        Returns:
            QuerySet[SetlistSlot]: Slots with their songs.
        """
        qs = SetlistSlot.objects.filter(sunday_date=sunday_date).select_related("song").order_by("position")
        if published_only:
            qs = qs.filter(status=SetlistStatus.PUBLISHED)
        return qs

    @classmethod
    def by_id(cls, slot_id: int) -> Optional[SetlistSlot]:
        return SetlistSlot.objects.filter(id=slot_id).select_related("song").first()

# ==========================================================
# Roster Repository
# ==========================================================
class RosterRepository:
    """Repository for roster assignments and month notes."""

    @classmethod
    def between(cls, start: date, end: date) -> QuerySet[RosterAssignment]:
        return (
            RosterAssignment.objects
            .filter(date__gte=start, date__lte=end)
            .select_related("role", "member")
            .order_by("date", "role__sort_order", "role__name")
        )

    @classmethod
    def rows_between(cls, start: date, end: date) -> QuerySet[RosterAssignment]:
        """Unordered rows in range, suitable for bulk ``update``."""
        return RosterAssignment.objects.filter(date__gte=start, date__lte=end)

    @classmethod
    def worship_lead_id(cls, d: date) -> Optional[int]:
        """Returns the id of the member leading worship on ``d``, if any.

        Args:
            d (date): Service date.

        Returns:
            Optional[int]: Member id, or None when the slot is empty or missing.
        """
        return (
            RosterAssignment.objects
            .filter(date=d, role__name=WORSHIP_LEAD_ROLE)
            .values_list("member_id", flat=True)
            .first()
        )

    @classmethod
    def note(cls, month: str) -> Optional[RosterNote]:
        return RosterNote.objects.filter(month=month).first()

# ==========================================================
# Audit Repository
# ==========================================================
class AuditLogRepository:

    @classmethod
    def append(cls, **fields) -> AuditLog:
        return AuditLog.objects.create(**fields)

    @classmethod
    def all(cls) -> QuerySet[AuditLog]:
        return AuditLog.objects.all()
