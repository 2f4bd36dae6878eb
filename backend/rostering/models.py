# Django discovers models through rostering.models
from rostering.domain.models import (  # noqa: F401
    AppRole,
    AuditLog,
    AvailabilityDate,
    AvailabilityPeriod,
    AvailabilityResponse,
    AvailabilityStatus,
    ChordChart,
    Member,
    MonthlyAvailability,
    RosterAssignment,
    RosterNote,
    RosterStatus,
    SetlistSlot,
    SetlistStatus,
    Song,
    TeamRole,
)
