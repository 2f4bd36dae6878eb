from __future__ import annotations

from django.core.validators import MinValueValidator
from django.db import models

# =========================
# Canonical choices
# =========================

class AppRole(models.TextChoices):
    ADMIN = "Admin", "Admin"
    COORDINATOR = "Coordinator", "Coordinator"
    MUSIC_COORDINATOR = "MusicCoordinator", "Music coordinator"
    WORSHIP_LEADER = "WorshipLeader", "Worship leader"
    MUSICIAN = "Musician", "Musician"

class AvailabilityStatus(models.TextChoices):
    AVAILABLE = "AVAILABLE", "Available"
    UNAVAILABLE = "UNAVAILABLE", "Unavailable"

class SetlistStatus(models.TextChoices):
    DRAFT = "DRAFT", "Draft"
    PUBLISHED = "PUBLISHED", "Published"

class RosterStatus(models.TextChoices):
    DRAFT = "DRAFT", "Draft"
    LOCKED = "LOCKED", "Locked"

WORSHIP_LEAD_ROLE = "worship_lead"

# =========================
# Team
# =========================

class TeamRole(models.Model):
    """An instrument or position filled on the Sunday roster."""
    name = models.SlugField(max_length=40, unique=True)
    label = models.CharField(max_length=80)
    sort_order = models.PositiveSmallIntegerField(default=0)

    class Meta:
        verbose_name = "Team role"
        verbose_name_plural = "Team roles"
        ordering = ["sort_order", "name"]

    def __str__(self):
        return self.label or self.name

class Member(models.Model):
    """A person on the worship team."""
    name = models.CharField(max_length=120, db_index=True)
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=30, blank=True, null=True)
    app_role = models.CharField(
        max_length=20, choices=AppRole.choices, default=AppRole.MUSICIAN, db_index=True
    )
    magic_token = models.CharField(max_length=64, unique=True)
    is_active = models.BooleanField(default=True, db_index=True)
    roles = models.ManyToManyField(TeamRole, blank=True, related_name="members")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Member"
        verbose_name_plural = "Members"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["is_active", "app_role"], name="member_active_role_idx"),
        ]

    def __str__(self):
        return self.name

class Song(models.Model):
    title = models.CharField(max_length=200, db_index=True)
    artist = models.CharField(max_length=200, blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        verbose_name = "Song"
        verbose_name_plural = "Songs"
        ordering = ["title"]

    def __str__(self):
        return self.title

class ChordChart(models.Model):
    song = models.ForeignKey(Song, on_delete=models.CASCADE, related_name="charts")
    key = models.CharField(max_length=8)

    class Meta:
        verbose_name = "Chord chart"
        verbose_name_plural = "Chord charts"

    def __str__(self):
        return f"{self.song} ({self.key})"

# =========================
# Availability
# =========================

class AvailabilityPeriod(models.Model):
    """A bounded date range during which members are asked for availability."""
    label = models.CharField(max_length=120)
    starts_on = models.DateField(db_index=True)
    ends_on = models.DateField(db_index=True)
    deadline = models.DateField(blank=True, null=True)
    closed_at = models.DateTimeField(blank=True, null=True, db_index=True)
    created_by = models.ForeignKey(
        Member, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Availability period"
        verbose_name_plural = "Availability periods"
        ordering = ["-starts_on"]
        indexes = [
            models.Index(fields=["closed_at", "starts_on"], name="period_open_start_idx"),
        ]

    def __str__(self):
        return f"{self.label} ({self.starts_on} - {self.ends_on})"

    @property
    def is_open(self) -> bool:
        return self.closed_at is None

class AvailabilityResponse(models.Model):
    """A member's answer for one period."""
    period = models.ForeignKey(AvailabilityPeriod, on_delete=models.CASCADE, related_name="responses")
    member = models.ForeignKey(Member, on_delete=models.CASCADE, related_name="period_responses")
    preferred_role = models.ForeignKey(
        TeamRole, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    notes = models.TextField(blank=True, default="")
    submitted_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Availability response"
        verbose_name_plural = "Availability responses"
        constraints = [
            models.UniqueConstraint(fields=("period", "member"), name="uniq_response_period_member"),
        ]

    def __str__(self):
        return f"{self.member} @ {self.period_id}"

class AvailabilityDate(models.Model):
    response = models.ForeignKey(AvailabilityResponse, on_delete=models.CASCADE, related_name="dates")
    date = models.DateField()
    available = models.BooleanField(default=False)

    class Meta:
        ordering = ["date"]
        constraints = [
            models.UniqueConstraint(fields=("response", "date"), name="uniq_response_date"),
        ]

    def __str__(self):
        return f"{self.date} {'yes' if self.available else 'no'}"

class MonthlyAvailability(models.Model):
    """Per-Sunday answer given through the monthly availability link."""
    member = models.ForeignKey(Member, on_delete=models.CASCADE, related_name="monthly_availability")
    date = models.DateField(db_index=True)
    status = models.CharField(max_length=12, choices=AvailabilityStatus.choices)
    preferred_role = models.ForeignKey(
        TeamRole, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    notes = models.TextField(blank=True, default="")
    submitted_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Monthly availability"
        verbose_name_plural = "Monthly availability"
        ordering = ["date"]
        constraints = [
            models.UniqueConstraint(fields=("member", "date"), name="uniq_monthly_member_date"),
        ]

    def __str__(self):
        return f"{self.member} {self.date} {self.status}"

# =========================
# Roster & setlist
# =========================

class RosterAssignment(models.Model):
    date = models.DateField(db_index=True)
    role = models.ForeignKey(TeamRole, on_delete=models.CASCADE, related_name="assignments")
    member = models.ForeignKey(
        Member, on_delete=models.SET_NULL, null=True, blank=True, related_name="assignments"
    )
    status = models.CharField(
        max_length=10, choices=RosterStatus.choices, default=RosterStatus.DRAFT, db_index=True
    )
    assigned_at = models.DateTimeField(auto_now=True)
    locked_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        verbose_name = "Roster assignment"
        verbose_name_plural = "Roster assignments"
        ordering = ["date", "role__sort_order"]
        constraints = [
            models.UniqueConstraint(fields=("date", "role"), name="uniq_roster_date_role"),
        ]

    def __str__(self):
        return f"{self.date} {self.role} -> {self.member or '-'}"

class RosterNote(models.Model):
    month = models.CharField(max_length=7, unique=True, help_text="YYYY-MM")
    notes = models.TextField(blank=True, default="")
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Roster note"
        verbose_name_plural = "Roster notes"
        ordering = ["-month"]

    def __str__(self):
        return self.month

class SetlistSlot(models.Model):
    """One song at one position of a Sunday's setlist."""
    sunday_date = models.DateField(db_index=True)
    song = models.ForeignKey(Song, on_delete=models.CASCADE, related_name="slots")
    position = models.PositiveSmallIntegerField(validators=[MinValueValidator(1)])
    chosen_key = models.CharField(max_length=8, blank=True, null=True)
    status = models.CharField(
        max_length=10, choices=SetlistStatus.choices, default=SetlistStatus.DRAFT, db_index=True
    )
    created_by = models.ForeignKey(
        Member, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Setlist slot"
        verbose_name_plural = "Setlist slots"
        ordering = ["sunday_date", "position"]
        constraints = [
            models.UniqueConstraint(fields=("sunday_date", "position"), name="uniq_setlist_date_position"),
            models.UniqueConstraint(fields=("sunday_date", "song"), name="uniq_setlist_date_song"),
        ]

    def __str__(self):
        return f"{self.sunday_date} #{self.position} {self.song}"

# =========================
# Audit
# =========================

class AuditLog(models.Model):
    """Append-only record of who changed what."""
    actor_id = models.BigIntegerField(blank=True, null=True)
    actor_name = models.CharField(max_length=120)
    actor_role = models.CharField(max_length=20)
    action = models.CharField(max_length=40, db_index=True)
    entity_type = models.CharField(max_length=40, db_index=True)
    entity_id = models.CharField(max_length=64, blank=True, default="")
    summary = models.CharField(max_length=255)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        verbose_name = "Audit entry"
        verbose_name_plural = "Audit log"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["entity_type", "entity_id"], name="audit_entity_idx"),
        ]

    def __str__(self):
        return f"{self.created_at:%Y-%m-%d %H:%M} {self.actor_name} {self.action}"
