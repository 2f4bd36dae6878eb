from __future__ import annotations

from django.contrib import admin

from rostering.domain.models import (
    AuditLog,
    AvailabilityDate,
    AvailabilityPeriod,
    AvailabilityResponse,
    ChordChart,
    Member,
    MonthlyAvailability,
    RosterAssignment,
    RosterNote,
    SetlistSlot,
    Song,
    TeamRole,
)

# =========================
# Inlines
# =========================

class ChordChartInline(admin.TabularInline):
    model = ChordChart
    extra = 0

class AvailabilityDateInline(admin.TabularInline):
    model = AvailabilityDate
    extra = 0
    fields = ("date", "available")

# =========================
# Team
# =========================

@admin.register(TeamRole)
class TeamRoleAdmin(admin.ModelAdmin):
    list_display = ("name", "label", "sort_order")
    ordering = ("sort_order", "name")
    search_fields = ("name", "label")

@admin.register(Member)
class MemberAdmin(admin.ModelAdmin):
    list_display = ("name", "email", "app_role", "is_active", "phone")
    list_filter = ("app_role", "is_active", "roles")
    search_fields = ("name", "email", "phone")
    filter_horizontal = ("roles",)
    readonly_fields = ("created_at",)
    ordering = ("name",)
    list_per_page = 50

    actions = ["activate_members", "deactivate_members"]

    @admin.action(description="Activate selected members")
    def activate_members(self, request, qs):
        qs.update(is_active=True)

    @admin.action(description="Deactivate selected members")
    def deactivate_members(self, request, qs):
        qs.update(is_active=False)

@admin.register(Song)
class SongAdmin(admin.ModelAdmin):
    list_display = ("title", "artist", "is_active")
    list_filter = ("is_active",)
    search_fields = ("title", "artist")
    inlines = (ChordChartInline,)

# =========================
# Availability
# =========================

@admin.register(AvailabilityPeriod)
class AvailabilityPeriodAdmin(admin.ModelAdmin):
    list_display = ("label", "starts_on", "ends_on", "deadline", "closed_at", "response_count")
    list_filter = ("closed_at",)
    search_fields = ("label",)
    date_hierarchy = "starts_on"
    readonly_fields = ("created_at",)

    @admin.display(description="Responses")
    def response_count(self, obj: AvailabilityPeriod) -> int:
        return obj.responses.count()

@admin.register(AvailabilityResponse)
class AvailabilityResponseAdmin(admin.ModelAdmin):
    list_display = ("period", "member", "preferred_role", "submitted_at")
    list_filter = ("period",)
    search_fields = ("member__name",)
    list_select_related = ("period", "member", "preferred_role")
    inlines = (AvailabilityDateInline,)

@admin.register(MonthlyAvailability)
class MonthlyAvailabilityAdmin(admin.ModelAdmin):
    list_display = ("date", "member", "status", "preferred_role", "submitted_at")
    list_filter = ("status",)
    search_fields = ("member__name",)
    date_hierarchy = "date"
    list_select_related = ("member", "preferred_role")

# =========================
# Roster & setlist
# =========================

@admin.register(RosterAssignment)
class RosterAssignmentAdmin(admin.ModelAdmin):
    list_display = ("date", "role", "member", "status", "locked_at")
    list_filter = ("status", "role")
    search_fields = ("member__name",)
    date_hierarchy = "date"
    list_select_related = ("role", "member")

@admin.register(RosterNote)
class RosterNoteAdmin(admin.ModelAdmin):
    list_display = ("month", "updated_at")
    ordering = ("-month",)

@admin.register(SetlistSlot)
class SetlistSlotAdmin(admin.ModelAdmin):
    list_display = ("sunday_date", "position", "song", "chosen_key", "status")
    list_filter = ("status",)
    search_fields = ("song__title",)
    date_hierarchy = "sunday_date"
    ordering = ("-sunday_date", "position")
    list_select_related = ("song",)

# =========================
# AuditLog
# =========================

@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ("created_at", "actor_name", "actor_role", "action", "entity_type", "entity_id", "summary")
    list_filter = ("action", "entity_type", "actor_role")
    search_fields = ("actor_name", "summary", "entity_id")
    readonly_fields = (
        "actor_id", "actor_name", "actor_role", "action", "entity_type", "entity_id", "summary", "created_at",
    )
    date_hierarchy = "created_at"
    ordering = ("-created_at",)
    list_per_page = 50

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
