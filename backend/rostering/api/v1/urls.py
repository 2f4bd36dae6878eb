from django.urls import path
from .views import (
    audit_log,
    current_sunday,
    me,
    member_availability,
    period_detail,
    periods,
    roster,
    setlist,
    setlist_clear,
    setlist_publish,
    setlist_reorder,
    setlist_revert,
    setlist_slot,
)

urlpatterns = [
    path("me", me, name="api_me"),
    path("calendar/current-sunday", current_sunday, name="api_current_sunday"),

    path("availability/periods", periods, name="api_periods"),
    path("availability/periods/<int:period_id>", period_detail, name="api_period_detail"),
    path("availability/<str:token>", member_availability, name="api_member_availability"),

    path("setlist", setlist, name="api_setlist"),
    path("setlist/<int:slot_id>", setlist_slot, name="api_setlist_slot"),
    path("setlist/<str:date>/publish", setlist_publish, name="api_setlist_publish"),
    path("setlist/<str:date>/revert", setlist_revert, name="api_setlist_revert"),
    path("setlist/<str:date>/reorder", setlist_reorder, name="api_setlist_reorder"),
    path("setlist/<str:date>/slots", setlist_clear, name="api_setlist_clear"),

    path("roster", roster, name="api_roster"),
    path("audit-log", audit_log, name="api_audit_log"),
]
