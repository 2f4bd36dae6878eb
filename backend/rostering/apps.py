from __future__ import annotations

from typing import List
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from django.apps import AppConfig
from django.core.checks import Error, Tags, register

from rostering.utils import _get_setting

# =========================
# System checks (settings validation)
# =========================

@register(Tags.compatibility)
def rostering_settings_check(app_configs, **kwargs):
    """Ensures the rostering settings hold usable values."""
    errors: List[Error] = []

    max_songs = _get_setting("SETLIST_MAX_SONGS", 3)
    if not isinstance(max_songs, int) or max_songs < 1:
        errors.append(
            Error(
                f"SETLIST_MAX_SONGS must be an integer >= 1. Current value: {max_songs!r}",
                id="rostering.E001",
            )
        )

    lockout_day = _get_setting("AVAILABILITY_LOCKOUT_DAY", 20)
    if not isinstance(lockout_day, int) or not (1 <= lockout_day <= 28):
        errors.append(
            Error(
                f"AVAILABILITY_LOCKOUT_DAY must be an integer between 1 and 28. Current value: {lockout_day!r}",
                id="rostering.E002",
            )
        )

    tz_name = _get_setting("ROSTER_TIME_ZONE", "Australia/Melbourne")
    try:
        ZoneInfo(str(tz_name))
    except (ZoneInfoNotFoundError, ValueError):
        errors.append(
            Error(
                f"ROSTER_TIME_ZONE is not a known IANA time zone: {tz_name!r}",
                id="rostering.E003",
            )
        )

    return errors

# =========================
# AppConfig
# =========================

class RosteringConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "rostering"
    verbose_name = "Worship roster"
