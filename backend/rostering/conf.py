from __future__ import annotations

from dataclasses import dataclass
from zoneinfo import ZoneInfo

from django.conf import settings

from rostering.utils import _get_setting


@dataclass(frozen=True)
class RosterConfig:
    """Runtime configuration consumed by the rostering services.

    Built from Django settings at request time and handed to each manager, so
    tests can override a single value through the ``settings`` fixture.
    """
    time_zone: str = "Australia/Melbourne"
    setlist_max_songs: int = 3
    lockout_day: int = 20
    session_cookie: str = "sb-access-token"
    dev_bypass_cookie: str = "dev_auth"
    dev_mode: bool = False
    datastore_configured: bool = True
    audit_page_size: int = 50

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.time_zone)


def _datastore_configured() -> bool:
    default = (getattr(settings, "DATABASES", None) or {}).get("default") or {}
    return bool(default.get("ENGINE")) and bool(default.get("NAME"))


def get_config() -> RosterConfig:
    return RosterConfig(
        time_zone=_get_setting("ROSTER_TIME_ZONE", "Australia/Melbourne"),
        setlist_max_songs=int(_get_setting("SETLIST_MAX_SONGS", 3)),
        lockout_day=int(_get_setting("AVAILABILITY_LOCKOUT_DAY", 20)),
        session_cookie=_get_setting("SESSION_TOKEN_COOKIE", "sb-access-token"),
        dev_bypass_cookie=_get_setting("DEV_BYPASS_COOKIE", "dev_auth"),
        dev_mode=_get_setting("APP_ENV", "production") == "development",
        datastore_configured=_datastore_configured(),
        audit_page_size=int(_get_setting("AUDIT_LOG_PAGE_SIZE", 50)),
    )
