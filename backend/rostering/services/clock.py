from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional
from zoneinfo import ZoneInfo

from django.utils import timezone

from rostering.conf import get_config


class Clock:
    """Current time in the roster's reference time zone."""

    def __init__(self, tz: Optional[ZoneInfo] = None):
        self.tz = tz or get_config().tz

    def now(self) -> datetime:
        return timezone.now().astimezone(self.tz)

    def today(self) -> date:
        return self.now().date()


class FixedClock(Clock):
    """A clock frozen at one moment. Naive values are read in the reference zone."""

    def __init__(self, moment: datetime | date, tz: Optional[ZoneInfo] = None):
        super().__init__(tz)
        if not isinstance(moment, datetime):
            moment = datetime.combine(moment, time(hour=9))
        if timezone.is_naive(moment):
            moment = moment.replace(tzinfo=self.tz)
        self._moment = moment.astimezone(self.tz)

    def now(self) -> datetime:
        return self._moment


def get_clock() -> Clock:
    return Clock()
