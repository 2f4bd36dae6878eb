from __future__ import annotations

from datetime import date, datetime, timedelta
import calendar as pycal
from typing import List, Tuple

# ========= Month arithmetic =========

def add_months(year: int, month: int, delta: int) -> Tuple[int, int]:
    """Shifts (year, month) by ``delta`` months.

    Args:
        year (int): Starting year.
        month (int): Starting month, 1-12.
        delta (int): Months to add, may be negative.

    Returns:
        Tuple[int, int]: The resulting (year, month).
    """
    idx = year * 12 + (month - 1) + delta
    return idx // 12, idx % 12 + 1

def next_month(today: date) -> Tuple[int, int]:
    return add_months(today.year, today.month, 1)

def month_bounds(year: int, month: int) -> Tuple[date, date]:
    last = pycal.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)

# ========= Sundays =========

def sundays_in_month(year: int, month: int) -> List[date]:
    """Lists the Sundays (weekday=6) of the given month.

    Args:
        year (int): Year of the month.
        month (int): Month to inspect.

    Returns:
        List[date]: Sundays of that month in ascending order.
    """
    cal = pycal.Calendar(firstweekday=0)
    return [
        d for d in cal.itermonthdates(year, month)
        if d.month == month and d.weekday() == 6
    ]

def sundays_between(start: date, end: date) -> List[date]:
    """Lists the Sundays in the closed interval [start, end]."""
    if start > end:
        return []
    first = start + timedelta(days=(6 - start.weekday()) % 7)
    out = []
    d = first
    while d <= end:
        out.append(d)
        d += timedelta(days=7)
    return out

def current_sunday(now: datetime) -> date:
    """Sunday the team is preparing for.

    Before noon on a Sunday that is today; from noon onwards, and on any other
    weekday, it is the coming Sunday.
    """
    today = now.date()
    if today.weekday() == 6:
        return today if now.hour < 12 else today + timedelta(days=7)
    return today + timedelta(days=6 - today.weekday())

# ========= Availability lockout =========

def lockout_date(year: int, month: int, lockout_day: int = 20) -> date:
    """First locked day for a target month: ``lockout_day`` of the previous month."""
    py, pm = add_months(year, month, -1)
    return date(py, pm, lockout_day)

def is_month_locked(year: int, month: int, today: date, lockout_day: int = 20) -> bool:
    return today >= lockout_date(year, month, lockout_day)
