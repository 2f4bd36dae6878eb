from __future__ import annotations

from datetime import date
import re
from typing import Any, Optional, Tuple

from django.conf import settings

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
MONTH_RE = re.compile(r"^(\d{4})-(\d{2})(?:-01)?$")

# =========================
# Helpers
# =========================

def parse_iso_date(value: Any) -> Optional[date]:
    """Parses a strict YYYY-MM-DD string.

    Args:
        value (Any): Raw value from a query string or JSON body.

    Returns:
        Optional[date]: The date, or None when the value is missing or malformed.
    """
    if not isinstance(value, str) or not ISO_DATE_RE.match(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None

def parse_month(value: Any) -> Optional[Tuple[int, int]]:
    """Parses "YYYY-MM" or "YYYY-MM-01" into (year, month)."""
    if not isinstance(value, str):
        return None
    m = MONTH_RE.match(value.strip())
    if not m:
        return None
    y, mo = int(m.group(1)), int(m.group(2))
    if not (1 <= mo <= 12):
        return None
    return y, mo

def month_key(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"

def _get_setting(name: str, default: Any = None) -> Any:
    """Reads a Django setting with a default value."""
    return getattr(settings, name, default)
