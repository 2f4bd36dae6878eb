from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, List

from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail

from rostering.domain.models import Member
from rostering.domain.repositories import MemberRepository, MonthlyAvailabilityRepository
from rostering.services.calendar import lockout_date, month_bounds, next_month
from rostering.services.clock import get_clock
from rostering.utils import month_key

log = logging.getLogger(__name__)

# =========================
# Helpers
# =========================

def _distinct_valid_emails(members: Iterable[Member]) -> List[str]:
    emails = {m.email.strip().lower() for m in members if getattr(m, "email", None)}
    return sorted(e for e in emails if e)

def availability_link(member: Member, year: int, month: int) -> str:
    base = settings.PUBLIC_BASE_URL.rstrip("/")
    return f"{base}/availability/{member.magic_token}?targetMonth={month_key(year, month)}-01"

# =========================
# Tasks
# =========================

@shared_task
def availability_reminder() -> int:
    """Emails each active musician who has not answered for next month yet.

    Returns:
        int: Number of reminders sent.
    """
    today = get_clock().today()
    year, month = next_month(today)
    first_locked = lockout_date(year, month, settings.AVAILABILITY_LOCKOUT_DAY)
    if today >= first_locked:
        log.info("availability_reminder: %s already locked, nothing to send.", month_key(year, month))
        return 0

    start, end = month_bounds(year, month)
    answered = MonthlyAvailabilityRepository.responded_member_ids(start, end)
    pending = [m for m in MemberRepository.active_musicians() if m.id not in answered]

    sent = 0
    for member in pending:
        subject = f"Availability for {month_key(year, month)}"
        msg = (
            f"Hi {member.name},\n\n"
            f"Please let us know which Sundays you can serve in {month_key(year, month)} "
            f"before {first_locked.isoformat()}:\n{availability_link(member, year, month)}\n"
        )
        try:
            send_mail(subject, msg, settings.DEFAULT_FROM_EMAIL, [member.email], fail_silently=False)
            sent += 1
        except Exception:  # pragma: no cover
            log.exception("availability_reminder: failed to email member %s.", member.id)
    log.info("availability_reminder: %d reminder(s) sent for %s.", sent, month_key(year, month))
    return sent

@shared_task
def notify_setlist_published(sunday: str) -> int:
    """Lets the team know a Sunday's setlist is out.

    Args:
        sunday (str): Service date, YYYY-MM-DD.

    Returns:
        int: Number of recipients notified.
    """
    try:
        d = date.fromisoformat(sunday)
    except ValueError:
        log.warning("notify_setlist_published: invalid date %r.", sunday)
        return 0
    recipients = _distinct_valid_emails(MemberRepository.actives())
    if not recipients:
        log.info("notify_setlist_published: no recipients.")
        return 0
    subject = f"Setlist for {d:%d %B %Y} is published"
    msg = f"The setlist for Sunday {d.isoformat()} is now available."
    try:
        send_mail(subject, msg, settings.DEFAULT_FROM_EMAIL, recipients, fail_silently=True)
        log.info("notify_setlist_published: sent to %d recipient(s).", len(recipients))
    except Exception:  # pragma: no cover
        log.exception("notify_setlist_published: sending failed.")
        return 0
    return len(recipients)
