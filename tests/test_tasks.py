from datetime import date
from io import StringIO

import pytest
from django.core.management import call_command

from rostering.domain.models import AppRole, AvailabilityStatus, MonthlyAvailability, TeamRole
from rostering.services.clock import FixedClock
from rostering.tasks import availability_reminder, notify_setlist_published


@pytest.fixture
def clock_at(monkeypatch):
    def _at(d):
        monkeypatch.setattr("rostering.tasks.get_clock", lambda: FixedClock(d))
    return _at


@pytest.mark.django_db
def test_reminder_skips_members_who_answered(members, clock_at, mailoutbox, settings):
    settings.PUBLIC_BASE_URL = "https://roster.example.com/"
    clock_at(date(2026, 3, 10))
    answered = members[AppRole.WORSHIP_LEADER]
    MonthlyAvailability.objects.create(member=answered, date=date(2026, 4, 5), status=AvailabilityStatus.AVAILABLE)

    assert availability_reminder() == 3
    recipients = sorted(m.to[0] for m in mailoutbox)
    expected = sorted(
        m.email for role, m in members.items() if role not in (AppRole.ADMIN, AppRole.WORSHIP_LEADER)
    )
    assert recipients == expected

    musician = members[AppRole.MUSICIAN]
    mail = next(m for m in mailoutbox if m.to == [musician.email])
    assert f"https://roster.example.com/availability/{musician.magic_token}?targetMonth=2026-04-01" in mail.body
    assert "2026-03-20" in mail.body


@pytest.mark.django_db
def test_reminder_is_silent_once_locked(members, clock_at, mailoutbox):
    clock_at(date(2026, 3, 20))
    assert availability_reminder() == 0
    assert mailoutbox == []


@pytest.mark.django_db
def test_setlist_notification(members, make_member, mailoutbox):
    make_member(is_active=False)
    assert notify_setlist_published("2026-03-22") == len(members)
    assert len(mailoutbox) == 1
    assert "22 March 2026" in mailoutbox[0].subject
    assert notify_setlist_published("not-a-date") == 0


@pytest.mark.django_db
def test_trigger_task_sync(members, mailoutbox):
    out = StringIO()
    call_command("trigger_task", "setlist_published", "--date", "2026-03-22", "--sync", stdout=out)
    assert "[sync]" in out.getvalue()
    assert len(mailoutbox) == 1


@pytest.mark.django_db
def test_seed_commands_are_idempotent():
    call_command("seed_demo", stdout=StringIO())
    call_command("seed_demo", "--no-period", stdout=StringIO())
    assert TeamRole.objects.filter(name="worship_lead").count() == 1
    assert TeamRole.objects.count() == 11
