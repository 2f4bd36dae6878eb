import base64
import itertools
import json
from io import StringIO

import pytest
from django.core.management import call_command

from rostering.conf import get_config
from rostering.domain.models import AppRole, ChordChart, Member, RosterAssignment, Song, TeamRole
from rostering.services.clock import FixedClock


def encode_token(payload) -> str:
    """Builds a three-segment session token carrying ``payload`` (dict or raw str)."""
    raw = payload if isinstance(payload, str) else json.dumps(payload)
    body = base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii").rstrip("=")
    return f"eyJhbGciOiJIUzI1NiJ9.{body}.c2lnbmF0dXJl"


@pytest.fixture
def session_token():
    return encode_token


@pytest.fixture(autouse=True)
def enqueued(monkeypatch):
    """Publishing never reaches a broker in tests; collected calls are returned."""
    calls = []
    monkeypatch.setattr(
        "rostering.tasks.notify_setlist_published.delay", lambda *a, **kw: calls.append(a)
    )
    return calls


@pytest.fixture
def team_roles(db):
    call_command("seed_roles", stdout=StringIO())
    return {r.name: r for r in TeamRole.objects.all()}


@pytest.fixture
def make_member(db):
    counter = itertools.count(1)

    def _make(role=AppRole.MUSICIAN, name=None, email=None, **extra):
        n = next(counter)
        return Member.objects.create(
            name=name or f"{AppRole(role).label} {n}",
            email=email or f"member{n}@example.com",
            app_role=role,
            magic_token=f"token-{n}",
            **extra,
        )
    return _make


@pytest.fixture
def members(make_member):
    """One active member per application role."""
    return {role: make_member(role) for role in AppRole}


@pytest.fixture
def songs(db):
    out = []
    for title, key in [("Cornerstone", "C"), ("Way Maker", "E"), ("Build My Life", "G"), ("Holy Spirit", "D")]:
        song = Song.objects.create(title=title, artist="Various")
        ChordChart.objects.create(song=song, key=key)
        out.append(song)
    return out


@pytest.fixture
def login(client):
    """Puts a session cookie for ``member`` on the test client."""
    def _login(member):
        client.cookies[get_config().session_cookie] = encode_token({"email": member.email})
        return client
    return _login


@pytest.fixture
def freeze(monkeypatch):
    """Freezes the clock the API views use."""
    def _freeze(moment):
        clock = FixedClock(moment)
        monkeypatch.setattr("rostering.api.v1.views.get_clock", lambda: clock)
        return clock
    return _freeze


@pytest.fixture
def lead_on(team_roles):
    """Rosters ``member`` as worship lead on ``d``."""
    def _lead_on(d, member):
        return RosterAssignment.objects.create(date=d, role=team_roles["worship_lead"], member=member)
    return _lead_on


class FakeRecorder:
    def __init__(self):
        self.calls = []

    def record(self, action, entity_type, entity_id, actor, summary):
        self.calls.append((action, entity_type, entity_id, actor, summary))


@pytest.fixture
def fake_recorder():
    return FakeRecorder()
