from dataclasses import replace

import pytest

from rostering.conf import get_config
from rostering.domain.models import AppRole
from rostering.domain.repositories import MemberRepository
from rostering.services.actor import DEV_ACTOR, decode_token_payload, get_actor, resolve_actor


def _request(rf, **cookies):
    request = rf.get("/api/v1/me")
    request.COOKIES.update(cookies)
    return request


def test_decode_rejects_wrong_segment_counts(session_token):
    good = session_token({"email": "a@example.com"})
    header, body, sig = good.split(".")
    assert decode_token_payload(good) == {"email": "a@example.com"}
    assert decode_token_payload(f"{header}.{body}") is None
    assert decode_token_payload(f"{header}.{body}.{sig}.extra") is None
    assert decode_token_payload("") is None
    assert decode_token_payload(None) is None


def test_decode_rejects_non_json_and_non_object_payloads(session_token):
    assert decode_token_payload(session_token("not json at all")) is None
    assert decode_token_payload(session_token('["a@example.com"]')) is None
    assert decode_token_payload("a.%%%%.c") is None


@pytest.mark.django_db
def test_resolves_member_by_email(rf, make_member, session_token):
    m = make_member(AppRole.WORSHIP_LEADER, name="Wren", email="wren@example.com")
    cookie = get_config().session_cookie
    actor = resolve_actor(_request(rf, **{cookie: session_token({"email": "wren@example.com"})}))
    assert actor is not None
    assert (actor.id, actor.name, actor.role) == (m.id, "Wren", AppRole.WORSHIP_LEADER)


@pytest.mark.django_db
def test_unmapped_email_and_missing_email_resolve_to_none(rf, make_member, session_token):
    make_member(email="known@example.com")
    cookie = get_config().session_cookie
    assert resolve_actor(_request(rf, **{cookie: session_token({"email": "nobody@example.com"})})) is None
    assert resolve_actor(_request(rf, **{cookie: session_token({"sub": "123"})})) is None
    assert resolve_actor(_request(rf)) is None


@pytest.mark.django_db
def test_failed_lookup_is_swallowed(rf, monkeypatch, session_token):
    def boom(cls, email):
        raise RuntimeError("connection refused")

    monkeypatch.setattr(MemberRepository, "identity_by_email", classmethod(boom))
    cookie = get_config().session_cookie
    assert resolve_actor(_request(rf, **{cookie: session_token({"email": "a@example.com"})})) is None


@pytest.mark.django_db
def test_unknown_stored_role_resolves_to_none(rf, make_member, session_token):
    m = make_member(email="odd@example.com")
    type(m).objects.filter(pk=m.pk).update(app_role="Janitor")
    cookie = get_config().session_cookie
    assert resolve_actor(_request(rf, **{cookie: session_token({"email": "odd@example.com"})})) is None


def test_dev_bypass_only_in_development(rf, settings):
    cookie = get_config().dev_bypass_cookie
    settings.APP_ENV = "production"
    assert resolve_actor(_request(rf, **{cookie: "1"})) is None

    settings.APP_ENV = "development"
    assert resolve_actor(_request(rf, **{cookie: "1"})) == DEV_ACTOR
    assert resolve_actor(_request(rf, **{cookie: "0"})) is None


def test_dev_bypass_skips_the_datastore(rf, settings, monkeypatch):
    def boom(cls, email):
        raise AssertionError("datastore must not be touched")

    monkeypatch.setattr(MemberRepository, "identity_by_email", classmethod(boom))
    settings.APP_ENV = "development"
    request = _request(rf, **{get_config().dev_bypass_cookie: "1", get_config().session_cookie: "x.y.z"})
    actor = resolve_actor(request)
    assert actor.as_dict() == {"id": None, "name": "Dev Admin", "role": "Admin"}


def test_missing_datastore_config_resolves_to_none(rf, monkeypatch, session_token):
    def boom(cls, email):
        raise AssertionError("no connection expected")

    monkeypatch.setattr(MemberRepository, "identity_by_email", classmethod(boom))
    config = replace(get_config(), datastore_configured=False)
    request = _request(rf, **{get_config().session_cookie: session_token({"email": "a@example.com"})})
    assert resolve_actor(request, config=config) is None


@pytest.mark.django_db
def test_get_actor_caches_on_request(rf, make_member, monkeypatch, session_token):
    make_member(email="cache@example.com")
    request = _request(rf, **{get_config().session_cookie: session_token({"email": "cache@example.com"})})
    first = get_actor(request)

    def boom(cls, email):
        raise AssertionError("resolved twice")

    monkeypatch.setattr(MemberRepository, "identity_by_email", classmethod(boom))
    assert get_actor(request) is first


@pytest.mark.django_db
def test_me_endpoint(client, login, members):
    assert client.get("/api/v1/me").status_code == 401
    login(members[AppRole.COORDINATOR])
    resp = client.get("/api/v1/me")
    assert resp.status_code == 200
    assert resp.json()["role"] == "Coordinator"
