from datetime import date

import pytest
from django.db import DatabaseError

from rostering.domain.models import AppRole, AuditLog, SetlistSlot, SetlistStatus
from rostering.services.actor import Actor
from rostering.services.errors import AuthorizationDenied, ValidationFailed
from rostering.services.setlist import SetlistManager

SUNDAY = date(2026, 3, 22)
URL = "/api/v1/setlist"


def _actor(member):
    return Actor(id=member.id, name=member.name, role=AppRole(member.app_role))


def _manager(recorder, leads=False):
    seen = []

    def lookup(d, actor_id):
        seen.append((d, actor_id))
        return leads

    manager = SetlistManager(recorder=recorder, is_assigned_worship_lead=lookup)
    manager.lookups = seen
    return manager


def _slot(song, position, key=None, status=SetlistStatus.DRAFT, d=SUNDAY):
    return SetlistSlot.objects.create(sunday_date=d, song=song, position=position, chosen_key=key, status=status)


# =========================
# Manager
# =========================

@pytest.mark.django_db
def test_slot_cap(members, songs, fake_recorder):
    manager = _manager(fake_recorder)
    admin = _actor(members[AppRole.ADMIN])
    for position, song in enumerate(songs[:3], start=1):
        manager.upsert(admin, {"sunday_date": "2026-03-22", "song_id": song.id, "position": position})

    for bad in (4, 5, 0, -1, "abc", None, True, 2.5):
        with pytest.raises(ValidationFailed) as exc:
            manager.upsert(admin, {"sunday_date": "2026-03-22", "song_id": songs[3].id, "position": bad})
        assert "position" in str(exc.value.detail)
    assert SetlistSlot.objects.filter(sunday_date=SUNDAY).count() == 3
    assert len(fake_recorder.calls) == 3


@pytest.mark.django_db
def test_chosen_key_is_stored_as_given(members, songs, fake_recorder):
    manager = _manager(fake_recorder)
    admin = _actor(members[AppRole.ADMIN])
    slot = manager.upsert(admin, {"sunday_date": "2026-03-22", "song_id": songs[0].id, "position": 1})
    assert slot.chosen_key is None
    assert SetlistSlot.objects.get(pk=slot.pk).chosen_key is None


@pytest.mark.django_db
def test_same_song_updates_instead_of_duplicating(members, songs, fake_recorder):
    manager = _manager(fake_recorder)
    admin = _actor(members[AppRole.ADMIN])
    first = manager.upsert(admin, {"sunday_date": "2026-03-22", "song_id": songs[0].id, "position": 1, "chosen_key": "C"})
    again = manager.upsert(admin, {"sunday_date": "2026-03-22", "song_id": str(songs[0].id), "position": 2, "chosen_key": "D"})
    assert again.pk == first.pk
    slot = SetlistSlot.objects.get(sunday_date=SUNDAY)
    assert (slot.position, slot.chosen_key) == (2, "D")


@pytest.mark.django_db
def test_different_song_replaces_position_and_resets_to_draft(members, songs, fake_recorder):
    manager = _manager(fake_recorder)
    admin = _actor(members[AppRole.ADMIN])
    _slot(songs[0], 1, status=SetlistStatus.PUBLISHED)
    _slot(songs[1], 2, status=SetlistStatus.PUBLISHED)

    manager.upsert(admin, {"sunday_date": "2026-03-22", "song_id": songs[2].id, "position": 1})
    rows = list(SetlistSlot.objects.filter(sunday_date=SUNDAY).order_by("position"))
    assert [(r.song_id, r.position) for r in rows] == [(songs[2].id, 1), (songs[1].id, 2)]
    assert {r.status for r in rows} == {SetlistStatus.DRAFT}
    assert fake_recorder.calls[-1][4] == 'Updated setlist for 2026-03-22 (position 1: "Build My Life")'


@pytest.mark.django_db
@pytest.mark.parametrize(
    "body, fragment",
    [
        ({"song_id": 1, "position": 1}, "sunday_date"),
        ({"sunday_date": "22/03/2026", "song_id": 1, "position": 1}, "sunday_date"),
        ({"sunday_date": "2026-03-22", "position": 1}, "song_id"),
        ({"sunday_date": "2026-03-22", "song_id": "x", "position": 1}, "song_id"),
        ({"sunday_date": "2026-03-22", "song_id": 9999, "position": 1}, "song_id"),
        ({"sunday_date": "2026-03-22", "song_id": 1, "position": 1, "chosen_key": 7}, "chosen_key"),
    ],
)
def test_upsert_validation_is_named_and_not_audited(members, songs, fake_recorder, body, fragment):
    manager = _manager(fake_recorder)
    with pytest.raises(ValidationFailed) as exc:
        manager.upsert(_actor(members[AppRole.ADMIN]), body)
    assert fragment in str(exc.value.detail)
    assert fake_recorder.calls == []


@pytest.mark.django_db
def test_worship_lead_gating(members, songs, fake_recorder):
    body = {"sunday_date": "2026-03-22", "song_id": songs[0].id, "position": 1}
    for role in (AppRole.WORSHIP_LEADER, AppRole.MUSIC_COORDINATOR):
        actor = _actor(members[role])
        not_lead = _manager(fake_recorder, leads=False)
        with pytest.raises(AuthorizationDenied):
            not_lead.upsert(actor, body)
        assert not_lead.lookups == [(SUNDAY, actor.id)]

        lead = _manager(fake_recorder, leads=True)
        assert lead.upsert(actor, body).position == 1

    musician = _manager(fake_recorder, leads=True)
    with pytest.raises(AuthorizationDenied):
        musician.upsert(_actor(members[AppRole.MUSICIAN]), body)
    # a musician is rejected before the roster is consulted
    assert musician.lookups == []
    with pytest.raises(AuthorizationDenied):
        musician.upsert(None, body)

    assert [c[3].role for c in fake_recorder.calls] == [AppRole.WORSHIP_LEADER, AppRole.MUSIC_COORDINATOR]


def _fail(*args, **kwargs):
    raise DatabaseError("disk full")


@pytest.mark.django_db
@pytest.mark.parametrize(
    "target, call",
    [
        ("rostering.domain.models.SetlistSlot.objects.create",
         lambda m, admin, slot, songs: m.upsert(admin, {"sunday_date": "2026-03-22", "song_id": songs[1].id, "position": 2})),
        ("rostering.domain.models.SetlistSlot.delete", lambda m, admin, slot, songs: m.delete(admin, slot.id)),
        ("django.db.models.query.QuerySet.update", lambda m, admin, slot, songs: m.publish(admin, "2026-03-22")),
        ("django.db.models.query.QuerySet.update", lambda m, admin, slot, songs: m.revert(admin, "2026-03-22")),
    ],
    ids=["upsert", "delete", "publish", "revert"],
)
def test_failed_write_is_not_audited(members, songs, fake_recorder, monkeypatch, target, call):
    slot = _slot(songs[0], 1)
    monkeypatch.setattr(target, _fail)
    manager = _manager(fake_recorder)
    with pytest.raises(DatabaseError):
        call(manager, _actor(members[AppRole.ADMIN]), slot, songs)
    assert fake_recorder.calls == []


@pytest.mark.django_db
def test_publish_then_revert_round_trip(members, songs, fake_recorder):
    manager = _manager(fake_recorder)
    admin = _actor(members[AppRole.ADMIN])
    _slot(songs[0], 1, key="C")
    _slot(songs[1], 2, key=None)
    _slot(songs[2], 3, key="Bb")
    before = list(SetlistSlot.objects.filter(sunday_date=SUNDAY).values_list("id", "position", "chosen_key"))

    assert manager.publish(admin, "2026-03-22") == SUNDAY
    assert set(SetlistSlot.objects.values_list("status", flat=True)) == {SetlistStatus.PUBLISHED}
    assert manager.revert(admin, "2026-03-22") == SUNDAY
    assert set(SetlistSlot.objects.values_list("status", flat=True)) == {SetlistStatus.DRAFT}
    after = list(SetlistSlot.objects.filter(sunday_date=SUNDAY).values_list("id", "position", "chosen_key"))
    assert after == before

    actions = [(c[0], c[2], c[4]) for c in fake_recorder.calls]
    assert actions == [
        ("publish_setlist", "2026-03-22", "Published setlist for 2026-03-22 (3 songs)"),
        ("revert_setlist", "2026-03-22", "Reverted setlist for 2026-03-22 to draft (3 songs)"),
    ]


@pytest.mark.django_db
def test_publish_rejects_bad_date(members, fake_recorder):
    with pytest.raises(ValidationFailed):
        _manager(fake_recorder).publish(_actor(members[AppRole.ADMIN]), "2026-3-22")
    assert fake_recorder.calls == []


@pytest.mark.django_db
def test_read_published_only(songs, fake_recorder):
    _slot(songs[0], 1, status=SetlistStatus.PUBLISHED)
    _slot(songs[1], 2)
    _slot(songs[2], 1, d=date(2026, 3, 29))
    manager = _manager(fake_recorder)
    assert [s.song_id for s in manager.read(SUNDAY, published_only=True)] == [songs[0].id]
    assert [s.song_id for s in manager.read(SUNDAY, published_only=False)] == [songs[0].id, songs[1].id]


@pytest.mark.django_db
def test_reorder_moves_only_changed_rows(members, songs, fake_recorder):
    manager = _manager(fake_recorder)
    admin = _actor(members[AppRole.ADMIN])
    a, b, c = _slot(songs[0], 1), _slot(songs[1], 2), _slot(songs[2], 3)

    rows = manager.reorder(admin, "2026-03-22", [a.id, c.id, b.id])
    assert [(r.id, r.position) for r in rows] == [(a.id, 1), (c.id, 2), (b.id, 3)]
    assert fake_recorder.calls[-1][4] == "Reordered setlist for 2026-03-22 (2 songs moved)"

    rows = manager.reorder(admin, "2026-03-22", [c.id, a.id, b.id])
    assert [r.id for r in rows] == [c.id, a.id, b.id]

    calls = len(fake_recorder.calls)
    manager.reorder(admin, "2026-03-22", [c.id, a.id, b.id])
    assert len(fake_recorder.calls) == calls


@pytest.mark.django_db
@pytest.mark.parametrize("order", [None, "1,2", [], "dup", "missing", "foreign"])
def test_reorder_needs_every_slot_once(members, songs, fake_recorder, order):
    manager = _manager(fake_recorder)
    a, b = _slot(songs[0], 1), _slot(songs[1], 2)
    other = _slot(songs[2], 1, d=date(2026, 3, 29))
    order = {"dup": [a.id, a.id], "missing": [a.id], "foreign": [a.id, other.id]}.get(order, order)
    with pytest.raises(ValidationFailed):
        manager.reorder(_actor(members[AppRole.ADMIN]), "2026-03-22", order)
    assert list(SetlistSlot.objects.filter(sunday_date=SUNDAY).values_list("id", "position")) == [(a.id, 1), (b.id, 2)]
    assert fake_recorder.calls == []


@pytest.mark.django_db
def test_delete_and_clear(members, songs, fake_recorder):
    manager = _manager(fake_recorder)
    admin = _actor(members[AppRole.ADMIN])
    a = _slot(songs[0], 1)
    _slot(songs[1], 2)
    _slot(songs[2], 3)

    assert manager.delete(admin, a.id) is True
    assert manager.delete(admin, a.id) is False
    assert manager.delete(admin, 999) is False
    assert manager.clear(admin, "2026-03-22") == 2
    assert manager.clear(admin, "2026-03-22") == 0
    assert [c[0] for c in fake_recorder.calls] == ["delete_setlist_song", "clear_setlist"]
    assert fake_recorder.calls[1][4] == "Cleared setlist for 2026-03-22 (2 songs)"


# =========================
# HTTP
# =========================

@pytest.mark.django_db
def test_get_is_public_and_filters_by_role(client, login, members, songs):
    _slot(songs[0], 1, status=SetlistStatus.PUBLISHED)
    _slot(songs[1], 2)

    resp = client.get(URL, {"date": "2026-03-22"})
    assert resp.status_code == 200
    assert [r["position"] for r in resp.json()] == [1]

    resp = client.get(URL, {"date": "tomorrow"})
    assert resp.status_code == 400
    assert "date" in resp.json()["error"]

    login(members[AppRole.MUSICIAN])
    rows = client.get(URL, {"date": "2026-03-22"}).json()
    assert [r["song_title"] for r in rows] == ["Cornerstone"]

    login(members[AppRole.WORSHIP_LEADER])
    rows = client.get(URL, {"date": "2026-03-22"}).json()
    assert [r["position"] for r in rows] == [1, 2]


@pytest.mark.django_db
def test_failed_publish_is_a_json_500_without_audit(client, login, members, songs, monkeypatch, enqueued):
    _slot(songs[0], 1)
    monkeypatch.setattr("django.db.models.query.QuerySet.update", _fail)
    login(members[AppRole.ADMIN])
    resp = client.patch(f"{URL}/2026-03-22/publish")
    assert resp.status_code == 500
    assert resp.json() == {"error": "disk full"}
    assert AuditLog.objects.count() == 0
    assert enqueued == []


@pytest.mark.django_db
def test_post_slot(client, login, members, songs):
    body = {"sunday_date": "2026-03-22", "song_id": songs[0].id, "position": 1}
    assert client.post(URL, body, content_type="application/json").status_code == 403

    login(members[AppRole.MUSICIAN])
    assert client.post(URL, body, content_type="application/json").status_code == 403

    login(members[AppRole.COORDINATOR])
    resp = client.post(URL, body, content_type="application/json")
    assert resp.status_code == 201
    assert resp.json()["chosen_key"] is None
    assert resp.json()["song_id"] == songs[0].id

    resp = client.post(URL, {**body, "song_id": songs[1].id, "position": 5}, content_type="application/json")
    assert resp.status_code == 400
    assert "position" in resp.json()["error"].lower()

    resp = client.post(URL, ["not", "an", "object"], content_type="application/json")
    assert resp.status_code == 400

    entry = AuditLog.objects.get()
    assert (entry.action, entry.actor_id) == ("update_setlist", members[AppRole.COORDINATOR].id)


@pytest.mark.django_db
def test_assigned_worship_lead_can_edit_their_sunday(client, login, members, songs, lead_on):
    leader = members[AppRole.WORSHIP_LEADER]
    lead_on(SUNDAY, leader)
    login(leader)

    body = {"sunday_date": "2026-03-22", "song_id": songs[0].id, "position": 1}
    assert client.post(URL, body, content_type="application/json").status_code == 201
    other_sunday = {**body, "sunday_date": "2026-03-29"}
    assert client.post(URL, other_sunday, content_type="application/json").status_code == 403
    assert client.patch(f"{URL}/2026-03-22/publish").status_code == 200
    assert client.patch(f"{URL}/2026-03-29/publish").status_code == 403


@pytest.mark.django_db
def test_publish_and_revert_endpoints(client, login, members, songs, enqueued):
    _slot(songs[0], 1, key="C")
    login(members[AppRole.ADMIN])

    resp = client.patch(f"{URL}/2026-03-22/publish")
    assert resp.json() == {"published": True, "date": "2026-03-22"}
    assert enqueued == [("2026-03-22",)]
    assert SetlistSlot.objects.get().status == SetlistStatus.PUBLISHED

    resp = client.patch(f"{URL}/2026-03-22/revert")
    assert resp.json() == {"reverted": True, "date": "2026-03-22"}
    assert SetlistSlot.objects.get().status == SetlistStatus.DRAFT

    assert client.patch(f"{URL}/22-03-2026/publish").status_code == 400
    assert list(AuditLog.objects.order_by("id").values_list("action", flat=True)) == [
        "publish_setlist", "revert_setlist",
    ]


@pytest.mark.django_db
def test_publish_survives_broker_outage(client, login, members, songs, monkeypatch):
    def down(*args, **kwargs):
        raise ConnectionError("broker down")

    monkeypatch.setattr("rostering.tasks.notify_setlist_published.delay", down)
    _slot(songs[0], 1)
    login(members[AppRole.ADMIN])
    assert client.patch(f"{URL}/2026-03-22/publish").status_code == 200


@pytest.mark.django_db
def test_delete_reorder_and_clear_endpoints(client, login, members, songs):
    a, b, c = _slot(songs[0], 1), _slot(songs[1], 2), _slot(songs[2], 3)

    login(members[AppRole.MUSICIAN])
    assert client.delete(f"{URL}/{a.id}").status_code == 403

    login(members[AppRole.ADMIN])
    assert client.delete(f"{URL}/{a.id}").status_code == 204
    assert client.delete(f"{URL}/{a.id}").status_code == 204
    assert client.delete(f"{URL}/999").status_code == 204
    assert AuditLog.objects.filter(action="delete_setlist_song").count() == 1

    resp = client.patch(f"{URL}/2026-03-22/reorder", {"order": [c.id, b.id]}, content_type="application/json")
    assert [(r["id"], r["position"]) for r in resp.json()] == [(c.id, 1), (b.id, 2)]

    resp = client.delete(f"{URL}/2026-03-22/slots")
    assert resp.json() == {"deleted": 2, "date": "2026-03-22"}
    assert not SetlistSlot.objects.exists()
