from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, List, Mapping, Optional

from django.db import DatabaseError

from rostering.conf import RosterConfig, get_config
from rostering.domain.models import SetlistSlot, SetlistStatus
from rostering.domain.repositories import CatalogueRepository, SetlistRepository
from rostering.services.actor import Actor
from rostering.services.audit import AuditRecorder, pluralize, recorder as default_recorder
from rostering.services.errors import AuthorizationDenied, UpstreamFailure, ValidationFailed
from rostering.services.permissions import Action, is_allowed, may_ever
from rostering.services.roster import is_assigned_worship_lead as roster_worship_lead
from rostering.utils import parse_iso_date

log = logging.getLogger(__name__)

WorshipLeadLookup = Callable[[date, Optional[int]], bool]

# Parked positions used while reordering; far above any real position.
SENTINEL_OFFSET = 1000

BAD_DATE_PARAM = "Missing or invalid date param (YYYY-MM-DD)"
REORDER_INDETERMINATE = "Reorder failed part-way; setlist state is indeterminate, re-fetch it"


def parse_date_param(raw: Any) -> date:
    d = parse_iso_date(raw)
    if d is None:
        raise ValidationFailed(BAD_DATE_PARAM)
    return d


class SetlistManager:
    """Per-Sunday setlist: DRAFT and PUBLISHED slots at positions 1..N.

    The manager knows nothing about the roster. Whether the caller leads worship
    on a date comes from the injected ``is_assigned_worship_lead`` lookup.
    """

    def __init__(
        self,
        config: Optional[RosterConfig] = None,
        recorder: Optional[AuditRecorder] = None,
        is_assigned_worship_lead: Optional[WorshipLeadLookup] = None,
    ):
        self.config = config or get_config()
        self.recorder = recorder or default_recorder
        self.is_assigned_worship_lead = is_assigned_worship_lead or roster_worship_lead

    @property
    def max_songs(self) -> int:
        return self.config.setlist_max_songs

    # =========================
    # Permissions
    # =========================

    def can_mutate(self, actor: Optional[Actor], sunday_date: date) -> bool:
        if actor is None or not may_ever(actor.role, Action.MUTATE_SETLIST):
            return False
        if is_allowed(actor.role, Action.MUTATE_SETLIST):
            return True
        return is_allowed(
            actor.role,
            Action.MUTATE_SETLIST,
            is_assigned_worship_lead=self.is_assigned_worship_lead(sunday_date, actor.id),
        )

    def _precheck(self, actor: Optional[Actor]) -> Actor:
        """Rejects callers who could not mutate any setlist, before input is read."""
        if actor is None or not may_ever(actor.role, Action.MUTATE_SETLIST):
            raise AuthorizationDenied()
        return actor

    def _authorize(self, actor: Optional[Actor], sunday_date: date) -> Actor:
        actor = self._precheck(actor)
        if not self.can_mutate(actor, sunday_date):
            raise AuthorizationDenied()
        return actor

    # =========================
    # Reads
    # =========================

    def read(self, sunday_date: date, published_only: bool) -> List[SetlistSlot]:
        return list(SetlistRepository.for_date(sunday_date, published_only=published_only))

    # =========================
    # Mutations
    # =========================

    def _position(self, raw: Any) -> int:
        message = f"position must be between 1 and {self.max_songs}"
        if isinstance(raw, bool):
            raise ValidationFailed(message)
        if isinstance(raw, str) and raw.strip().isdigit():
            raw = int(raw.strip())
        if not isinstance(raw, int) or not (1 <= raw <= self.max_songs):
            raise ValidationFailed(message)
        return raw

    def upsert(self, actor: Optional[Actor], data: Mapping[str, Any]) -> SetlistSlot:
        """Saves a song at a position of a Sunday's setlist.

        Re-sending the same (date, song) pair moves or updates that slot; a different
        song already holding the position is replaced. Every slot of the date goes
        back to DRAFT so the date's status stays uniform.

        Args:
            actor (Optional[Actor]): Caller.
            data (Mapping[str, Any]): ``sunday_date``, ``song_id``, ``position`` and
                optional ``chosen_key`` (stored exactly as given, None when absent).

        Returns:
            SetlistSlot: The saved slot.
        """
        self._precheck(actor)
        sunday_date = parse_iso_date(data.get("sunday_date"))
        if sunday_date is None:
            raise ValidationFailed("Missing or invalid sunday_date (YYYY-MM-DD)")
        actor = self._authorize(actor, sunday_date)

        song_id = data.get("song_id")
        if song_id in (None, "") or isinstance(song_id, bool):
            raise ValidationFailed("Missing song_id")
        if not str(song_id).isdigit():
            raise ValidationFailed("Invalid song_id")
        position = self._position(data.get("position"))
        chosen_key = data.get("chosen_key")
        if chosen_key is not None and not isinstance(chosen_key, str):
            raise ValidationFailed("chosen_key must be a string or null")
        song = CatalogueRepository.song(int(song_id))
        if song is None:
            raise ValidationFailed(f"Unknown song_id: {song_id}")

        slot = SetlistSlot.objects.filter(sunday_date=sunday_date, song=song).first()
        SetlistSlot.objects.filter(sunday_date=sunday_date, position=position).exclude(song=song).delete()
        if slot is None:
            slot = SetlistSlot.objects.create(
                sunday_date=sunday_date,
                song=song,
                position=position,
                chosen_key=chosen_key,
                status=SetlistStatus.DRAFT,
                created_by_id=actor.id,
            )
        else:
            slot.position = position
            slot.chosen_key = chosen_key
            slot.status = SetlistStatus.DRAFT
            slot.save(update_fields=["position", "chosen_key", "status", "updated_at"])
        SetlistSlot.objects.filter(sunday_date=sunday_date).exclude(pk=slot.pk).update(status=SetlistStatus.DRAFT)

        self.recorder.record(
            "update_setlist", "setlist", sunday_date.isoformat(), actor,
            f'Updated setlist for {sunday_date.isoformat()} (position {position}: "{song.title}")',
        )
        return slot

    def delete(self, actor: Optional[Actor], slot_id: int) -> bool:
        """Removes one slot. A slot that is already gone is not an error.

        Returns:
            bool: True when a row was deleted (and audited).
        """
        self._precheck(actor)
        slot = SetlistRepository.by_id(slot_id)
        if slot is None:
            log.info("Setlist slot %s already deleted", slot_id)
            return False
        actor = self._authorize(actor, slot.sunday_date)
        title, sunday_date = slot.song.title, slot.sunday_date
        slot.delete()
        self.recorder.record(
            "delete_setlist_song", "setlist_slot", slot_id, actor,
            f'Removed "{title}" (slot {slot_id}) from setlist for {sunday_date.isoformat()}',
        )
        return True

    def clear(self, actor: Optional[Actor], raw_date: Any) -> int:
        """Deletes every slot of a date in one statement."""
        self._precheck(actor)
        sunday_date = parse_date_param(raw_date)
        actor = self._authorize(actor, sunday_date)
        deleted, _ = SetlistSlot.objects.filter(sunday_date=sunday_date).delete()
        if deleted:
            self.recorder.record(
                "clear_setlist", "setlist", sunday_date.isoformat(), actor,
                f"Cleared setlist for {sunday_date.isoformat()} ({pluralize(deleted, 'song')})",
            )
        return deleted

    def reorder(self, actor: Optional[Actor], raw_date: Any, order: Any) -> List[SetlistSlot]:
        """Applies a full ordering of a date's slot ids.

        Only slots whose position changes are written. Those are first parked on
        sentinel positions, then moved to their final position, so the
        (sunday_date, position) constraint holds after every single statement.

        Args:
            actor (Optional[Actor]): Caller.
            raw_date (Any): Sunday date.
            order (Any): Slot ids, first song first; must name every slot of the date once.

        Returns:
            List[SetlistSlot]: The date's slots in their new order.
        """
        self._precheck(actor)
        sunday_date = parse_date_param(raw_date)
        actor = self._authorize(actor, sunday_date)

        current = {s.id: s.position for s in SetlistRepository.for_date(sunday_date)}
        if (
            not isinstance(order, list)
            or any(isinstance(i, bool) or not isinstance(i, int) for i in order)
            or len(order) != len(set(order))
            or set(order) != set(current)
        ):
            raise ValidationFailed("order must list every slot id of the date exactly once")

        moves = [(slot_id, idx) for idx, slot_id in enumerate(order, start=1) if current[slot_id] != idx]
        if not moves:
            return self.read(sunday_date, published_only=False)

        try:
            for slot_id, idx in moves:
                SetlistSlot.objects.filter(pk=slot_id).update(position=SENTINEL_OFFSET + idx)
            for slot_id, idx in moves:
                SetlistSlot.objects.filter(pk=slot_id).update(position=idx)
        except DatabaseError as exc:
            log.exception("Reorder of %s stopped part-way", sunday_date)
            raise UpstreamFailure(REORDER_INDETERMINATE) from exc
        log.info("Reordered %d slot(s) for %s", len(moves), sunday_date)

        self.recorder.record(
            "reorder_setlist", "setlist", sunday_date.isoformat(), actor,
            f"Reordered setlist for {sunday_date.isoformat()} ({pluralize(len(moves), 'song')} moved)",
        )
        return self.read(sunday_date, published_only=False)

    def _set_status(self, actor: Optional[Actor], raw_date: Any, status: str) -> date:
        self._precheck(actor)
        sunday_date = parse_date_param(raw_date)
        actor = self._authorize(actor, sunday_date)
        count = SetlistSlot.objects.filter(sunday_date=sunday_date).update(status=status)
        if status == SetlistStatus.PUBLISHED:
            action, summary = "publish_setlist", f"Published setlist for {sunday_date.isoformat()}"
        else:
            action, summary = "revert_setlist", f"Reverted setlist for {sunday_date.isoformat()} to draft"
        self.recorder.record(
            action, "setlist", sunday_date.isoformat(), actor, f"{summary} ({pluralize(count, 'song')})",
        )
        return sunday_date

    def publish(self, actor: Optional[Actor], raw_date: Any) -> date:
        return self._set_status(actor, raw_date, SetlistStatus.PUBLISHED)

    def revert(self, actor: Optional[Actor], raw_date: Any) -> date:
        return self._set_status(actor, raw_date, SetlistStatus.DRAFT)
