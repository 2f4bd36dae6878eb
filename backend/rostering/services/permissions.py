from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, Optional, Type

from rostering.domain.models import AppRole
from rostering.services.actor import Actor
from rostering.services.errors import AuthenticationMissing, AuthorizationDenied, RosterError


class Action(str, Enum):
    VIEW_PERIODS = "view_periods"
    MANAGE_PERIODS = "manage_periods"
    READ_PUBLISHED_SETLIST = "read_published_setlist"
    READ_ALL_SETLIST = "read_all_setlist"
    MUTATE_SETLIST = "mutate_setlist"
    VIEW_ROSTER = "view_roster"
    MANAGE_ROSTER = "manage_roster"
    VIEW_AUDIT_LOG = "view_audit_log"


STAFF: FrozenSet[AppRole] = frozenset({AppRole.ADMIN, AppRole.COORDINATOR})
ALL_ROLES: FrozenSet[AppRole] = frozenset(AppRole)
SETLIST_EDITORS: FrozenSet[AppRole] = frozenset({AppRole.MUSIC_COORDINATOR, AppRole.WORSHIP_LEADER})

# Roles allowed unconditionally.
ALLOWED: Dict[Action, FrozenSet[AppRole]] = {
    Action.VIEW_PERIODS: STAFF,
    Action.MANAGE_PERIODS: STAFF,
    Action.READ_PUBLISHED_SETLIST: ALL_ROLES,
    Action.READ_ALL_SETLIST: ALL_ROLES - {AppRole.MUSICIAN},
    Action.MUTATE_SETLIST: STAFF,
    Action.VIEW_ROSTER: ALL_ROLES,
    Action.MANAGE_ROSTER: STAFF,
    Action.VIEW_AUDIT_LOG: frozenset({AppRole.ADMIN}),
}

# Roles allowed only when assigned worship lead for the date in question.
ALLOWED_AS_WORSHIP_LEAD: Dict[Action, FrozenSet[AppRole]] = {
    Action.MUTATE_SETLIST: SETLIST_EDITORS,
}


def is_allowed(role: Optional[AppRole], action: Action, *, is_assigned_worship_lead: bool = False) -> bool:
    """Looks up the permission table.

    Args:
        role (Optional[AppRole]): Role of the caller, None when unauthenticated.
        action (Action): Action being attempted.
        is_assigned_worship_lead (bool, optional): Whether the caller leads worship
            on the date the action targets. Defaults to False.

    Returns:
        bool: True when the role may perform the action.
    """
    if role is None:
        return False
    if role in ALLOWED.get(action, frozenset()):
        return True
    return is_assigned_worship_lead and role in ALLOWED_AS_WORSHIP_LEAD.get(action, frozenset())


def may_ever(role: Optional[AppRole], action: Action) -> bool:
    """True when some target exists for which the role could be allowed."""
    return is_allowed(role, action, is_assigned_worship_lead=True)


def authorize(
    actor: Optional[Actor],
    action: Action,
    *,
    is_assigned_worship_lead: bool = False,
    anonymous_error: Type[RosterError] = AuthenticationMissing,
) -> Actor:
    """Raises unless ``actor`` may perform ``action``; returns the actor otherwise."""
    if actor is None:
        raise anonymous_error()
    if not is_allowed(actor.role, action, is_assigned_worship_lead=is_assigned_worship_lead):
        raise AuthorizationDenied()
    return actor
