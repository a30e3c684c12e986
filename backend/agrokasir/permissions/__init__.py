# Overview: Role/action policy used by the request decorators.

from .definitions import (
    Action,
    ACTION_DEFINITIONS,
    ALL_ACTIONS,
    DEFAULT_ROLE,
    ROLE_ACTIONS,
    ROLE_ADMIN,
    ROLE_VIEWER,
    ROLES,
)


def is_valid_role(role) -> bool:
    return role in ROLES


def is_allowed(role, action) -> bool:
    """Policy predicate: may `role` perform `action`? Unknown input is denied."""
    if action not in ALL_ACTIONS:
        return False
    return action in ROLE_ACTIONS.get(role, frozenset())


def actions_for_role(role) -> list[str]:
    return sorted(ROLE_ACTIONS.get(role, frozenset()))


__all__ = [
    "Action",
    "ACTION_DEFINITIONS",
    "DEFAULT_ROLE",
    "ROLE_ADMIN",
    "ROLE_VIEWER",
    "ROLES",
    "is_valid_role",
    "is_allowed",
    "actions_for_role",
]
