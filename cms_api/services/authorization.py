"""
Role-based authorization matrix.

Every mutating entry point asks this module, and only this module, whether the
acting principal may proceed. The functions are pure: no store access, no
request state.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Optional

from ..errors import AuthorizationError
from ..schemas.auth import Role


@dataclass(frozen=True)
class Principal:
    """The authenticated actor of a request."""

    id: str
    role: Role


class Action(str, Enum):
    CREATE_POST = "create_post"
    EDIT_ANY_POST = "edit_any_post"
    EDIT_OWN_POST = "edit_own_post"
    DELETE_POST = "delete_post"
    MANAGE_TAXONOMY = "manage_taxonomy"
    DELETE_TAXONOMY = "delete_taxonomy"
    MANAGE_USERS = "manage_users"
    EDIT_OWN_PROFILE = "edit_own_profile"
    RECONCILE_COUNTS = "reconcile_counts"


_ALL = frozenset(Role)
_STAFF = frozenset({Role.ADMIN, Role.EDITOR})
_WRITERS = frozenset({Role.ADMIN, Role.EDITOR, Role.AUTHOR})
_ADMIN = frozenset({Role.ADMIN})

PERMISSIONS: Dict[Action, FrozenSet[Role]] = {
    Action.CREATE_POST: _WRITERS,
    Action.EDIT_ANY_POST: _STAFF,
    Action.EDIT_OWN_POST: _WRITERS,
    Action.DELETE_POST: _STAFF,
    Action.MANAGE_TAXONOMY: _STAFF,
    Action.DELETE_TAXONOMY: _ADMIN,
    Action.MANAGE_USERS: _ADMIN,
    Action.EDIT_OWN_PROFILE: _ALL,
    Action.RECONCILE_COUNTS: _ADMIN,
}

# Actions that only apply to resources the principal owns
OWNED_ACTIONS = frozenset({Action.EDIT_OWN_POST, Action.EDIT_OWN_PROFILE})


def is_allowed(
    role: Role,
    action: Action,
    *,
    principal_id: Optional[str] = None,
    owner_id: Optional[str] = None,
) -> bool:
    if action in OWNED_ACTIONS and (principal_id is None or principal_id != owner_id):
        return False
    return Role(role) in PERMISSIONS[action]


def authorize(principal: Principal, action: Action, owner_id: Optional[str] = None) -> None:
    """Raise ``AuthorizationError`` unless ``principal`` may perform ``action``."""
    if not is_allowed(principal.role, action, principal_id=principal.id, owner_id=owner_id):
        raise AuthorizationError(
            f"Role '{Role(principal.role).value}' may not perform '{action.value}'",
            {"action": action.value},
        )


def can_edit_post(principal: Principal, author_id: Optional[str]) -> bool:
    return is_allowed(principal.role, Action.EDIT_ANY_POST) or is_allowed(
        principal.role, Action.EDIT_OWN_POST, principal_id=principal.id, owner_id=author_id
    )


def authorize_post_edit(principal: Principal, author_id: Optional[str]) -> None:
    if not can_edit_post(principal, author_id):
        raise AuthorizationError("You can only edit your own posts", {"action": Action.EDIT_OWN_POST.value})


def authorize_profile_edit(principal: Principal, user_id: str) -> None:
    if is_allowed(principal.role, Action.MANAGE_USERS):
        return
    authorize(principal, Action.EDIT_OWN_PROFILE, owner_id=user_id)


def ensure_not_self(principal: Principal, target_user_id: str, what: str) -> None:
    """Nobody may change their own role or delete their own account."""
    if principal.id == target_user_id:
        raise AuthorizationError(f"You cannot {what} your own account", {"user_id": target_user_id})
