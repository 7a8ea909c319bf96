"""
Tests for the role-based authorization matrix.
"""
import pytest

from cms_api.errors import AuthorizationError
from cms_api.schemas.auth import Role
from cms_api.services.authorization import (
    Action,
    Principal,
    authorize,
    authorize_post_edit,
    authorize_profile_edit,
    can_edit_post,
    ensure_not_self,
    is_allowed,
)

EXPECTED = {
    Action.CREATE_POST: {Role.ADMIN, Role.EDITOR, Role.AUTHOR},
    Action.EDIT_ANY_POST: {Role.ADMIN, Role.EDITOR},
    Action.DELETE_POST: {Role.ADMIN, Role.EDITOR},
    Action.MANAGE_TAXONOMY: {Role.ADMIN, Role.EDITOR},
    Action.DELETE_TAXONOMY: {Role.ADMIN},
    Action.MANAGE_USERS: {Role.ADMIN},
    Action.RECONCILE_COUNTS: {Role.ADMIN},
}


class TestMatrix:
    @pytest.mark.parametrize("action", list(EXPECTED))
    @pytest.mark.parametrize("role", list(Role))
    def test_unowned_actions(self, role, action):
        assert is_allowed(role, action) is (role in EXPECTED[action])

    @pytest.mark.parametrize("role", [Role.ADMIN, Role.EDITOR, Role.AUTHOR])
    def test_edit_own_post_requires_ownership(self, role):
        assert is_allowed(role, Action.EDIT_OWN_POST, principal_id="u1", owner_id="u1")
        assert not is_allowed(role, Action.EDIT_OWN_POST, principal_id="u1", owner_id="u2")

    def test_viewer_cannot_edit_even_own_post(self):
        assert not is_allowed(Role.VIEWER, Action.EDIT_OWN_POST, principal_id="u1", owner_id="u1")

    @pytest.mark.parametrize("role", list(Role))
    def test_everyone_edits_own_profile(self, role):
        assert is_allowed(role, Action.EDIT_OWN_PROFILE, principal_id="u1", owner_id="u1")
        assert not is_allowed(role, Action.EDIT_OWN_PROFILE, principal_id="u1", owner_id="u2")

    def test_authorize_raises(self):
        with pytest.raises(AuthorizationError) as exc:
            authorize(Principal("u1", Role.VIEWER), Action.CREATE_POST)
        assert exc.value.details == {"action": "create_post"}


class TestPostEditing:
    def test_author_edits_own_post(self):
        author = Principal("a1", Role.AUTHOR)
        authorize_post_edit(author, "a1")
        assert can_edit_post(author, "a1")

    def test_author_cannot_edit_others(self):
        with pytest.raises(AuthorizationError):
            authorize_post_edit(Principal("a1", Role.AUTHOR), "a2")

    @pytest.mark.parametrize("role", [Role.ADMIN, Role.EDITOR])
    def test_staff_edit_any_post(self, role):
        assert can_edit_post(Principal("s1", role), "a2")

    def test_viewer_cannot_edit(self):
        assert not can_edit_post(Principal("v1", Role.VIEWER), "v1")


class TestUserManagement:
    def test_admin_edits_any_profile(self):
        authorize_profile_edit(Principal("admin", Role.ADMIN), "someone")

    def test_editor_edits_only_own_profile(self):
        editor = Principal("e1", Role.EDITOR)
        authorize_profile_edit(editor, "e1")
        with pytest.raises(AuthorizationError):
            authorize_profile_edit(editor, "e2")

    def test_no_self_role_change_or_delete(self):
        admin = Principal("admin", Role.ADMIN)
        with pytest.raises(AuthorizationError):
            ensure_not_self(admin, "admin", "delete")
        ensure_not_self(admin, "other", "delete")
