"""
User management routes.
"""
from fastapi import APIRouter, Depends, Query
from typing import Optional

from ..auth import get_required_principal
from ..config import get_settings
from ..dependencies import get_user_service
from ..responses import created, deleted, paginated, retrieved, updated
from ..schemas.auth import Role, RoleUpdate, UserCreate, UserUpdate
from ..services.authorization import Action, Principal, authorize, authorize_profile_edit, ensure_not_self
from ..services.users import UserService, to_response

settings = get_settings()

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("")
def list_users(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    role: Optional[Role] = None,
    search: Optional[str] = None,
    principal: Principal = Depends(get_required_principal),
    users: UserService = Depends(get_user_service),
):
    """List users (admin only)."""
    authorize(principal, Action.MANAGE_USERS)
    return paginated(users.list(page, limit, role=role, search=search).map(to_response))


@router.get("/{user_id}")
def get_user(
    user_id: str,
    principal: Principal = Depends(get_required_principal),
    users: UserService = Depends(get_user_service),
):
    """A user can read their own account; admins can read any."""
    if principal.id != user_id:
        authorize(principal, Action.MANAGE_USERS)
    return retrieved(to_response(users.get(user_id)))


@router.post("", status_code=201)
def create_user(
    user_data: UserCreate,
    principal: Principal = Depends(get_required_principal),
    users: UserService = Depends(get_user_service),
):
    authorize(principal, Action.MANAGE_USERS)
    return created(to_response(users.create(user_data)))


@router.patch("/{user_id}/role")
def change_user_role(
    user_id: str,
    role_update: RoleUpdate,
    principal: Principal = Depends(get_required_principal),
    users: UserService = Depends(get_user_service),
):
    authorize(principal, Action.MANAGE_USERS)
    ensure_not_self(principal, user_id, "change the role of")
    return updated(to_response(users.change_role(user_id, role_update.role)))


@router.patch("/{user_id}")
def update_user(
    user_id: str,
    user_update: UserUpdate,
    principal: Principal = Depends(get_required_principal),
    users: UserService = Depends(get_user_service),
):
    """Update profile fields; role changes go through /role."""
    authorize_profile_edit(principal, user_id)
    return updated(to_response(users.update_profile(user_id, user_update)))


@router.delete("/{user_id}")
def delete_user(
    user_id: str,
    principal: Principal = Depends(get_required_principal),
    users: UserService = Depends(get_user_service),
):
    authorize(principal, Action.MANAGE_USERS)
    ensure_not_self(principal, user_id, "delete")
    users.delete(user_id)
    return deleted()
