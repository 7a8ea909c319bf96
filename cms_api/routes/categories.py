"""
Category routes.
"""
from fastapi import APIRouter, Depends

from ..auth import get_required_principal
from ..dependencies import get_category_registry
from ..responses import created, deleted, retrieved, updated
from ..schemas.taxonomy import CategoryCreate, CategoryResponse, CategoryUpdate
from ..services.authorization import Action, Principal, authorize
from ..services.registries import CategoryRegistry

router = APIRouter(prefix="/api/categories", tags=["categories"])


@router.get("")
def list_categories(active_only: bool = False, registry: CategoryRegistry = Depends(get_category_registry)):
    """List categories sorted by name."""
    return retrieved([CategoryResponse(**category) for category in registry.find_all(active_only)])


@router.get("/slug/{slug}")
def get_category_by_slug(slug: str, registry: CategoryRegistry = Depends(get_category_registry)):
    return retrieved(CategoryResponse(**registry.find_by_slug(slug)))


@router.get("/{category_id}")
def get_category(category_id: str, registry: CategoryRegistry = Depends(get_category_registry)):
    return retrieved(CategoryResponse(**registry.find_by_id(category_id)))


@router.post("", status_code=201)
def create_category(
    category_data: CategoryCreate,
    principal: Principal = Depends(get_required_principal),
    registry: CategoryRegistry = Depends(get_category_registry),
):
    authorize(principal, Action.MANAGE_TAXONOMY)
    return created(CategoryResponse(**registry.create(category_data)))


@router.patch("/{category_id}")
def update_category(
    category_id: str,
    category_update: CategoryUpdate,
    principal: Principal = Depends(get_required_principal),
    registry: CategoryRegistry = Depends(get_category_registry),
):
    authorize(principal, Action.MANAGE_TAXONOMY)
    return updated(CategoryResponse(**registry.update(category_id, category_update)))


@router.delete("/{category_id}")
def delete_category(
    category_id: str,
    principal: Principal = Depends(get_required_principal),
    registry: CategoryRegistry = Depends(get_category_registry),
):
    """Delete a category once no post references it."""
    authorize(principal, Action.DELETE_TAXONOMY)
    registry.remove(category_id)
    return deleted()
