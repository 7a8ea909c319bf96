"""
Placement routes: where on the site a post is shown.
"""
from fastapi import APIRouter, Depends

from ..auth import get_required_principal
from ..dependencies import get_placement_registry
from ..responses import created, deleted, retrieved, updated
from ..schemas.taxonomy import PlacementCreate, PlacementResponse, PlacementUpdate, SubCategory
from ..services.authorization import Action, Principal, authorize
from ..services.registries import PlacementRegistry

router = APIRouter(prefix="/api/placements", tags=["placements"])


@router.get("")
def list_placements(active_only: bool = False, registry: PlacementRegistry = Depends(get_placement_registry)):
    """List placements by sort order, then name."""
    return retrieved([PlacementResponse(**placement) for placement in registry.find_all(active_only)])


@router.get("/sub-category/{sub_category}")
def list_placements_by_sub_category(
    sub_category: SubCategory,
    registry: PlacementRegistry = Depends(get_placement_registry),
):
    """Active placements in one site area."""
    placements = registry.find_by_sub_category(sub_category.value)
    return retrieved([PlacementResponse(**placement) for placement in placements])


@router.get("/slug/{slug}")
def get_placement_by_slug(slug: str, registry: PlacementRegistry = Depends(get_placement_registry)):
    return retrieved(PlacementResponse(**registry.find_by_slug(slug)))


@router.get("/{placement_id}")
def get_placement(placement_id: str, registry: PlacementRegistry = Depends(get_placement_registry)):
    return retrieved(PlacementResponse(**registry.find_by_id(placement_id)))


@router.post("", status_code=201)
def create_placement(
    placement_data: PlacementCreate,
    principal: Principal = Depends(get_required_principal),
    registry: PlacementRegistry = Depends(get_placement_registry),
):
    authorize(principal, Action.MANAGE_TAXONOMY)
    return created(PlacementResponse(**registry.create(placement_data)))


@router.patch("/{placement_id}")
def update_placement(
    placement_id: str,
    placement_update: PlacementUpdate,
    principal: Principal = Depends(get_required_principal),
    registry: PlacementRegistry = Depends(get_placement_registry),
):
    authorize(principal, Action.MANAGE_TAXONOMY)
    return updated(PlacementResponse(**registry.update(placement_id, placement_update)))


@router.delete("/{placement_id}")
def delete_placement(
    placement_id: str,
    principal: Principal = Depends(get_required_principal),
    registry: PlacementRegistry = Depends(get_placement_registry),
):
    authorize(principal, Action.DELETE_TAXONOMY)
    registry.remove(placement_id)
    return deleted()
