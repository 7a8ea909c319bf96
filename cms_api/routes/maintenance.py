"""
Maintenance routes for administrators.
"""
from fastapi import APIRouter, Depends

from ..auth import get_required_principal
from ..dependencies import get_post_engine
from ..responses import success
from ..services.authorization import Action, Principal, authorize
from ..services.posts import PostLifecycleEngine

router = APIRouter(prefix="/api/maintenance", tags=["maintenance"])


@router.post("/reconcile-counts")
def reconcile_counts(
    principal: Principal = Depends(get_required_principal),
    engine: PostLifecycleEngine = Depends(get_post_engine),
):
    """Recompute category and placement post counts from the posts themselves."""
    authorize(principal, Action.RECONCILE_COUNTS)
    report = engine.reconcile_counts()
    fixed = len(report["categories"]) + len(report["placements"])
    return success(report, f"Reconciled post counts ({fixed} corrected)")
