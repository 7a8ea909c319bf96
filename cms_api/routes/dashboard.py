"""
Dashboard routes for the admin landing page.
"""
from fastapi import APIRouter, Depends

from ..auth import get_required_principal
from ..dependencies import get_post_engine
from ..responses import retrieved
from ..services.authorization import Principal
from ..services.dashboard import build_dashboard
from ..services.posts import PostLifecycleEngine

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("")
def get_dashboard(
    principal: Principal = Depends(get_required_principal),
    engine: PostLifecycleEngine = Depends(get_post_engine),
):
    """Totals, recent posts and the busiest categories."""
    return retrieved(build_dashboard(engine))
