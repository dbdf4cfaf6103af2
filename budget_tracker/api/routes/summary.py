"""Dashboard summary for the caller."""

from fastapi import APIRouter, Depends

from budget_tracker.api.dependencies import get_components, get_current_user
from budget_tracker.api.responses import ok
from budget_tracker.orchestrator import AppComponents
from budget_tracker.services.auth import CurrentUser


router = APIRouter(prefix="/summary", tags=["summary"])


@router.get("")
async def get_summary(
    current_user: CurrentUser = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    summary, progress = await components.summary.get_summary(current_user.id)
    return ok({"summary": summary.rounded(), "progress": progress})
