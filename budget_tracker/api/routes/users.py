"""The caller's own account."""

from typing import Any

from fastapi import APIRouter, Body, Depends

from budget_tracker.api.dependencies import get_components, get_current_user
from budget_tracker.api.responses import no_content, ok
from budget_tracker.orchestrator import AppComponents
from budget_tracker.services.auth import CurrentUser


router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me")
async def get_me(
    current_user: CurrentUser = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    user = await components.accounts.get_user(current_user.id)
    return ok(user.public())


@router.put("/me")
async def update_me(
    payload: Any = Body(default=None),
    current_user: CurrentUser = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    user = await components.accounts.update_email(current_user.id, payload)
    return ok(user.public())


@router.delete("/me", status_code=204)
async def delete_me(
    current_user: CurrentUser = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    await components.accounts.delete_user(current_user.id)
    return no_content()
