"""Income entries, scoped to the caller."""

from typing import Any, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query

from budget_tracker.api.dependencies import get_components, get_current_user
from budget_tracker.api.responses import created, no_content, ok
from budget_tracker.orchestrator import AppComponents
from budget_tracker.services.auth import CurrentUser


router = APIRouter(prefix="/income", tags=["income"])


@router.get("")
async def list_income(
    user_id: Optional[str] = Query(default=None),
    limit: Optional[int] = Query(default=None, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    current_user: CurrentUser = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    entries = await components.income.list_income(
        current_user.id,
        requested_user_id=user_id,
        limit=limit,
        offset=offset,
    )
    return ok(entries)


@router.post("", status_code=201)
async def create_income(
    payload: Any = Body(default=None),
    current_user: CurrentUser = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    income = await components.income.create_income(current_user.id, payload)
    return created(income)


@router.get("/{income_id}")
async def get_income(
    income_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    return ok(await components.income.get_income(income_id, current_user.id))


@router.put("/{income_id}")
async def update_income(
    income_id: UUID,
    payload: Any = Body(default=None),
    current_user: CurrentUser = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    income = await components.income.update_income(income_id, current_user.id, payload)
    return ok(income)


@router.delete("/{income_id}", status_code=204)
async def delete_income(
    income_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    await components.income.delete_income(income_id, current_user.id)
    return no_content()
