"""
Budget plans, scoped to the caller.

Create, update and activate go through the Plan Activation Manager,
so the percentage and single-active rules hold for every route.
"""

from typing import Any, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query

from budget_tracker.api.dependencies import get_components, get_current_user
from budget_tracker.api.responses import created, no_content, ok
from budget_tracker.orchestrator import AppComponents
from budget_tracker.services.auth import CurrentUser


router = APIRouter(prefix="/budget-plans", tags=["budget-plans"])


@router.get("")
async def list_plans(
    active: Optional[bool] = Query(default=None),
    user_id: Optional[str] = Query(default=None),
    current_user: CurrentUser = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    plans = await components.plans.list_plans(
        current_user.id,
        active=active,
        requested_user_id=user_id,
    )
    return ok(plans)


@router.post("", status_code=201)
async def create_plan(
    payload: Any = Body(default=None),
    current_user: CurrentUser = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    plan = await components.plans.create_plan(current_user.id, payload)
    return created(plan)


@router.get("/{plan_id}")
async def get_plan(
    plan_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    return ok(await components.plans.get_plan(plan_id, current_user.id))


@router.put("/{plan_id}")
async def update_plan(
    plan_id: UUID,
    payload: Any = Body(default=None),
    current_user: CurrentUser = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    plan = await components.plans.update_plan(plan_id, current_user.id, payload)
    return ok(plan)


@router.post("/{plan_id}/activate")
async def activate_plan(
    plan_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    return ok(await components.plans.activate_plan(plan_id, current_user.id))


@router.delete("/{plan_id}", status_code=204)
async def delete_plan(
    plan_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    await components.plans.delete_plan(plan_id, current_user.id)
    return no_content()
