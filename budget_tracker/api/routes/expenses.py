"""Expense entries, scoped to the caller."""

from typing import Any, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query

from budget_tracker.api.dependencies import get_components, get_current_user
from budget_tracker.api.responses import created, no_content, ok
from budget_tracker.models.budget import ExpenseCategory
from budget_tracker.orchestrator import AppComponents
from budget_tracker.services.auth import CurrentUser


router = APIRouter(prefix="/expenses", tags=["expenses"])


@router.get("")
async def list_expenses(
    category: Optional[ExpenseCategory] = Query(default=None),
    user_id: Optional[str] = Query(default=None),
    limit: Optional[int] = Query(default=None, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    current_user: CurrentUser = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    entries = await components.expenses.list_expenses(
        current_user.id,
        category=category,
        requested_user_id=user_id,
        limit=limit,
        offset=offset,
    )
    return ok(entries)


@router.post("", status_code=201)
async def create_expense(
    payload: Any = Body(default=None),
    current_user: CurrentUser = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    expense = await components.expenses.create_expense(current_user.id, payload)
    return created(expense)


@router.get("/{expense_id}")
async def get_expense(
    expense_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    return ok(await components.expenses.get_expense(expense_id, current_user.id))


@router.put("/{expense_id}")
async def update_expense(
    expense_id: UUID,
    payload: Any = Body(default=None),
    current_user: CurrentUser = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    expense = await components.expenses.update_expense(expense_id, current_user.id, payload)
    return ok(expense)


@router.delete("/{expense_id}", status_code=204)
async def delete_expense(
    expense_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    await components.expenses.delete_expense(expense_id, current_user.id)
    return no_content()
