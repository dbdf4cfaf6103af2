"""Signup, login and token introspection."""

from typing import Any

from fastapi import APIRouter, Body, Depends

from budget_tracker.api.dependencies import get_components, get_current_user
from budget_tracker.api.responses import created, ok
from budget_tracker.orchestrator import AppComponents
from budget_tracker.services.auth import CurrentUser


router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", status_code=201)
async def signup(
    payload: Any = Body(default=None),
    components: AppComponents = Depends(get_components),
):
    user, token = await components.accounts.signup(payload)
    return created({"user": user.public(), "token": token})


@router.post("/login")
async def login(
    payload: Any = Body(default=None),
    components: AppComponents = Depends(get_components),
):
    user, token = await components.accounts.login(payload)
    return ok({"user": user.public(), "token": token})


@router.get("/me")
async def me(
    current_user: CurrentUser = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    user = await components.accounts.get_user(current_user.id)
    return ok({"user": user.public()})
