"""Liveness probe."""

from fastapi import APIRouter, Request

from budget_tracker.api.responses import ok
from budget_tracker.models.budget import utcnow


router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request):
    return ok({
        "status": "ok",
        "message": "API is running",
        "timestamp": utcnow().isoformat() + "Z",
        "environment": request.app.state.settings.app_environment,
    })
