"""Request-scoped dependencies: components and the authenticated caller."""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from budget_tracker.orchestrator import AppComponents
from budget_tracker.services.auth import CurrentUser


bearer_scheme = HTTPBearer(auto_error=False)


def get_components(request: Request) -> AppComponents:
    return request.app.state.components


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    components: AppComponents = Depends(get_components),
) -> CurrentUser:
    """
    Resolve the bearer token to a caller.

    Missing, malformed, expired or orphaned tokens all end as a 401
    through the UnauthorizedError handler.
    """
    token = credentials.credentials if credentials else None
    return await components.accounts.resolve_token(token)
