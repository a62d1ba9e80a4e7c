"""
Authentication gate for the FastAPI API.

require_user() is the one enforcement point for protected routes: add it as
a dependency and the handler receives the caller's user id. Handlers never
read headers or cookies for identity themselves.
"""

from typing import Optional

from fastapi import Request, Response

from accounts.models import StrategyName, User
from api.context import AppContext


BEARER_PREFIX = "Bearer "


def get_context(request: Request) -> AppContext:
    """Return the AppContext the entry point attached to the app."""
    return request.app.state.context


def read_credential(request: Request, context: AppContext) -> Optional[str]:
    """
    Pull the raw credential from where the active strategy expects it.

    Token strategy: Authorization: Bearer <token>.
    Session strategy: the session cookie.

    Returns None when the credential is absent or the header is garbled;
    verification turns that into UnauthenticatedError.
    """
    strategy = context.authenticator.strategy
    if strategy.name == StrategyName.SESSION:
        return request.cookies.get(context.config.session_cookie_name) or None

    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith(BEARER_PREFIX):
        return None
    token = auth_header[len(BEARER_PREFIX):].strip()
    if not token or " " in token:
        return None
    return token


async def require_user(request: Request) -> str:
    """
    Verify the caller and return their user id.

    Use as a FastAPI dependency:
        @app.get("/api/books")
        async def route(user_id: str = Depends(require_user)): ...

    Raises:
        AuthenticationError: mapped to 401 by the app's exception handler
    """
    context = get_context(request)
    credential = read_credential(request, context)
    return await context.authenticator.verify(credential)


async def optional_user(request: Request) -> Optional[User]:
    """Soft variant for "who am I": None for anonymous or rejected callers."""
    context = get_context(request)
    credential = read_credential(request, context)
    return await context.authenticator.current_user(credential)


def set_session_cookie(response: Response, context: AppContext, value: str, max_age: int) -> None:
    """
    Write the session id as an httpOnly, SameSite=Lax cookie whose max_age
    matches the server-side record's lifetime.
    """
    response.set_cookie(
        context.config.session_cookie_name,
        value=value,
        max_age=max_age,
        httponly=True,
        samesite="lax",
        secure=context.config.cookie_secure,
        path="/",
    )


def clear_session_cookie(response: Response, context: AppContext) -> None:
    response.delete_cookie(
        context.config.session_cookie_name,
        path="/",
        httponly=True,
        samesite="lax",
        secure=context.config.cookie_secure,
    )
