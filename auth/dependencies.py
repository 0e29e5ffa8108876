"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

The AuthService lives on app.state (wired by the lifespan in api/main.py).
get_current_user() runs AuthService.check_request() on the Authorization
header and raises HTTP 401 if the bearer token is missing or invalid.

try_get_current_user() is the soft variant (returns None on failure).

Layer rule: no imports from api/ or core/.
  auth/dependencies.py may import from fastapi (for HTTPException/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from auth.models import TokenPayload
from auth.service import MSG_UNAUTHORIZED, AuthService


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def try_get_current_user(request: Request) -> TokenPayload | None:
    """Return the verified token payload, or None. Never raises."""
    service = get_auth_service(request)
    check = service.check_request(request.headers.get("Authorization"))
    return check.user if check.valid else None


def get_current_user(request: Request) -> TokenPayload:
    """Require a valid bearer token. Raises HTTP 401 otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user: TokenPayload = Depends(get_current_user)): ...
    """
    user = try_get_current_user(request)
    if user is None:
        raise HTTPException(
            status_code=401,
            detail=MSG_UNAUTHORIZED,
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
