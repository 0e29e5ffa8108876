"""
api/routes/v1/auth.py -- Signup, login and a bearer-protected profile endpoint.

Routes:
  POST /api/v1/signup   -- register a user; 201 on success, 400 otherwise
  POST /api/v1/login    -- verify credentials; 200 with token, 400 otherwise
  GET  /api/v1/profile  -- requires Authorization: Bearer <token>; 401 otherwise

Handlers are plain `def`: FastAPI runs them in its threadpool, so bcrypt's
deliberate slowness never blocks the event loop.

Pepper rotation on login is handed to BackgroundTasks, so the digest rewrite
runs after the response has been sent.
"""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends
from fastapi.responses import JSONResponse

from api.models import AuthResponse, CredentialsRequest, ProfileResponse, TokenUser
from auth.dependencies import get_auth_service, get_current_user
from auth.models import TokenPayload
from auth.service import AuthService

# Auth policy:
# - POST /api/v1/signup:   public
# - POST /api/v1/login:    public
# - GET  /api/v1/profile:  requires a valid bearer token (get_current_user)
router = APIRouter()


@router.post("/signup", response_model=AuthResponse, status_code=201)
def signup(body: CredentialsRequest, service: AuthService = Depends(get_auth_service)) -> JSONResponse:
    """Register a new username/password pair."""
    result = service.register(body.username, body.password)
    return JSONResponse(status_code=201 if result.success else 400, content=result.to_dict())


@router.post("/login", response_model=AuthResponse)
def login(
    body: CredentialsRequest,
    background_tasks: BackgroundTasks,
    service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    """Authenticate with username and password; return a bearer token."""
    result = service.authenticate(body.username, body.password, defer=background_tasks.add_task)
    resp = JSONResponse(status_code=200 if result.success else 400, content=result.to_dict())
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/profile", response_model=ProfileResponse)
def profile(user: TokenPayload = Depends(get_current_user)) -> ProfileResponse:
    """Return the identity carried by the caller's token."""
    return ProfileResponse(
        success=True,
        message=f"Hello, {user.username}!",
        user=TokenUser(**user.to_dict()),
    )
