"""
API request and response models for the auth REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Length limits on credentials live here, at the transport edge. The auth
core accepts any string.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class CredentialsRequest(BaseModel):
    """Request body for POST /api/v1/signup and POST /api/v1/login."""

    model_config = ConfigDict(extra="ignore")

    username: str = Field(
        min_length=3,
        max_length=255,
        json_schema_extra={"examples": ["alice"]},
    )
    password: str = Field(min_length=6, max_length=255)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class AuthResponse(BaseModel):
    """Response body for signup and login. token is present only on login success."""

    success: bool
    message: str
    token: Optional[str] = None


class TokenUser(BaseModel):
    username: str
    id: int
    iat: int
    exp: int


class ProfileResponse(BaseModel):
    success: bool
    message: str
    user: Optional[TokenUser] = None


class MessageResponse(BaseModel):
    """Envelope for every error the API returns (401, 404, 400 validation, 500)."""

    success: bool = False
    message: str


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str
