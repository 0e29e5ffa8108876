"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class. Stores and services do the work; these types own the
shape of what flows between them. CredentialConfig is the one exception that
carries logic: it validates its own invariants on construction so an
AuthService can never exist with an empty pepper list or signing secret.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum

# bcrypt reads at most 72 bytes of pepper + password. Capping the pepper keeps
# at least 40 bytes of that window for the password itself.
MAX_PEPPER_BYTES = 32


class ConfigurationError(ValueError):
    """Raised when credential configuration is missing or malformed.

    Subclasses ValueError so startup code that already guards pydantic
    validation errors (also ValueError) handles both the same way.
    """


@dataclass(frozen=True)
class CredentialConfig:
    """Process-wide credential settings, immutable after construction.

    peppers[0] is the primary pepper used for every new digest. The remaining
    entries are retired peppers that are still accepted on login so that
    existing digests keep verifying until rotation rewrites them.
    """

    cost_factor: int
    peppers: tuple[str, ...]
    token_secret: str
    token_lifetime: timedelta = field(default=timedelta(days=7))

    def __post_init__(self) -> None:
        # Accept any sequence but freeze it so nobody can mutate the list later.
        object.__setattr__(self, "peppers", tuple(self.peppers))
        if not self.peppers:
            raise ConfigurationError("At least one pepper is required.")
        if any(not isinstance(p, str) or not p for p in self.peppers):
            raise ConfigurationError("Peppers must be non-empty strings.")
        if any(len(p.encode("utf-8")) > MAX_PEPPER_BYTES for p in self.peppers):
            raise ConfigurationError(f"Peppers must be at most {MAX_PEPPER_BYTES} bytes (UTF-8).")
        if not self.token_secret:
            raise ConfigurationError("A token signing secret is required.")
        if not 4 <= self.cost_factor <= 31:
            raise ConfigurationError("cost_factor must be between 4 and 31.")
        if self.token_lifetime <= timedelta(0):
            raise ConfigurationError("token_lifetime must be positive.")

    @property
    def primary_pepper(self) -> str:
        return self.peppers[0]


@dataclass
class User:
    """A registered identity.

    hashed_password holds the bcrypt digest of pepper + password. The
    plaintext password is never stored. The digest is rewritten in place when
    a login matched under a retired pepper.
    """

    username: str
    hashed_password: str
    id: int | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class VerificationOutcome:
    """Result of checking a password against a stored digest."""

    matched: bool
    pepper_used: str | None = None


@dataclass(frozen=True)
class TokenPayload:
    """Claims carried by a verified bearer token. Timestamps are UNIX seconds."""

    username: str
    user_id: int
    issued_at: int
    expires_at: int

    def to_dict(self) -> dict:
        return {
            "username": self.username,
            "id": self.user_id,
            "iat": self.issued_at,
            "exp": self.expires_at,
        }


@dataclass(frozen=True)
class AuthResult:
    """Outcome of register/authenticate, shaped for the request boundary."""

    success: bool
    message: str
    token: str | None = None

    def to_dict(self) -> dict:
        data: dict = {"success": self.success, "message": self.message}
        if self.token is not None:
            data["token"] = self.token
        return data


@dataclass(frozen=True)
class RequestCheck:
    """Outcome of checking an Authorization header."""

    valid: bool
    user: TokenPayload | None = None


class CreateStatus(str, Enum):
    OK = "ok"
    ALREADY_EXISTS = "already_exists"
    FAILURE = "failure"


@dataclass(frozen=True)
class CreateResult:
    """Tagged result of UserRepository.create().

    user_id is set only when status is OK.
    """

    status: CreateStatus
    user_id: int | None = None
