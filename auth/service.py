"""
auth/service.py -- AuthService: register, authenticate, and request checks.

Composes the hasher, rotation policy, token issuer and a UserRepository into
the operations the route layer calls. Every expected failure comes back as an
AuthResult / RequestCheck value with a fixed message; nothing here raises for
a bad password, a duplicate username, or a bad token.

Configuration is passed in explicitly (CredentialConfig). create_auth_service()
is the only place that maps environment Settings onto it.

Layer rule: no imports from api/. Import from core/ is allowed for the
factory only -- core/ is the kernel layer.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from auth.models import AuthResult, CreateStatus, CredentialConfig, RequestCheck, User
from auth.passwords import CredentialHasher
from auth.rotation import needs_rotation, rotate_digest
from auth.store import RepositoryError, UserRepository
from auth.tokens import TokenIssuer

if TYPE_CHECKING:
    from core.config import Settings

logger = logging.getLogger("pepperauth.auth")

MSG_USER_CREATED = "User created."
MSG_USERNAME_TAKEN = "Username already exists."
MSG_REGISTRATION_FAILED = "Registration failed."
MSG_LOGIN_OK = "Login successful."
MSG_USER_NOT_FOUND = "User not found."
MSG_INVALID_PASSWORD = "Invalid password."  # noqa: S105 -- message text, not a password
MSG_LOGIN_FAILED = "Login failed."
MSG_UNAUTHORIZED = "Unauthorized"

_BEARER_PREFIX = "Bearer "

# defer(func, *args) schedules a callable. FastAPI's BackgroundTasks.add_task
# fits this signature; the default runs the callable immediately.
Defer = Callable[..., Any]


def _run_now(func: Callable[..., Any], *args: Any) -> None:
    func(*args)


class AuthService:
    """Credential registration, login and bearer-token checks.

    Usage:
        service = AuthService(UserStore(), config)
        service.register("alice", "s3cret1")
        result = service.authenticate("alice", "s3cret1")
        check = service.check_request(f"Bearer {result.token}")
    """

    def __init__(self, repository: UserRepository, config: CredentialConfig) -> None:
        self._repository = repository
        self._config = config
        self._hasher = CredentialHasher(config)
        self._tokens = TokenIssuer(config)

    @property
    def config(self) -> CredentialConfig:
        return self._config

    @property
    def hasher(self) -> CredentialHasher:
        return self._hasher

    @property
    def tokens(self) -> TokenIssuer:
        return self._tokens

    def register(self, username: str, password: str) -> AuthResult:
        """Hash the password and create the user record."""
        digest = self._hasher.hash(password)
        result = self._repository.create(username, digest)
        if result.status is CreateStatus.OK:
            logger.info("Registered user_id=%s", result.user_id)
            return AuthResult(success=True, message=MSG_USER_CREATED)
        if result.status is CreateStatus.ALREADY_EXISTS:
            return AuthResult(success=False, message=MSG_USERNAME_TAKEN)
        return AuthResult(success=False, message=MSG_REGISTRATION_FAILED)

    def authenticate(self, username: str, password: str, defer: Defer | None = None) -> AuthResult:
        """Verify credentials and issue a bearer token.

        When the password matched under a retired pepper, a digest rewrite is
        handed to defer(). The login result does not depend on that rewrite.
        """
        try:
            user = self._repository.find_by_username(username)
        except RepositoryError:
            return AuthResult(success=False, message=MSG_LOGIN_FAILED)
        if user is None:
            return AuthResult(success=False, message=MSG_USER_NOT_FOUND)

        outcome = self._hasher.verify(password, user.hashed_password)
        if not outcome.matched:
            return AuthResult(success=False, message=MSG_INVALID_PASSWORD)

        if needs_rotation(outcome, self._config):
            (defer or _run_now)(rotate_digest, self._hasher, self._repository, user.id, password)

        token = self._tokens.issue(user.id, user.username)
        return AuthResult(success=True, message=MSG_LOGIN_OK, token=token)

    def check_request(self, authorization: str | None) -> RequestCheck:
        """Validate an Authorization header value of the form 'Bearer <token>'.

        Anything else -- missing, another scheme, extra segments, empty
        token -- is rejected without touching the token verifier.
        """
        if not authorization or not authorization.startswith(_BEARER_PREFIX):
            return RequestCheck(valid=False)
        token = authorization[len(_BEARER_PREFIX) :]
        if not token or " " in token:
            return RequestCheck(valid=False)
        payload = self._tokens.verify(token)
        if payload is None:
            return RequestCheck(valid=False)
        return RequestCheck(valid=True, user=payload)

    def find_user(self, username: str) -> User | None:
        """Return the stored user, or None if absent or the lookup failed."""
        try:
            return self._repository.find_by_username(username)
        except RepositoryError:
            logger.warning("User lookup failed for username=%r", username)
            return None


def create_auth_service(settings: Settings, repository: UserRepository) -> AuthService:
    """Build an AuthService from application Settings.

    Raises ConfigurationError if the settings do not describe a usable
    credential configuration.
    """
    config = CredentialConfig(
        cost_factor=settings.bcrypt_rounds,
        peppers=tuple(settings.peppers),
        token_secret=settings.jwt_secret,
        token_lifetime=timedelta(seconds=settings.token_expire_seconds),
    )
    logger.info("Credential config loaded (%d pepper(s), %d bcrypt rounds)", len(config.peppers), config.cost_factor)
    return AuthService(repository, config)
