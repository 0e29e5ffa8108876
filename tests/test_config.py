"""Unit tests for core/config.py and the Settings -> AuthService factory.

Covers:
- PEPPERS parsed from a comma-separated env var, order preserved
- missing peppers are fatal in every mode
- JWT_SECRET: fatal when missing in production, generated in debug, >= 32 chars
- create_auth_service() maps Settings onto CredentialConfig
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from auth.service import create_auth_service
from auth.store import UserStore
from core.config import Settings, get_settings

_SECRET = "x" * 32


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch):
    for name in ("PEPPERS", "JWT_SECRET", "DEBUG", "BCRYPT_ROUNDS", "TOKEN_EXPIRE_SECONDS", "DATABASE_URL"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_peppers_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PEPPERS", "new-pepper, old-pepper ,older-pepper")
    monkeypatch.setenv("JWT_SECRET", _SECRET)
    settings = Settings(_env_file=None)
    assert settings.peppers == ["new-pepper", "old-pepper", "older-pepper"]
    assert settings.bcrypt_rounds == 10
    assert settings.token_expire_seconds == 7 * 24 * 3600


def test_get_settings_is_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PEPPERS", "p1")
    monkeypatch.setenv("JWT_SECRET", _SECRET)
    assert get_settings() is get_settings()


@pytest.mark.parametrize("debug", [False, True])
def test_missing_peppers_is_fatal(debug: bool) -> None:
    with pytest.raises(ValueError, match="PEPPERS"):
        Settings(_env_file=None, peppers="", jwt_secret=_SECRET, debug=debug)


def test_missing_secret_is_fatal_in_production() -> None:
    with pytest.raises(ValueError, match="JWT_SECRET"):
        Settings(_env_file=None, peppers="p1")


def test_missing_secret_generated_in_debug() -> None:
    settings = Settings(_env_file=None, peppers="p1", debug=True)
    assert len(settings.jwt_secret) >= 32


def test_short_secret_rejected() -> None:
    with pytest.raises(ValueError, match="at least 32"):
        Settings(_env_file=None, peppers="p1", jwt_secret="short")


def test_oversized_pepper_rejected() -> None:
    with pytest.raises(ValueError, match="at most 32 bytes"):
        Settings(_env_file=None, peppers="ok," + "p" * 33, jwt_secret=_SECRET)


def test_pepper_at_size_limit_accepted() -> None:
    settings = Settings(_env_file=None, peppers="p" * 32, jwt_secret=_SECRET)
    assert settings.peppers == ["p" * 32]


def test_bcrypt_rounds_bounds() -> None:
    with pytest.raises(ValueError):
        Settings(_env_file=None, peppers="p1", jwt_secret=_SECRET, bcrypt_rounds=3)


def test_create_auth_service_maps_settings() -> None:
    settings = Settings(
        _env_file=None,
        peppers="current,retired",
        jwt_secret=_SECRET,
        bcrypt_rounds=4,
        token_expire_seconds=120,
    )
    store = UserStore("sqlite:///:memory:")
    try:
        service = create_auth_service(settings, store)
        assert service.config.peppers == ("current", "retired")
        assert service.config.primary_pepper == "current"
        assert service.config.cost_factor == 4
        assert service.config.token_secret == _SECRET
        assert service.config.token_lifetime == timedelta(seconds=120)
        assert service.register("alice", "s3cret1").success
    finally:
        store.close()
