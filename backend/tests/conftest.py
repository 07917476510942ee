"""Pytest fixtures for backend tests."""

import os

# Settings are built at import time and reject the dev signing key outside DEBUG
os.environ.setdefault("DEBUG", "true")

from datetime import datetime, timedelta, timezone  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402

from bankauth.schemas.auth import AccountRecord  # noqa: E402
from bankauth.services.authorization import AuthorizationGate  # noqa: E402

NOW = datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)
TOKEN_EXPIRY = NOW + timedelta(hours=8)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def token_expiry() -> datetime:
    return TOKEN_EXPIRY


@pytest.fixture
def make_account():
    """Factory for account records with sensible defaults."""

    def _make(**overrides) -> AccountRecord:
        fields = {
            "id": 1,
            "username": "john.doe",
            "password_hash": "hashed_password",
            "is_active": True,
            "two_factor_enabled": False,
            "failed_login_attempts": 0,
            "last_login_attempt": None,
            "created_at": NOW - timedelta(days=30),
        }
        fields.update(overrides)
        return AccountRecord(**fields)

    return _make


@pytest.fixture
def user_store() -> AsyncMock:
    store = AsyncMock()
    store.get_user_by_username.return_value = None
    store.update_user.return_value = True
    return store


@pytest.fixture
def password_hasher() -> MagicMock:
    hasher = MagicMock()
    hasher.verify_password.return_value = True
    return hasher


@pytest.fixture
def token_issuer() -> MagicMock:
    issuer = MagicMock()
    issuer.generate_token.return_value = "jwt_token_12345"
    issuer.get_token_expiry.return_value = TOKEN_EXPIRY
    return issuer


@pytest.fixture
def two_factor_service() -> AsyncMock:
    service = AsyncMock()
    service.validate_two_factor_code.return_value = True
    return service


@pytest.fixture
def audit_logger() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def gate(user_store, password_hasher, token_issuer, two_factor_service, audit_logger) -> AuthorizationGate:
    """Gate with mocked collaborators and a fixed clock."""
    return AuthorizationGate(
        user_store=user_store,
        password_hasher=password_hasher,
        token_issuer=token_issuer,
        two_factor_service=two_factor_service,
        audit_logger=audit_logger,
        max_failed_attempts=5,
        lockout_minutes=15,
        clock=lambda: NOW,
    )
