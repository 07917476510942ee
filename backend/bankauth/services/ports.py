"""
Collaborator contracts consumed by the authorization gate.

The gate depends only on these protocols; bankauth.services ships
SQLAlchemy, passlib, python-jose and pyotp implementations of them.
"""

from datetime import datetime
from typing import Protocol

from bankauth.schemas.auth import AccountRecord


class UserStore(Protocol):
    """Lookup and persistence of account records."""

    async def get_user_by_username(self, username: str) -> AccountRecord | None:
        """Return a mutable copy of the account, or None if unknown."""
        ...

    async def user_exists(self, username: str) -> bool:
        ...

    async def update_user(self, account: AccountRecord) -> bool:
        """
        Persist the counter and timestamp of a previously fetched account.

        Implementations serialize concurrent updates of the same account so
        that every failed attempt is counted exactly once.
        """
        ...


class PasswordHasher(Protocol):
    def hash_password(self, password: str) -> str:
        ...

    def verify_password(self, password: str, password_hash: str) -> bool:
        ...


class TokenIssuer(Protocol):
    def generate_token(self, username: str) -> str:
        ...

    def validate_token(self, token: str) -> bool:
        ...

    def get_username_from_token(self, token: str) -> str:
        ...

    def get_token_expiry(self, token: str) -> datetime:
        ...


class TwoFactorService(Protocol):
    async def generate_two_factor_code(self, username: str) -> str:
        ...

    async def validate_two_factor_code(self, username: str, code: str) -> bool:
        ...


class AuditLogger(Protocol):
    """Durable audit trail; both calls complete before the gate returns."""

    async def log_login_attempt(self, username: str, success: bool, reason: str | None = None) -> None:
        ...

    async def log_failed_attempt(self, username: str, reason: str) -> None:
        ...
