"""Integration tests for concurrent login attempts against a real database."""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

# Skip entire module if the SQLite async driver is not installed
pytest.importorskip("aiosqlite", reason="aiosqlite not installed")

import pytest_asyncio  # noqa: E402
from sqlalchemy import select  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from bankauth.db.base import Base  # noqa: E402
from bankauth.models.user import User  # noqa: E402
from bankauth.schemas.auth import LoginRequest  # noqa: E402
from bankauth.services.authorization import (  # noqa: E402
    MSG_ACCOUNT_LOCKED,
    MSG_INVALID_CREDENTIALS,
    AuthorizationGate,
)
from bankauth.services.user_store import SqlAlchemyUserStore  # noqa: E402

NOW = datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)


@pytest_asyncio.fixture(scope="function")
async def db_engine(tmp_path):
    """File-backed database so every session gets its own connection."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'bankauth.db'}", poolclass=NullPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_maker(db_engine):
    maker = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with maker() as session:
        session.add(User(username="john.doe", password_hash="hashed_password", is_active=True))
        await session.commit()
    return maker


def _gate(session: AsyncSession) -> AuthorizationGate:
    hasher = MagicMock()
    hasher.verify_password.return_value = False
    return AuthorizationGate(
        user_store=SqlAlchemyUserStore(session),
        password_hasher=hasher,
        token_issuer=MagicMock(),
        two_factor_service=AsyncMock(),
        audit_logger=AsyncMock(),
        max_failed_attempts=5,
        lockout_minutes=15,
        clock=lambda: NOW,
    )


async def _wrong_password(session_maker):
    async with session_maker() as session:
        return await _gate(session).authorize(LoginRequest(username="john.doe", password="wrong"))


async def _stored_counter(session_maker) -> int:
    async with session_maker() as session:
        result = await session.execute(
            select(User.failed_login_attempts).where(User.username == "john.doe")
        )
        return result.scalar_one()


@pytest.mark.asyncio
async def test_concurrent_failures_are_all_counted(session_maker):
    responses = await asyncio.gather(*(_wrong_password(session_maker) for _ in range(4)))

    assert [r.error_message for r in responses] == [MSG_INVALID_CREDENTIALS] * 4
    assert await _stored_counter(session_maker) == 4


@pytest.mark.asyncio
async def test_saves_from_stale_copies_accumulate(session_maker):
    async with session_maker() as first, session_maker() as second, session_maker() as third:
        stores = [SqlAlchemyUserStore(session) for session in (first, second, third)]
        # Every copy is read before any of them is saved
        accounts = [await store.get_user_by_username("john.doe") for store in stores]
        assert [account.failed_login_attempts for account in accounts] == [0, 0, 0]

        for store, account in zip(stores, accounts):
            account.failed_login_attempts += 1
            account.last_login_attempt = NOW
            assert await store.update_user(account) is True

        assert [account.failed_login_attempts for account in accounts] == [1, 2, 3]

    assert await _stored_counter(session_maker) == 3


@pytest.mark.asyncio
async def test_parallel_guessing_still_locks_account(session_maker):
    responses = await asyncio.gather(*(_wrong_password(session_maker) for _ in range(6)))

    assert all(not r.success for r in responses)
    assert await _stored_counter(session_maker) >= 5

    follow_up = await _wrong_password(session_maker)
    assert follow_up.error_message == MSG_ACCOUNT_LOCKED


@pytest.mark.asyncio
async def test_successful_login_resets_stored_counter(session_maker):
    await asyncio.gather(*(_wrong_password(session_maker) for _ in range(2)))

    async with session_maker() as session:
        gate = _gate(session)
        gate.password_hasher.verify_password.return_value = True
        gate.token_issuer.generate_token.return_value = "jwt_token_12345"
        gate.token_issuer.get_token_expiry.return_value = NOW + timedelta(hours=8)

        response = await gate.authorize(LoginRequest(username="john.doe", password="correct"))

    assert response.success is True
    assert await _stored_counter(session_maker) == 0
