"""
SQLAlchemy-backed user store.

Hands the authorization gate detached AccountRecord copies. New failed
attempts are written back as an increment of the stored counter, so
concurrent wrong-password attempts on one account are all counted. A reset
to zero is a compare-and-swap on User.version and fails if another attempt
saved in between.
"""

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from bankauth.core.exceptions import StaleAccountError
from bankauth.core.logging import LogHelper
from bankauth.models.user import User
from bankauth.schemas.auth import AccountRecord

logger = LogHelper(__name__)


class SqlAlchemyUserStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_username(self, username: str) -> AccountRecord | None:
        result = await self.db.execute(select(User).where(User.username == username))
        user = result.scalar_one_or_none()
        if user is None:
            return None
        return AccountRecord.model_validate(user)

    async def user_exists(self, username: str) -> bool:
        result = await self.db.execute(
            select(func.count()).select_from(User).where(User.username == username)
        )
        return (result.scalar() or 0) > 0

    async def get_totp_secret(self, username: str) -> str | None:
        result = await self.db.execute(select(User.totp_secret).where(User.username == username))
        return result.scalar_one_or_none()

    async def update_user(self, account: AccountRecord) -> bool:
        """
        Save failed_login_attempts and last_login_attempt.

        The record is refreshed with the stored counter and version afterwards.

        Raises:
            StaleAccountError: a reset raced another save of the same account
        """
        added = account.unsaved_failed_attempts
        statement = update(User).where(User.id == account.id)
        if added > 0:
            counter = User.failed_login_attempts + added
        else:
            statement = statement.where(User.version == account.version)
            counter = account.failed_login_attempts

        result = await self.db.execute(
            statement.values(
                failed_login_attempts=counter,
                last_login_attempt=account.last_login_attempt,
                version=User.version + 1,
            )
            .returning(User.failed_login_attempts, User.version)
            .execution_options(synchronize_session=False)
        )
        row = result.one_or_none()

        if row is None:
            await self.db.rollback()
            if not await self.user_exists(account.username):
                logger.warning("Account disappeared before save", username=account.username)
                return False
            raise StaleAccountError(account.username)

        await self.db.commit()
        account.failed_login_attempts, account.version = row
        account.mark_saved()
        return True
