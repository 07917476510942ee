"""
Audit logging service for authorization attempts.

Usage:
    audit = SqlAlchemyAuditLogger(db, ip_address="203.0.113.7")
    await audit.log_failed_attempt("alice", "Invalid password")
"""

from sqlalchemy.ext.asyncio import AsyncSession

from bankauth.core.logging import LogHelper
from bankauth.models.audit_log import AuditLog

logger = LogHelper(__name__)

ACTION_LOGIN = "auth.login"
ACTION_LOGIN_PENDING = "auth.login_pending"
ACTION_LOGIN_FAILED = "auth.login_failed"


class SqlAlchemyAuditLogger:
    """Writes one AuditLog row per event and commits before returning."""

    def __init__(self, db: AsyncSession, ip_address: str | None = None):
        self.db = db
        self.ip_address = ip_address

    async def log_login_attempt(self, username: str, success: bool, reason: str | None = None) -> None:
        action = ACTION_LOGIN if success else ACTION_LOGIN_PENDING
        await self._write(action, username, success, reason)

    async def log_failed_attempt(self, username: str, reason: str) -> None:
        await self._write(ACTION_LOGIN_FAILED, username, False, reason)

    async def _write(self, action: str, username: str, success: bool, reason: str | None) -> AuditLog:
        entry = AuditLog(
            action=action,
            username=username,
            success=success,
            reason=reason,
            ip_address=self.ip_address,
        )
        self.db.add(entry)
        await self.db.commit()

        logger.info(
            "Audit event recorded",
            action=action,
            username=username,
            success=success,
            reason=reason,
            ip_address=self.ip_address,
        )
        return entry
