"""Wiring of an AuthorizationGate around one database session."""

from sqlalchemy.ext.asyncio import AsyncSession

from bankauth.services.audit import SqlAlchemyAuditLogger
from bankauth.services.authorization import AuthorizationGate
from bankauth.services.password import BcryptPasswordHasher
from bankauth.services.tokens import JwtTokenIssuer
from bankauth.services.totp import TotpTwoFactorService
from bankauth.services.user_store import SqlAlchemyUserStore


def create_authorization_gate(db: AsyncSession, ip_address: str | None = None) -> AuthorizationGate:
    """
    Build a gate whose store, audit trail and TOTP secrets share `db`.

    Args:
        db: Session owned by the caller for the duration of one request
        ip_address: Client address recorded on audit events
    """
    user_store = SqlAlchemyUserStore(db)
    return AuthorizationGate(
        user_store=user_store,
        password_hasher=BcryptPasswordHasher(),
        token_issuer=JwtTokenIssuer(),
        two_factor_service=TotpTwoFactorService(user_store),
        audit_logger=SqlAlchemyAuditLogger(db, ip_address=ip_address),
    )
