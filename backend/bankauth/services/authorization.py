"""
Authorization gate for banking logins.

Evaluates a credential submission against account-protection policy and
issues a session token only when every check passes. Checks run in a fixed
order and the first failing check ends the evaluation:

    validate -> lookup -> active -> lockout -> password -> 2FA -> issue

Rejections are returned as LoginResponse values. Only a missing request or
missing collaborator raises; collaborator errors propagate untouched.

Usage:
    gate = AuthorizationGate(user_store, hasher, tokens, two_factor, audit)
    response = await gate.authorize(LoginRequest(username="alice", password="..."))
    if response.requires_two_factor:
        response = await gate.complete_second_factor(
            LoginRequest(username="alice", two_factor_code="123456")
        )
"""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from bankauth.core.config import settings
from bankauth.core.exceptions import InvalidArgumentError, MissingDependencyError
from bankauth.core.logging import LogHelper
from bankauth.schemas.auth import AccountRecord, LoginRequest, LoginResponse
from bankauth.services.ports import (
    AuditLogger,
    PasswordHasher,
    TokenIssuer,
    TwoFactorService,
    UserStore,
)

logger = LogHelper(__name__)

UNKNOWN_USERNAME = "UNKNOWN"

# Reasons returned to the caller
MSG_CREDENTIALS_REQUIRED = "Username and password are required"
MSG_INVALID_CREDENTIALS = "Invalid credentials"
MSG_ACCOUNT_INACTIVE = "User account is inactive"
MSG_ACCOUNT_LOCKED = "Account is temporarily locked. Please try again later."
MSG_TWO_FACTOR_REQUIRED = "Two-factor authentication required"
MSG_TWO_FACTOR_FIELDS_REQUIRED = "Username and 2FA code are required"
MSG_INVALID_TWO_FACTOR = "Invalid two-factor code"
MSG_USER_NOT_FOUND = "User not found"

# Reasons written to the audit trail
AUDIT_INVALID_INPUT = "Invalid username or password"
AUDIT_USER_NOT_FOUND = "User not found"
AUDIT_ACCOUNT_INACTIVE = "User account is inactive"
AUDIT_ACCOUNT_LOCKED = "Account locked due to failed attempts"
AUDIT_INVALID_PASSWORD = "Invalid password"
AUDIT_AWAITING_TWO_FACTOR = "Awaiting 2FA code"
AUDIT_INVALID_TWO_FACTOR = "Invalid 2FA code"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps from the store are UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class AuthorizationGate:
    """Login state machine over five injected collaborators.

    The gate holds no per-account state. Counter and timestamp live on the
    AccountRecord and are written back through the user store.
    """

    def __init__(
        self,
        user_store: UserStore,
        password_hasher: PasswordHasher,
        token_issuer: TokenIssuer,
        two_factor_service: TwoFactorService,
        audit_logger: AuditLogger,
        *,
        max_failed_attempts: int | None = None,
        lockout_minutes: int | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        collaborators = {
            "user_store": user_store,
            "password_hasher": password_hasher,
            "token_issuer": token_issuer,
            "two_factor_service": two_factor_service,
            "audit_logger": audit_logger,
        }
        for name, collaborator in collaborators.items():
            if collaborator is None:
                raise MissingDependencyError(name)

        self.user_store = user_store
        self.password_hasher = password_hasher
        self.token_issuer = token_issuer
        self.two_factor_service = two_factor_service
        self.audit_logger = audit_logger

        self.max_failed_attempts = (
            max_failed_attempts if max_failed_attempts is not None else settings.MAX_FAILED_ATTEMPTS
        )
        self.lockout_window = timedelta(
            minutes=lockout_minutes if lockout_minutes is not None else settings.LOCKOUT_MINUTES
        )
        self._clock = clock

    def is_locked(self, account: AccountRecord) -> bool:
        """
        Check whether an account is inside its lockout window.

        A missing last-attempt timestamp counts as "now", so a stale counter
        without a timestamp never locks the account.
        """
        if account.failed_login_attempts < self.max_failed_attempts:
            return False

        now = self._clock()
        last_attempt = _as_utc(account.last_login_attempt) if account.last_login_attempt else now
        return now - last_attempt < self.lockout_window

    async def authorize(self, request: LoginRequest) -> LoginResponse:
        """Evaluate a username/password submission."""
        if request is None:
            raise InvalidArgumentError("request")

        if _is_blank(request.username) or _is_blank(request.password):
            username = request.username if request.username is not None else UNKNOWN_USERNAME
            return await self._reject(username, AUDIT_INVALID_INPUT, MSG_CREDENTIALS_REQUIRED)

        username = request.username
        account = await self.user_store.get_user_by_username(username)

        # Same message as a wrong password so usernames cannot be probed
        if account is None:
            return await self._reject(username, AUDIT_USER_NOT_FOUND, MSG_INVALID_CREDENTIALS)

        if not account.is_active:
            return await self._reject(username, AUDIT_ACCOUNT_INACTIVE, MSG_ACCOUNT_INACTIVE)

        # Checked before the password: a correct password does not lift a lockout
        if self.is_locked(account):
            return await self._reject(username, AUDIT_ACCOUNT_LOCKED, MSG_ACCOUNT_LOCKED)

        if not self.password_hasher.verify_password(request.password, account.password_hash):
            account.failed_login_attempts += 1
            account.last_login_attempt = self._clock()
            await self.user_store.update_user(account)
            logger.info(
                "Failed attempt recorded",
                username=username,
                failed_login_attempts=account.failed_login_attempts,
            )
            return await self._reject(username, AUDIT_INVALID_PASSWORD, MSG_INVALID_CREDENTIALS)

        if account.two_factor_enabled:
            await self.audit_logger.log_login_attempt(username, False, AUDIT_AWAITING_TWO_FACTOR)
            logger.info("Second factor required", username=username)
            return LoginResponse.rejected(MSG_TWO_FACTOR_REQUIRED, requires_two_factor=True)

        return await self._issue(username, account)

    async def complete_second_factor(self, request: LoginRequest) -> LoginResponse:
        """Evaluate a second-factor code following a 2FA-pending authorize()."""
        if request is None or _is_blank(request.username) or _is_blank(request.two_factor_code):
            return LoginResponse.rejected(MSG_TWO_FACTOR_FIELDS_REQUIRED)

        username = request.username
        is_valid = await self.two_factor_service.validate_two_factor_code(username, request.two_factor_code)

        # The failed-attempt counter only tracks password failures
        if not is_valid:
            return await self._reject(username, AUDIT_INVALID_TWO_FACTOR, MSG_INVALID_TWO_FACTOR)

        account = await self.user_store.get_user_by_username(username)
        if account is None:
            logger.warning("Second factor accepted for unknown account", username=username)
            return LoginResponse.rejected(MSG_USER_NOT_FOUND)

        # A valid code never yields a token for an inactive or locked account
        if not account.is_active:
            return await self._reject(username, AUDIT_ACCOUNT_INACTIVE, MSG_ACCOUNT_INACTIVE)

        if self.is_locked(account):
            return await self._reject(username, AUDIT_ACCOUNT_LOCKED, MSG_ACCOUNT_LOCKED)

        return await self._issue(username, account)

    async def _reject(self, username: str, audit_reason: str, error_message: str) -> LoginResponse:
        await self.audit_logger.log_failed_attempt(username, audit_reason)
        logger.warning("Login rejected", username=username, reason=audit_reason)
        return LoginResponse.rejected(error_message)

    async def _issue(self, username: str, account: AccountRecord) -> LoginResponse:
        account.failed_login_attempts = 0
        account.last_login_attempt = self._clock()
        if not await self.user_store.update_user(account):
            logger.warning("Account record was not saved", username=username)

        token = self.token_issuer.generate_token(account.username)
        token_expiry = self.token_issuer.get_token_expiry(token)

        await self.audit_logger.log_login_attempt(username, True)
        logger.info("Login succeeded", username=username)
        return LoginResponse.issued(token, token_expiry)
