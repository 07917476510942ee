"""
TOTP (Time-based One-Time Password) service.

Handles 2FA enrolment helpers and code generation/verification for the
second step of a login.
"""

from typing import Protocol

import pyotp

from bankauth.core.config import settings
from bankauth.core.logging import LogHelper

logger = LogHelper(__name__)


class TotpSecretStore(Protocol):
    async def get_totp_secret(self, username: str) -> str | None:
        ...


def generate_totp_secret() -> str:
    """
    Generate a new TOTP secret.

    Returns:
        32-character base32 encoded secret
    """
    return pyotp.random_base32(length=32)


def generate_qr_uri(secret: str, username: str, issuer: str | None = None) -> str:
    """
    Generate an otpauth:// URI for QR code display.

    Args:
        secret: TOTP secret
        username: Account name shown in the authenticator app
        issuer: Application name

    Returns:
        otpauth:// URI string
    """
    totp = pyotp.TOTP(secret)
    return totp.provisioning_uri(name=username, issuer_name=issuer or settings.TOTP_ISSUER)


def verify_totp_code(secret: str, code: str, valid_window: int | None = None) -> bool:
    """
    Verify a TOTP code.

    Args:
        secret: User's TOTP secret
        code: 6-digit code to verify
        valid_window: Accepted drift in 30 second steps

    Returns:
        True if code is valid, False otherwise
    """
    if not code or len(code) != 6 or not code.isdigit():
        return False

    totp = pyotp.TOTP(secret)
    window = valid_window if valid_window is not None else settings.TOTP_VALID_WINDOW
    return totp.verify(code, valid_window=window)


class TotpTwoFactorService:
    """Two-factor collaborator backed by per-account TOTP secrets."""

    def __init__(self, secret_store: TotpSecretStore, valid_window: int | None = None):
        self.secret_store = secret_store
        self.valid_window = valid_window

    async def generate_two_factor_code(self, username: str) -> str:
        """Current code for out-of-band delivery (SMS, email)."""
        secret = await self.secret_store.get_totp_secret(username)
        if not secret:
            raise LookupError(f"No TOTP secret enrolled for {username}")
        return pyotp.TOTP(secret).now()

    async def validate_two_factor_code(self, username: str, code: str) -> bool:
        secret = await self.secret_store.get_totp_secret(username)
        if not secret:
            logger.warning("2FA code submitted for account without TOTP secret", username=username)
            return False
        return verify_totp_code(secret, code, self.valid_window)
