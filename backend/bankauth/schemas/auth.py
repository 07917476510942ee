from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr


class LoginRequest(BaseModel):
    """Credentials submitted for one authorization attempt.

    Fields are deliberately unvalidated: blank values are a policy outcome
    of the gate, not a schema error.
    """

    username: str | None = None
    password: str | None = None
    two_factor_code: str | None = None


class AccountRecord(BaseModel):
    """Mutable copy of a stored account handed to the gate by the user store."""

    model_config = ConfigDict(from_attributes=True)

    id: int | str
    username: str
    password_hash: str
    is_active: bool = True
    two_factor_enabled: bool = False
    failed_login_attempts: int = Field(default=0, ge=0)
    last_login_attempt: datetime | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    version: int = 0

    _saved_failed_attempts: int = PrivateAttr(default=0)

    def model_post_init(self, __context) -> None:
        self._saved_failed_attempts = self.failed_login_attempts

    @property
    def unsaved_failed_attempts(self) -> int:
        """Failures counted on this copy since it was read or last saved."""
        return self.failed_login_attempts - self._saved_failed_attempts

    def mark_saved(self) -> None:
        self._saved_failed_attempts = self.failed_login_attempts


class LoginResponse(BaseModel):
    success: bool
    token: str | None = None
    error_message: str | None = None
    requires_two_factor: bool = False
    token_expiry: datetime | None = None

    @classmethod
    def rejected(cls, error_message: str, requires_two_factor: bool = False) -> "LoginResponse":
        return cls(success=False, error_message=error_message, requires_two_factor=requires_two_factor)

    @classmethod
    def issued(cls, token: str, token_expiry: datetime) -> "LoginResponse":
        return cls(success=True, token=token, token_expiry=token_expiry)
