"""Custom exceptions for the bankauth package.

Policy rejections are never raised; they are returned as LoginResponse values.
These exceptions cover programming-contract violations and collaborator failures.
"""


class InvalidArgumentError(ValueError):
    """Raised when a required argument is missing (caller bug, not a login failure)."""

    message = "Argument must not be None"

    def __init__(self, argument: str):
        self.argument = argument
        super().__init__(f"{self.message}: {argument}")


class MissingDependencyError(InvalidArgumentError):
    """Raised when a collaborator is not supplied to the authorization gate."""

    message = "Collaborator must not be None"


class StaleAccountError(Exception):
    """Raised when an account row changed between lookup and save."""

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"Account was modified concurrently: {username}")


class InvalidTokenError(Exception):
    """Raised when a session token cannot be decoded."""

    def __init__(self, reason: str = "unknown"):
        self.reason = reason
        super().__init__(f"Invalid token: {reason}")
