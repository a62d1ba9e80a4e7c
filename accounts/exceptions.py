"""Typed exceptions for account and session failures.

Each class carries the HTTP status the API layer answers with and a fixed
client-facing message. Internal detail belongs in the server log only.
"""

from typing import Optional


class AccountError(Exception):
    """Base class for account errors."""

    status_code = 500
    message = "Account operation failed"

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class AccountValidationError(AccountError):
    """Missing or malformed registration/login input."""

    status_code = 400

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


class DuplicateEmailError(AccountError):
    """Another user already holds this normalized email."""

    status_code = 409
    message = "User already exists with this email"


class InvalidCredentialsError(AccountError):
    """
    Email unknown or password wrong.

    Both cases raise this same error with the same message so that the
    response does not reveal which check failed.
    """

    status_code = 401
    message = "Invalid credentials"


class AuthenticationError(AccountError):
    """A presented credential could not be resolved to a user."""

    status_code = 401
    message = "Authentication required"


class UnauthenticatedError(AuthenticationError):
    """No credential was presented, or it was syntactically garbled."""

    message = "Access denied: no credentials provided"


class InvalidTokenError(AuthenticationError):
    """Token signature did not verify or required claims are missing."""

    message = "Invalid token"


class TokenExpiredError(AuthenticationError):
    """Token signature is fine but its expiry has passed."""

    message = "Token expired"


class SessionNotFoundError(AuthenticationError):
    """No live session record matches the presented identifier."""

    message = "Session not found"


class SessionExpiredError(AuthenticationError):
    """Session record exists but is past its expiry. The record is deleted."""

    message = "Session expired"
