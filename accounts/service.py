"""
Authenticator: registration, login, credential verification and logout.
"""

from typing import Optional

from utilities.logger import AuthEventLogger

from .database import UserStore
from .exceptions import (
    AccountValidationError,
    AuthenticationError,
    DuplicateEmailError,
    InvalidCredentialsError,
)
from .models import (
    EMAIL_PATTERN,
    PASSWORD_MAX_BYTES,
    PASSWORD_MIN_LEN,
    USERNAME_MIN_LEN,
    IssuedCredential,
    User,
    normalize_email,
)
from .passwords import PasswordHasher
from .strategies import SessionStrategy


class Authenticator:
    """
    Account operations over a credential store and the active session strategy.

    The same instance serves every request; it holds no per-request state.
    """

    def __init__(
        self,
        users: UserStore,
        strategy: SessionStrategy,
        hasher: PasswordHasher,
        events: Optional[AuthEventLogger] = None,
    ):
        self.users = users
        self.strategy = strategy
        self.hasher = hasher
        self.events = events or AuthEventLogger("accounts")

    async def register(
        self,
        username: Optional[str],
        email: Optional[str],
        password: Optional[str],
    ) -> str:
        """
        Create a user account.

        Args:
            username: Display name, at least two characters once trimmed
            email: Email address, normalized before storage
            password: Plaintext password, at least six characters

        Returns:
            The new user's id

        Raises:
            AccountValidationError: missing or malformed field
            DuplicateEmailError: email already registered
        """
        if not username or not email or not password:
            raise AccountValidationError(
                _first_missing(username=username, email=email, password=password),
                "All fields are required",
            )

        username = username.strip()
        if len(username) < USERNAME_MIN_LEN:
            raise AccountValidationError(
                "username", f"Username must be at least {USERNAME_MIN_LEN} characters"
            )

        email = normalize_email(email)
        if not EMAIL_PATTERN.match(email):
            raise AccountValidationError("email", "Invalid email format")

        if len(password) < PASSWORD_MIN_LEN:
            raise AccountValidationError(
                "password", f"Password must be at least {PASSWORD_MIN_LEN} characters"
            )
        if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
            raise AccountValidationError(
                "password", f"Password must be at most {PASSWORD_MAX_BYTES} bytes"
            )

        password_hash = await self.hasher.hash_async(password)
        try:
            user = await self.users.create(username, email, password_hash)
        except DuplicateEmailError:
            self.events.log_duplicate_registration(email)
            raise

        self.events.log_registered(user.id, email)
        return user.id

    async def login(self, email: Optional[str], password: Optional[str]) -> IssuedCredential:
        """
        Check credentials and issue a token or session.

        Raises:
            AccountValidationError: email or password missing
            InvalidCredentialsError: unknown email or wrong password, indistinguishably
        """
        if not email or not password:
            raise AccountValidationError(
                _first_missing(email=email, password=password),
                "Email and password are required",
            )

        email = normalize_email(email)
        user = await self.users.find_by_email(email)
        if user is None:
            await self.hasher.burn_time(password)
            self.events.log_login_failure(email)
            raise InvalidCredentialsError()

        if not await self.hasher.verify_async(password, user.password_hash):
            self.events.log_login_failure(email)
            raise InvalidCredentialsError()

        credential = await self.strategy.issue(user.id)
        self.events.log_login(user.id, self.strategy.name.value)
        return credential

    async def verify(self, credential: Optional[str]) -> str:
        """Resolve a presented credential to a user id, or raise AuthenticationError."""
        try:
            return await self.strategy.verify(credential)
        except AuthenticationError as e:
            self.events.log_rejected(type(e).__name__, credential)
            raise

    async def logout(self, credential: Optional[str]) -> None:
        """End the caller's session. Safe to call repeatedly or without a credential."""
        await self.strategy.revoke(credential)
        self.events.log_logout(credential, self.strategy.name.value)

    async def current_user(self, credential: Optional[str]) -> Optional[User]:
        """
        Resolve the caller for a "who am I" query.

        Returns None for anonymous or rejected credentials instead of raising,
        so callers can tell "anonymous" apart from a real failure.
        """
        try:
            user_id = await self.verify(credential)
        except AuthenticationError:
            return None
        return await self.users.find_by_id(user_id)


def _first_missing(**fields: Optional[str]) -> str:
    for name, value in fields.items():
        if not value:
            return name
    return ""
