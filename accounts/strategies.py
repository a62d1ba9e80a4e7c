"""
Session strategies: how a logged-in user is remembered between requests.

TokenStrategy issues self-contained signed JWTs and stores nothing.
ServerSessionStrategy keeps a record per login in the session store.
Exactly one is active per deployment, chosen by TrackerConfig.auth_strategy.
"""

import secrets
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import jwt
import structlog

from .database import SessionStore
from .exceptions import (
    InvalidTokenError,
    SessionExpiredError,
    SessionNotFoundError,
    TokenExpiredError,
    UnauthenticatedError,
)
from .models import IssuedCredential, SessionRecord, StrategyName

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SessionStrategy(ABC):
    """Issue, verify and revoke the credential a client presents."""

    name: StrategyName

    def __init__(self, ttl_seconds: int, clock: Clock = utc_now):
        self.ttl_seconds = ttl_seconds
        self.clock = clock

    @abstractmethod
    async def issue(self, user_id: str) -> IssuedCredential:
        """Create a credential for a freshly authenticated user."""

    @abstractmethod
    async def verify(self, credential: Optional[str]) -> str:
        """
        Resolve a presented credential to a user id.

        Raises:
            AuthenticationError subclass describing why it was rejected
        """

    @abstractmethod
    async def revoke(self, credential: Optional[str]) -> None:
        """End a credential's life early, where the strategy can."""


class TokenStrategy(SessionStrategy):
    """Stateless HS256 JWTs carrying sub (user id), iat and exp."""

    name = StrategyName.TOKEN

    def __init__(
        self,
        secret: str,
        ttl_seconds: int,
        algorithm: str = "HS256",
        clock: Clock = utc_now,
    ):
        super().__init__(ttl_seconds, clock)
        self._secret = secret
        self.algorithm = algorithm

    async def issue(self, user_id: str) -> IssuedCredential:
        issued_at = self.clock()
        expires_at = issued_at + timedelta(seconds=self.ttl_seconds)
        payload = {
            "sub": user_id,
            "iat": issued_at,
            "exp": expires_at,
        }
        token = jwt.encode(payload, self._secret, algorithm=self.algorithm)
        return IssuedCredential(
            strategy=self.name,
            value=token,
            user_id=user_id,
            expires_at=expires_at,
            max_age=self.ttl_seconds,
        )

    async def verify(self, credential: Optional[str]) -> str:
        if not credential:
            raise UnauthenticatedError()
        try:
            payload = jwt.decode(
                credential,
                self._secret,
                algorithms=[self.algorithm],
                options={"require": ["sub", "iat", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError()
        except jwt.InvalidTokenError:
            raise InvalidTokenError()

        user_id = payload.get("sub")
        if not isinstance(user_id, str) or not user_id:
            raise InvalidTokenError()
        return user_id

    async def revoke(self, credential: Optional[str]) -> None:
        # Nothing stored; the token lapses at exp.
        return None


class ServerSessionStrategy(SessionStrategy):
    """Opaque random session ids backed by SessionStore records."""

    name = StrategyName.SESSION

    def __init__(self, store: SessionStore, ttl_seconds: int, clock: Clock = utc_now):
        super().__init__(ttl_seconds, clock)
        self.store = store

    async def issue(self, user_id: str) -> IssuedCredential:
        now = self.clock()
        record = SessionRecord(
            session_id=secrets.token_urlsafe(32),
            user_id=user_id,
            created_at=now,
            expires_at=now + timedelta(seconds=self.ttl_seconds),
        )
        await self.store.create(record)
        return IssuedCredential(
            strategy=self.name,
            value=record.session_id,
            user_id=user_id,
            expires_at=record.expires_at,
            max_age=self.ttl_seconds,
        )

    async def verify(self, credential: Optional[str]) -> str:
        if not credential:
            raise UnauthenticatedError()

        record = await self.store.get(credential)
        if record is None:
            raise SessionNotFoundError()

        # Expiry is never extended here; sessions do not slide.
        if record.is_expired(self.clock()):
            await self.store.delete(credential)
            raise SessionExpiredError()

        return record.user_id

    async def revoke(self, credential: Optional[str]) -> None:
        if credential:
            await self.store.delete(credential)


def build_strategy(config, session_store: SessionStore, clock: Clock = utc_now) -> SessionStrategy:
    """
    Pick the strategy named by config.auth_strategy.

    Args:
        config: TrackerConfig
        session_store: Store used by the session strategy
        clock: Time source, overridable in tests

    Returns:
        The configured SessionStrategy
    """
    if config.auth_strategy == StrategyName.SESSION.value:
        strategy = ServerSessionStrategy(session_store, config.session_ttl_seconds, clock=clock)
    else:
        strategy = TokenStrategy(
            config.jwt_secret,
            config.token_ttl_seconds,
            algorithm=config.jwt_algorithm,
            clock=clock,
        )
    logger.info("Session strategy selected", strategy=strategy.name.value, ttl_seconds=strategy.ttl_seconds)
    return strategy
