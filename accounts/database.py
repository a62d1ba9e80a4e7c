"""
MongoDB stores for users and server-side sessions.
Uniqueness of emails is enforced by a unique index, not by a prior lookup.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog
from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo.errors import DuplicateKeyError

from .exceptions import DuplicateEmailError
from .models import SessionRecord, User, normalize_email

logger = structlog.get_logger(__name__)


class UserStore:
    """
    Credential store backed by a MongoDB collection.

    Documents look like {_id, username, email, password_hash, created_at}.
    """

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def ensure_indexes(self) -> None:
        """Create the unique email index that closes the registration race."""
        try:
            await self.collection.create_index("email", unique=True)
            logger.info("User indexes ready", collection=self.collection.name)
        except Exception as e:
            logger.error("Failed to create user indexes", error=str(e))
            raise

    @staticmethod
    def _to_user(doc: Dict[str, Any]) -> User:
        return User(
            id=str(doc["_id"]),
            username=doc["username"],
            email=doc["email"],
            password_hash=doc["password_hash"],
            created_at=doc.get("created_at"),
        )

    async def find_by_email(self, email: str) -> Optional[User]:
        """
        Look up a user by email.

        Args:
            email: Email in any case/whitespace form; normalized here too

        Returns:
            User if found, None otherwise
        """
        doc = await self.collection.find_one({"email": normalize_email(email)})
        return self._to_user(doc) if doc else None

    async def find_by_id(self, user_id: str) -> Optional[User]:
        """Look up a user by id. Malformed ids are simply not found."""
        try:
            object_id = ObjectId(user_id)
        except (InvalidId, TypeError):
            return None
        doc = await self.collection.find_one({"_id": object_id})
        return self._to_user(doc) if doc else None

    async def create(self, username: str, email: str, password_hash: str) -> User:
        """
        Insert a new user.

        Raises:
            DuplicateEmailError: if the unique email index rejects the insert
        """
        doc = {
            "username": username,
            "email": normalize_email(email),
            "password_hash": password_hash,
            "created_at": datetime.now(timezone.utc),
        }
        try:
            result = await self.collection.insert_one(doc)
        except DuplicateKeyError:
            raise DuplicateEmailError()
        doc["_id"] = result.inserted_id
        logger.debug("Inserted user", user_id=str(result.inserted_id))
        return self._to_user(doc)


class SessionStore:
    """
    Server-side session records keyed by session id.

    A TTL index on expires_at lets MongoDB sweep old records in the
    background; verification still checks expiry itself.
    """

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def ensure_indexes(self) -> None:
        try:
            await self.collection.create_index("expires_at", expireAfterSeconds=0)
            await self.collection.create_index("user_id")
            logger.info("Session indexes ready", collection=self.collection.name)
        except Exception as e:
            logger.error("Failed to create session indexes", error=str(e))
            raise

    async def create(self, record: SessionRecord) -> None:
        await self.collection.insert_one({
            "_id": record.session_id,
            "user_id": record.user_id,
            "created_at": record.created_at,
            "expires_at": record.expires_at,
        })

    async def get(self, session_id: str) -> Optional[SessionRecord]:
        doc = await self.collection.find_one({"_id": session_id})
        if not doc:
            return None
        return SessionRecord(
            session_id=doc["_id"],
            user_id=doc["user_id"],
            created_at=_as_utc(doc["created_at"]),
            expires_at=_as_utc(doc["expires_at"]),
        )

    async def delete(self, session_id: str) -> bool:
        """Delete a session. Returns False when there was nothing to delete."""
        result = await self.collection.delete_one({"_id": session_id})
        return result.deleted_count > 0


def _as_utc(value: datetime) -> datetime:
    """MongoDB hands back naive UTC datetimes unless the client is tz-aware."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
