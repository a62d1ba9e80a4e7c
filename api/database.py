"""
Database service layer for saved books.
Every query is scoped to the owning user's id.
"""

import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import structlog
from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo.errors import DuplicateKeyError

from api.models import BookCreate, BookResponse

logger = structlog.get_logger(__name__)


class DuplicateBookError(Exception):
    """The user already saved a book with this title and primary author."""


class InvalidBookIdError(ValueError):
    """Book id is not a valid ObjectId."""


class BookService:
    """Book CRUD for the caller's personal list."""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def ensure_indexes(self) -> None:
        """
        Create indexes for per-user listing and deduplication.
        """
        try:
            # One record per user + title + primary author
            await self.collection.create_index(
                [("user", 1), ("title", 1), ("authors.0", 1)], unique=True
            )
            await self.collection.create_index([("user", 1), ("created_at", -1)])
            logger.info("Book indexes ready", collection=self.collection.name)
        except Exception as e:
            logger.error("Failed to create book indexes", error=str(e))
            raise

    @staticmethod
    def _to_response(doc: Dict[str, Any]) -> BookResponse:
        doc = dict(doc)
        doc["id"] = str(doc.pop("_id"))
        return BookResponse(**doc)

    async def add_book(self, user_id: str, book: BookCreate) -> BookResponse:
        """
        Save a book for a user.

        Raises:
            DuplicateBookError: same title and primary author already saved
        """
        now = datetime.now(timezone.utc)
        doc = book.dict()
        doc.update({"user": user_id, "created_at": now, "updated_at": now})
        try:
            result = await self.collection.insert_one(doc)
        except DuplicateKeyError:
            logger.info("Book already saved", user_id=user_id, title=book.title)
            raise DuplicateBookError()
        doc["_id"] = result.inserted_id
        logger.debug("Book saved", user_id=user_id, book_id=str(result.inserted_id))
        return self._to_response(doc)

    async def list_books(self, user_id: str, author: Optional[str] = None) -> List[BookResponse]:
        """
        List a user's books, newest first.

        Args:
            user_id: Owner
            author: Optional case-insensitive substring of the primary author
        """
        filter_query: Dict[str, Any] = {"user": user_id}
        if author:
            filter_query["authors.0"] = {"$regex": re.escape(author), "$options": "i"}

        cursor = self.collection.find(filter_query).sort("created_at", -1)
        docs = await cursor.to_list(length=None)
        return [self._to_response(doc) for doc in docs]

    async def delete_book(self, user_id: str, book_id: str) -> bool:
        """
        Delete a book the user owns.

        Returns:
            True if deleted, False if missing or owned by someone else

        Raises:
            InvalidBookIdError: book_id is not a valid ObjectId
        """
        try:
            object_id = ObjectId(book_id)
        except (InvalidId, TypeError):
            raise InvalidBookIdError(book_id)

        deleted = await self.collection.find_one_and_delete({"_id": object_id, "user": user_id})
        if deleted is None:
            return False
        logger.debug("Book deleted", user_id=user_id, book_id=book_id)
        return True

    async def health_check(self) -> Dict:
        """
        Perform database health check.

        Returns:
            Dictionary with health status
        """
        try:
            await self.collection.database.command("ping")
            return {"status": "healthy"}
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {"status": "unhealthy", "error": str(e)}
