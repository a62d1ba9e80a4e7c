"""
Application context: every long-lived collaborator, built once at startup.
"""

from dataclasses import dataclass
from typing import Any, Optional

import structlog
from motor.motor_asyncio import AsyncIOMotorClient

from accounts.database import SessionStore, UserStore
from accounts.passwords import PasswordHasher
from accounts.service import Authenticator
from accounts.strategies import build_strategy
from api.database import BookService
from catalog.google_books import GoogleBooksClient
from utilities.config import TrackerConfig
from utilities.logger import AuthEventLogger

logger = structlog.get_logger(__name__)


@dataclass
class AppContext:
    """
    Owned by the process entry point and handed to the FastAPI app.

    Route handlers reach it through request.app.state.context.
    """
    config: TrackerConfig
    authenticator: Authenticator
    books: BookService
    catalog: GoogleBooksClient
    client: Optional[Any] = None

    @classmethod
    async def open(cls, config: TrackerConfig) -> "AppContext":
        """
        Connect to MongoDB, prepare indexes and wire the services.

        Raises:
            Exception: if the database is unreachable; startup aborts
        """
        client = AsyncIOMotorClient(config.mongodb_url, tz_aware=True)
        try:
            database = client[config.mongodb_database]
            await database.command("ping")
            logger.info("Database connection established", database=config.mongodb_database)

            users = UserStore(database[config.users_collection])
            sessions = SessionStore(database[config.sessions_collection])
            books = BookService(database[config.books_collection])
            await users.ensure_indexes()
            await sessions.ensure_indexes()
            await books.ensure_indexes()
        except Exception as e:
            logger.error("Failed to connect to database", error=str(e))
            client.close()
            raise

        authenticator = Authenticator(
            users=users,
            strategy=build_strategy(config, sessions),
            hasher=PasswordHasher(rounds=config.bcrypt_rounds),
            events=AuthEventLogger("accounts").bind_context(auth_strategy=config.auth_strategy),
        )
        catalog = GoogleBooksClient(
            base_url=config.google_books_url,
            api_key=config.google_books_api_key,
            max_results=config.search_max_results,
            timeout=config.request_timeout,
        )
        return cls(
            config=config,
            authenticator=authenticator,
            books=books,
            catalog=catalog,
            client=client,
        )

    async def close(self) -> None:
        if self.client is not None:
            self.client.close()
            logger.info("Disconnected from MongoDB")
