"""
In-memory test doubles and builders shared by the test suite.
"""

import copy
import re
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from accounts.database import SessionStore, UserStore
from accounts.passwords import PasswordHasher
from accounts.service import Authenticator
from accounts.strategies import build_strategy
from api.context import AppContext
from api.database import BookService
from catalog.google_books import GoogleBooksClient
from utilities.config import TrackerConfig
from utilities.logger import AuthEventLogger


TEST_SECRET = "test-secret-0123456789abcdef-0123456789"

_MISSING = object()


def run_sync(coro):
    """Drive a coroutine that never suspends (only valid against the fakes below)."""
    try:
        coro.send(None)
    except StopIteration as stop:
        return stop.value
    raise RuntimeError("coroutine suspended; run it on an event loop instead")


def _get_path(doc, path):
    value = doc
    for part in path.split("."):
        if isinstance(value, list) and part.isdigit():
            index = int(part)
            value = value[index] if index < len(value) else _MISSING
        elif isinstance(value, dict):
            value = value.get(part, _MISSING)
        else:
            return _MISSING
        if value is _MISSING:
            return _MISSING
    return value


def _matches(doc, query):
    for path, expected in query.items():
        actual = _get_path(doc, path)
        if isinstance(expected, dict) and "$regex" in expected:
            flags = re.IGNORECASE if "i" in expected.get("$options", "") else 0
            if actual is _MISSING or not re.search(expected["$regex"], str(actual), flags):
                return False
        elif actual is _MISSING or actual != expected:
            return False
    return True


class FakeCursor:
    def __init__(self, docs):
        self.docs = docs

    def sort(self, key, direction=1):
        self.docs.sort(key=lambda d: d.get(key), reverse=direction < 0)
        return self

    async def to_list(self, length=None):
        docs = [copy.deepcopy(d) for d in self.docs]
        return docs[:length] if length else docs


class FakeDatabase:
    async def command(self, name):
        return {"ok": 1.0}


class FakeCollection:
    """
    In-memory stand-in for the handful of motor collection calls the stores use.

    Unique indexes created through create_index() are enforced on insert,
    raising pymongo's DuplicateKeyError like a real server would.
    """

    def __init__(self, name):
        self.name = name
        self.docs = {}
        self.unique_indexes = []
        self.indexes = []
        self.database = FakeDatabase()

    async def create_index(self, keys, unique=False, **kwargs):
        if isinstance(keys, str):
            keys = [(keys, 1)]
        fields = [field for field, _ in keys]
        self.indexes.append({"fields": fields, "unique": unique, **kwargs})
        if unique:
            self.unique_indexes.append(fields)
        return "_".join(fields)

    async def insert_one(self, doc):
        doc.setdefault("_id", ObjectId())
        if doc["_id"] in self.docs:
            raise DuplicateKeyError("E11000 duplicate key error (_id)")
        for fields in self.unique_indexes:
            key = [_get_path(doc, f) for f in fields]
            for existing in self.docs.values():
                if [_get_path(existing, f) for f in fields] == key:
                    raise DuplicateKeyError(f"E11000 duplicate key error {fields}")
        self.docs[doc["_id"]] = copy.deepcopy(doc)
        return SimpleNamespace(inserted_id=doc["_id"])

    async def find_one(self, query):
        for doc in self.docs.values():
            if _matches(doc, query):
                return copy.deepcopy(doc)
        return None

    def find(self, query):
        return FakeCursor([d for d in self.docs.values() if _matches(d, query)])

    async def find_one_and_delete(self, query):
        for key, doc in list(self.docs.items()):
            if _matches(doc, query):
                return self.docs.pop(key)
        return None

    async def delete_one(self, query):
        for key, doc in list(self.docs.items()):
            if _matches(doc, query):
                del self.docs[key]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)


class FrozenClock:
    """Settable time source for strategies."""

    def __init__(self, now=None):
        self.now = now or datetime.now(timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


def make_config(**overrides):
    settings = {
        "jwt_secret": TEST_SECRET,
        "bcrypt_rounds": 4,
        "log_format": "console",
        "frontend_dir": None,
        "google_books_api_key": None,
    }
    settings.update(overrides)
    return TrackerConfig(**settings)


def make_context(config, clock=None):
    """Wire a full AppContext over in-memory collections."""
    users = UserStore(FakeCollection(config.users_collection))
    sessions = SessionStore(FakeCollection(config.sessions_collection))
    books = BookService(FakeCollection(config.books_collection))
    for store in (users, sessions, books):
        run_sync(store.ensure_indexes())

    strategy = build_strategy(config, sessions, clock=clock) if clock else build_strategy(config, sessions)
    authenticator = Authenticator(
        users=users,
        strategy=strategy,
        hasher=PasswordHasher(rounds=config.bcrypt_rounds),
        events=AuthEventLogger("accounts"),
    )
    catalog = GoogleBooksClient(
        base_url=config.google_books_url,
        max_results=config.search_max_results,
        timeout=config.request_timeout,
    )
    return AppContext(config=config, authenticator=authenticator, books=books, catalog=catalog)
