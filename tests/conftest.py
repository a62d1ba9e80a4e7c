"""
Pytest configuration and shared fixtures.
"""

import pytest
from fastapi.testclient import TestClient

from accounts.database import SessionStore, UserStore
from accounts.passwords import PasswordHasher
from api.main import create_app
from tests.fakes import FakeCollection, FrozenClock, make_config, make_context, run_sync


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def token_config():
    return make_config(auth_strategy="token")


@pytest.fixture
def session_config():
    return make_config(auth_strategy="session")


@pytest.fixture
def token_context(token_config):
    return make_context(token_config)


@pytest.fixture
def session_context(session_config, clock):
    return make_context(session_config, clock=clock)


@pytest.fixture
def token_client(token_context):
    """Test client for a token-strategy deployment."""
    return TestClient(create_app(context=token_context))


@pytest.fixture
def session_client(session_context):
    """Test client for a session-strategy deployment."""
    return TestClient(create_app(context=session_context))


@pytest.fixture
def hasher():
    return PasswordHasher(rounds=4)


@pytest.fixture
def user_store():
    return UserStore(FakeCollection("users"))


@pytest.fixture
def indexed_user_store(user_store):
    run_sync(user_store.ensure_indexes())
    return user_store


@pytest.fixture
def session_store():
    return SessionStore(FakeCollection("sessions"))


@pytest.fixture
def alice():
    return {"username": "alice", "email": "alice@example.com", "password": "secret1"}


@pytest.fixture
def bob():
    return {"username": "bob", "email": "bob@example.com", "password": "hunter22"}


@pytest.fixture
def sample_book():
    return {
        "title": "Dune",
        "authors": ["Frank Herbert"],
        "description": "Desert planet politics.",
        "rating": 4.5,
        "pageCount": 412,
        "thumbnail": "http://books.google.com/dune.jpg",
        "infoLink": "http://books.google.com/dune",
    }
