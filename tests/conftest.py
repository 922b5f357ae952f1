"""
Test configuration and fixtures for the session persister.
"""
import os

# Set test environment BEFORE any persister imports
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CREATE_TABLES_ON_STARTUP"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from persister.database import init_db, session_scope
from persister.schemas.sessions import ClientSession, Reference, UserSession
from persister.services.directory import StaticDirectory
from persister.services.sessions import UserSessionPersister


@pytest.fixture(scope="function")
def test_engine():
    """In-memory SQLite engine shared across threads for the API tests."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(test_engine):
    return sessionmaker(
        bind=test_engine, autoflush=False, autocommit=False, expire_on_commit=False
    )


@pytest.fixture(scope="function")
def test_db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def realm():
    return Reference("realm-a", name="Realm A")


@pytest.fixture
def directory(realm):
    lookup = StaticDirectory()
    lookup.add_realm(realm)
    lookup.add_realm(Reference("realm-b", name="Realm B"))
    for user_id in ("user-1", "user-2"):
        lookup.add_user("realm-a", Reference(user_id))
    lookup.add_user("realm-b", Reference("user-9"))
    for client_id in ("web", "mobile", "cli"):
        lookup.add_client("realm-a", Reference(client_id))
    lookup.add_client("realm-b", Reference("web"))
    return lookup


@pytest.fixture
def persister(test_db_session, directory):
    return UserSessionPersister(test_db_session, directory)


@pytest.fixture
def make_user_session(realm):
    def _make(session_id, user_id="user-1", refresh=100, data=None, realm_ref=None):
        return UserSession(
            id=session_id,
            realm=realm_ref or realm,
            user=Reference(user_id),
            last_session_refresh=refresh,
            data=data if data is not None else f'{{"session": "{session_id}"}}',
        )

    return _make


@pytest.fixture
def make_client_session():
    def _make(client_session_id, user_session, client_id="web", timestamp=100, data=None):
        return ClientSession(
            id=client_session_id,
            client=Reference(client_id),
            user_session=user_session,
            timestamp=timestamp,
            data=data if data is not None else f'{{"client": "{client_id}"}}',
        )

    return _make


@pytest.fixture(scope="function")
def api_client(session_factory):
    """FastAPI test client whose requests run against the test engine."""
    from persister.database import get_db_session
    from persister.main import app

    def override_get_db_session():
        with session_scope(session_factory) as session:
            yield session

    app.dependency_overrides[get_db_session] = override_get_db_session
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
