"""
Shared test fixtures.

Sets up an isolated SQLite database so tests never touch
the real audit store. Tables are created before each test
and dropped after it, so no test data persists.
"""

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from cylinder_audit.main import app
from cylinder_audit.models import AuditLog, User
from cylinder_audit.models.base import Base, get_db
from cylinder_audit.models.enums import LogType, LogLevel
from cylinder_audit.services.audit_logger import AuditLogger
from cylinder_audit.services.audit_writer import AuditWriter
from cylinder_audit.services.context import ContextEnricher, SqlUserDirectory


# SQLite file database: the writer and dispatcher open their own
# sessions (and threads), so an in-memory database would not be shared.
TEST_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
)

TestSessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop them after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    """Provide a database session for direct service testing."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def session_factory():
    """The factory the writer opens its own sessions from."""
    return TestSessionLocal


@pytest.fixture
def writer(session_factory):
    enricher = ContextEnricher(user_directory=SqlUserDirectory(session_factory))
    return AuditWriter(session_factory, enricher)


@pytest.fixture
def audit_logger(writer):
    """An AuditLogger that writes inline, so ids come back immediately."""
    return AuditLogger(writer)


@pytest.fixture
def client(db_session):
    """
    Provide a test client with the test database.

    We override the get_db dependency so the FastAPI app
    uses our test session instead of the real database.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


# --- Data helpers ---

BASE_TIME = datetime(2026, 1, 1, 12, 0, 0)


def make_user(db_session, user_id="u-1", **fields):
    """Add a row to the users directory and commit it."""
    defaults = {
        "email": "jane@example.com",
        "username": "jane",
        "first_name": "Jane",
        "last_name": "Smith",
        "role": "Admin",
    }
    defaults.update(fields)
    user = User(id=user_id, **defaults)
    db_session.add(user)
    db_session.commit()
    return user


def make_log(db_session, minutes=0, commit=True, **fields):
    """
    Store an audit row directly, with a controlled timestamp.

    Only used to seed the read path; application code always goes
    through AuditLogger.
    """
    defaults = {
        "log_type": LogType.SYSTEM,
        "level": LogLevel.INFO,
        "action": "SYSTEM_EVENT",
        "message": "seeded event",
        "created_at": BASE_TIME + timedelta(minutes=minutes),
    }
    defaults.update(fields)
    log = AuditLog(**defaults)
    db_session.add(log)
    if commit:
        db_session.commit()
    return log


@pytest.fixture
def user_factory(db_session):
    def factory(user_id="u-1", **fields):
        return make_user(db_session, user_id, **fields)
    return factory


@pytest.fixture
def log_factory(db_session):
    def factory(minutes=0, **fields):
        return make_log(db_session, minutes, **fields)
    return factory
