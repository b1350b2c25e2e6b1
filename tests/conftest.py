"""Pytest configuration and shared fixtures.

This module provides fixtures and configuration used across all tests.
"""

import os
from typing import Generator

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Set required environment variables for tests BEFORE importing app modules
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.pop("REDIS_URL", None)
os.environ.pop("SLACK_WEBHOOK_URL", None)

from pollstats.config import get_settings
from pollstats.dependencies import ServiceContainer
from pollstats.models.database import Base, get_db
from pollstats.services.analytics import AnalyticsReader
from pollstats.services.cache import AggregateCache
from pollstats.services.dispatcher import NotificationDispatcher
from pollstats.services.metrics import PollMetrics
from tests.fakes import RecordingChatNotifier, RecordingEmailNotifier


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine with SQLite in-memory database.

    Yields:
        Engine: SQLAlchemy engine for testing

    Note:
        A StaticPool shares the single in-memory connection with the
        threadpool FastAPI runs sync endpoints in.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,  # Set to True for SQL debugging
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)

    yield engine

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a test database session.

    Yields:
        Session: SQLAlchemy session for testing
    """
    TestSessionLocal = sessionmaker(
        bind=db_engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )

    session = TestSessionLocal()

    yield session

    session.rollback()
    session.close()


@pytest.fixture
def redis_server() -> fakeredis.FakeServer:
    """In-process Redis server; set ``connected = False`` to simulate an outage."""
    return fakeredis.FakeServer()


@pytest.fixture
def redis_client(redis_server) -> fakeredis.FakeRedis:
    """Redis client bound to the fake server."""
    return fakeredis.FakeRedis(server=redis_server, decode_responses=True)


@pytest.fixture
def cache(redis_client) -> AggregateCache:
    """Aggregate cache backed by fakeredis."""
    return AggregateCache(redis_client)


@pytest.fixture
def metrics() -> PollMetrics:
    """Metrics on an isolated registry."""
    return PollMetrics(default_collectors=False)


@pytest.fixture
def chat_notifier() -> RecordingChatNotifier:
    return RecordingChatNotifier()


@pytest.fixture
def email_notifier() -> RecordingEmailNotifier:
    return RecordingEmailNotifier()


@pytest.fixture
def dispatcher(chat_notifier, email_notifier, cache) -> NotificationDispatcher:
    """Dispatcher wired to recording notifiers and the fake cache."""
    return NotificationDispatcher(chat=chat_notifier, email=email_notifier, cache=cache)


@pytest.fixture
def services(metrics, cache, chat_notifier, email_notifier, dispatcher) -> ServiceContainer:
    """Service container assembled from test doubles."""
    return ServiceContainer(
        settings=get_settings(),
        metrics=metrics,
        cache=cache,
        chat=chat_notifier,
        email=email_notifier,
        dispatcher=dispatcher,
        analytics=AnalyticsReader(cache, ttl=300, window_days=30),
    )


@pytest.fixture
def client(services, db_session) -> Generator[TestClient, None, None]:
    """FastAPI test client using the test database and service doubles.

    The lifespan is not run; services are attached directly.
    """
    from pollstats.main import app

    def override_get_db():
        yield db_session

    app.state.services = services
    app.dependency_overrides[get_db] = override_get_db

    yield TestClient(app)

    app.dependency_overrides.clear()
    app.state.services = None


@pytest.fixture
def sample_submission() -> dict:
    """Submission payload as the browser sends it."""
    return {
        "sessionId": "s1",
        "interest": "very-interested",
        "use-cases": ["travel", "business"],
        "frequency": "daily",
        "pain-point": "language-barrier",
        "price_willing": 25,
        "features": ["voice", "offline"],
        "feedback": "Looks great",
        "notify": "yes",
        "email": "a@b.com",
        "timeToComplete": 45300,
        "interactionCount": 17,
        "userAgent": "Mozilla/5.0",
        "viewport": {"width": 1280, "height": 720},
        "referrer": "https://example.com",
    }


@pytest.fixture
def sample_interaction() -> dict:
    """Interaction payload as the browser sends it."""
    return {
        "sessionId": "s1",
        "timestamp": 1700000000000,
        "type": "click",
        "element": "interest-very",
        "value": "very-interested",
        "question": "interest",
        "timeOnPage": 3200,
        "userAgent": "Mozilla/5.0",
        "viewport": {"width": 1280, "height": 720},
    }
