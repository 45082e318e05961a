# backend/tests/conftest.py
"""
Pytest configuration for the travelgraph test suite.

Every test gets a fresh in-memory SQLite database. The schema comes from the
model metadata; ``insert_ignore`` falls back to SQLite's ON CONFLICT DO
NOTHING, so the concurrency-safe write paths run unchanged.
"""

import os

# CRITICAL: Point settings at a throwaway database BEFORE any app imports!
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["is_testing"] = "true"
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import timedelta
from typing import Callable, Dict, Iterator, List, Optional

from fastapi.testclient import TestClient
import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from travelgraph.core.timezone_utils import utc_now
from travelgraph.core.ulid_helper import generate_ulid
from travelgraph.database import Base, enable_sqlite_foreign_keys, get_db
from travelgraph.dependencies.auth import USER_ID_HEADER
from travelgraph.main import app
from travelgraph.models.trip import Trip
from travelgraph.models.user import User

test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
event.listen(test_engine, "connect", enable_sqlite_foreign_keys)

TestSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, bind=test_engine, expire_on_commit=False
)


@pytest.fixture(scope="function")
def db() -> Iterator[Session]:
    """
    Create a new database session for each test.

    Tables are created before and dropped after, so no test sees another
    test's rows.
    """
    Base.metadata.create_all(bind=test_engine)
    session = TestSessionLocal()

    yield session

    session.rollback()
    session.close()
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def client(db: Session) -> Iterator[TestClient]:
    """Create a test client bound to the test database."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    test_client = TestClient(app)

    yield test_client

    app.dependency_overrides.clear()
    test_client.close()


@pytest.fixture
def make_user(db: Session) -> Callable[..., User]:
    """Factory for users; onboarded and active unless told otherwise."""
    counter = {"n": 0}

    def _make_user(
        username: Optional[str] = None,
        onboarding_completed: bool = True,
        deactivated: bool = False,
        travel_preferences: Optional[List[str]] = None,
        budget_preference: Optional[str] = None,
        **extra,
    ) -> User:
        counter["n"] += 1
        user = User(
            id=generate_ulid(),
            username=username or f"traveler{counter['n']}",
            first_name="Test",
            last_name=f"User{counter['n']}",
            onboarding_completed=onboarding_completed,
            deactivated=deactivated,
            travel_preferences=travel_preferences or [],
            budget_preference=budget_preference,
            **extra,
        )
        db.add(user)
        db.commit()
        return user

    return _make_user


@pytest.fixture
def make_trip(db: Session) -> Callable[..., Trip]:
    """Factory for trips; the roster is left empty so tests seat the owner themselves."""

    def _make_trip(
        owner: User,
        max_group_size: Optional[int] = None,
        title: str = "Patagonia Trek",
    ) -> Trip:
        trip = Trip(
            id=generate_ulid(),
            owner_id=owner.id,
            title=title,
            max_group_size=max_group_size,
            current_group_size=0,
        )
        db.add(trip)
        db.commit()
        return trip

    return _make_trip


@pytest.fixture
def alice(make_user) -> User:
    return make_user(username="alice", travel_preferences=["hiking", "food"], budget_preference="mid")


@pytest.fixture
def bob(make_user) -> User:
    return make_user(username="bob", travel_preferences=["hiking", "museums"], budget_preference="mid")


@pytest.fixture
def carol(make_user) -> User:
    return make_user(username="carol")


def auth_headers(user: User) -> Dict[str, str]:
    """Headers the auth gateway would forward for ``user``."""
    return {USER_ID_HEADER: user.id}


@pytest.fixture
def headers() -> Callable[[User], Dict[str, str]]:
    return auth_headers


@pytest.fixture
def age_rows(db: Session) -> Callable[..., None]:
    """Push timestamp columns into the past for rows matching ``criteria``."""

    def _age(model, column, delta: timedelta, *criteria) -> None:
        db.query(model).filter(*criteria).update(
            {column: utc_now() - delta}, synchronize_session=False
        )
        db.commit()
        db.expire_all()

    return _age
