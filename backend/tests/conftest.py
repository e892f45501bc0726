# backend/tests/conftest.py
"""
Pytest configuration for the TutorHub backend.

Every test gets a fresh in-memory SQLite database so service code can
commit and roll back for real without leaking rows between tests.
"""

import os
import sys

# Set testing mode BEFORE any tutorhub imports; the engine is built at import time
os.environ["is_testing"] = "true"
os.environ["database_url"] = "sqlite+pysqlite:///:memory:"
os.environ.setdefault("CI", "true")

# Add the backend directory to Python path so imports work
backend_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, backend_dir)

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, Iterator, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from tutorhub.api.dependencies.database import get_db
from tutorhub.auth import create_access_token
from tutorhub.core.enums import RoleName
from tutorhub.database import Base
from tutorhub.main import app
from tutorhub.models import Subject, TutoringSession, TutorProfile, User

WEEKDAY_WINDOW = {"isAvailable": True, "startTime": "09:00", "endTime": "17:00"}

STANDARD_AVAILABILITY: Dict[str, Dict[str, Any]] = {
    "monday": dict(WEEKDAY_WINDOW),
    "tuesday": dict(WEEKDAY_WINDOW),
    "wednesday": dict(WEEKDAY_WINDOW),
    "thursday": dict(WEEKDAY_WINDOW),
    "friday": dict(WEEKDAY_WINDOW),
    "saturday": {"isAvailable": False},
    "sunday": {"isAvailable": False},
}


def next_weekday(weekday: int, weeks_ahead: int = 1) -> date:
    """A date on the given weekday (Monday=0) at least one week in the future."""
    today = datetime.now(timezone.utc).date()
    delta = (weekday - today.weekday()) % 7 + 7 * weeks_ahead
    return today + timedelta(days=delta)


def utc_at(day: date, hour: int, minute: int = 0) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=timezone.utc)


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db(db_engine) -> Iterator[Session]:
    """Database session for a single test."""
    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=db_engine, expire_on_commit=False
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


def _make_user(db: Session, email: str, role: RoleName, first_name: str, last_name: str) -> User:
    user = User(email=email, first_name=first_name, last_name=last_name, role=role.value)
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def test_student(db: Session) -> User:
    return _make_user(db, "student@example.com", RoleName.STUDENT, "Sam", "Student")


@pytest.fixture
def other_student(db: Session) -> User:
    return _make_user(db, "other.student@example.com", RoleName.STUDENT, "Olive", "Other")


@pytest.fixture
def test_tutor(db: Session) -> User:
    return _make_user(db, "tutor@example.com", RoleName.TUTOR, "Tara", "Tutor")


@pytest.fixture
def test_admin(db: Session) -> User:
    return _make_user(db, "admin@example.com", RoleName.ADMIN, "Ada", "Admin")


@pytest.fixture
def tutor_profile(db: Session, test_tutor: User) -> TutorProfile:
    """Weekdays 09:00-17:00 UTC at 50.00 per hour."""
    profile = TutorProfile(
        user_id=test_tutor.id,
        bio="Algebra and calculus",
        hourly_rate=Decimal("50.00"),
        availability={k: dict(v) for k, v in STANDARD_AVAILABILITY.items()},
        timezone="UTC",
    )
    db.add(profile)
    db.commit()
    return profile


@pytest.fixture
def subject(db: Session) -> Subject:
    row = Subject(id="math-algebra", name="Algebra", category="math")
    db.add(row)
    db.commit()
    return row


@pytest.fixture
def make_session(db: Session, test_student: User, tutor_profile: TutorProfile, subject: Subject):
    """Insert a session row directly, bypassing booking rules."""

    def _make(
        scheduled_at: datetime,
        duration_minutes: int = 60,
        status: str = "scheduled",
        student: Optional[User] = None,
    ) -> TutoringSession:
        session = TutoringSession(
            tutor_id=tutor_profile.id,
            student_id=(student or test_student).id,
            subject_id=subject.id,
            scheduled_at=scheduled_at,
            duration_minutes=duration_minutes,
            status=status,
            price_cents=5000,
        )
        db.add(session)
        db.commit()
        return session

    return _make


@pytest.fixture
def next_monday() -> date:
    return next_weekday(0)


@pytest.fixture
def next_saturday() -> date:
    return next_weekday(5)


@pytest.fixture
def at_utc():
    """Build an aware UTC instant on a date."""
    return utc_at


@pytest.fixture
def client(db: Session) -> Iterator[TestClient]:
    """Test client bound to the per-test database session."""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


def auth_headers_for(user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def auth_headers_student(test_student: User) -> Dict[str, str]:
    return auth_headers_for(test_student)


@pytest.fixture
def auth_headers_other_student(other_student: User) -> Dict[str, str]:
    return auth_headers_for(other_student)


@pytest.fixture
def auth_headers_tutor(test_tutor: User) -> Dict[str, str]:
    return auth_headers_for(test_tutor)


@pytest.fixture
def auth_headers_admin(test_admin: User) -> Dict[str, str]:
    return auth_headers_for(test_admin)
