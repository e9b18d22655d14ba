"""Pytest configuration and shared fixtures."""

import os

# Settings are read at import time: point the app at in-memory SQLite before importing it
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENV"] = "test"
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-prepbank-tests-0123456789")

from collections.abc import Generator  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

import prepbank.models  # noqa: E402,F401
from prepbank.core.dependencies import get_current_user  # noqa: E402
from prepbank.db.base import Base  # noqa: E402
from prepbank.db.engine import engine  # noqa: E402
from prepbank.db.session import SessionLocal, get_db  # noqa: E402
from prepbank.main import app  # noqa: E402
from prepbank.models.user import User  # noqa: E402
from tests.helpers.seed import (  # noqa: E402
    create_test_admin,
    create_test_student,
    create_test_tutor,
    seed_syllabus,
)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Fresh schema per test; application code commits for real."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def admin_user(db: Session) -> User:
    user = create_test_admin(db)
    db.commit()
    return user


@pytest.fixture
def tutor_user(db: Session) -> User:
    user = create_test_tutor(db)
    db.commit()
    return user


@pytest.fixture
def student_user(db: Session) -> User:
    user = create_test_student(db)
    db.commit()
    return user


@pytest.fixture
def syllabus(db: Session) -> dict:
    """Mathematics (Algebra, Geometry) and English Language (Comprehension)."""
    data = seed_syllabus(db)
    db.commit()
    return data


@pytest.fixture
def client(db: Session) -> Generator[TestClient, None, None]:
    """Client sharing the test session; authentication is real (bearer tokens)."""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def admin_client(client: TestClient, admin_user: User) -> TestClient:
    """Client authenticated as an admin via dependency override."""
    app.dependency_overrides[get_current_user] = lambda: admin_user
    return client
