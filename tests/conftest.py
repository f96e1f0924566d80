"""
Pytest configuration and fixtures

API tests run against an in-memory SQLite database that is created fresh
for every test, so nothing leaks between tests.
"""
import pytest
import sys
import os
from datetime import datetime, timedelta
from uuid import uuid4

# Add the project root to the path so we can import services/models directly
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from core.database import Base, get_db
from models import CheckIn, UserSettings

# Fixed reference instant: Wednesday 2024-05-15 12:00 UTC
NOW = datetime(2024, 5, 15, 12, 0, 0)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_check_in():
    """Factory for unsaved check-ins; `days_ago` is relative to NOW."""
    def _make(days_ago=0, hours=0, weight=None, **fields):
        date = fields.pop("date", None) or NOW - timedelta(days=days_ago, hours=hours)
        return CheckIn(id=uuid4(), date=date, weight=weight, **fields)
    return _make


@pytest.fixture
def user_settings():
    return UserSettings()


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    TestingSession = sessionmaker(bind=db_engine, autoflush=False, expire_on_commit=False)
    session = TestingSession()
    yield session
    session.close()


@pytest.fixture
def client(db_engine):
    """TestClient with get_db bound to the per-test database."""
    from fastapi.testclient import TestClient
    from main import app

    TestingSession = sessionmaker(bind=db_engine, autoflush=False, expire_on_commit=False)

    def _get_test_db():
        db = TestingSession()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_test_db
    yield TestClient(app)
    app.dependency_overrides.clear()
