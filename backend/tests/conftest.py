import os
import tempfile
from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

# Set test environment variables before the app reads its settings
_db_dir = tempfile.mkdtemp(prefix="clerk_sync_tests_")
TEST_SECRET = "whsec_Y2xlcmstc3luYy10ZXN0LXNlY3JldC1rZXk="
os.environ.update(
    {
        "DATABASE_URL": f"sqlite:///{Path(_db_dir) / 'test.db'}",
        "CLERK_WEBHOOK_SECRET": TEST_SECRET,
        "LOG_LEVEL": "DEBUG",
    }
)

from clerk_sync.core.config import get_settings

get_settings.cache_clear()

# Import app modules after setting environment variables
from clerk_sync.db.models import Base
from clerk_sync.db.session import SessionLocal, engine
from clerk_sync.main import app as fastapi_app


@pytest.fixture(autouse=True)
def setup_database():
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture
def db(setup_database) -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.close()


@pytest.fixture
def secret() -> str:
    return TEST_SECRET


@pytest.fixture
def app():
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client
