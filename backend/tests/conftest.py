"""Test fixtures for the Taskforge backend."""

import os
from collections.abc import Generator
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("JWT_SECRET_KEY", "taskforge-dev-jwt-secret-do-not-use-in-production")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("VERIFY_DATABASE_ON_STARTUP", "false")
os.environ.setdefault("RUN_MIGRATIONS", "false")

from taskforge.config import settings
from taskforge.database import enable_sqlite_savepoints, get_db, get_engine
from taskforge.errors import DependencyError
from taskforge.main import app
from taskforge.models import Base
from taskforge.services.blob_store import BlobStore, StoredBlob, get_blob_store

ALICE = "auth0|alice"
BOB = "auth0|bob"


# ============================================================================
# Auth Fixtures
# ============================================================================


def create_test_token(user_id: str | None = None) -> str:
    payload = {
        "sub": user_id or f"auth0|{uuid4().hex}",
        "exp": (datetime.now(timezone.utc) + timedelta(hours=1)).timestamp(),
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def bearer(user_id: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_test_token(user_id)}"}


@pytest.fixture
def auth_headers():
    return bearer(ALICE)


@pytest.fixture
def other_headers():
    return bearer(BOB)


@pytest.fixture
def authed_client(client, auth_headers):
    client.headers.update(auth_headers)
    return client


# ============================================================================
# Blob Store Fixtures
# ============================================================================


class FakeBlobStore(BlobStore):
    """In-memory blob store recording every upload and delete."""

    def __init__(self):
        super().__init__(client=None, bucket="test-bucket", public_base_url="https://blobs.test")
        self.objects: dict[str, bytes] = {}
        self.uploads: list[str] = []
        self.deletes: list[str] = []
        self.fail_uploads_after: int | None = None

    async def upload(self, content: bytes, content_type: str) -> StoredBlob:
        if self.fail_uploads_after is not None and len(self.uploads) >= self.fail_uploads_after:
            raise DependencyError("blob store", "upload failed: simulated outage")
        key = str(uuid4())
        self.objects[key] = content
        self.uploads.append(key)
        return StoredBlob(key=key, url=self.url_for(key))

    async def delete(self, key: str) -> None:
        self.objects.pop(key, None)
        self.deletes.append(key)


@pytest.fixture
def blob_store() -> FakeBlobStore:
    return FakeBlobStore()


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture(scope="function")
def engine():
    """Create a SQLite in-memory engine for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)
    Base.metadata.create_all(engine)

    yield engine

    engine.dispose()


@pytest.fixture(scope="function")
def session(engine) -> Generator[Session, None, None]:
    """Create a database session for testing."""
    TestingSessionLocal = sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(session: Session, engine, blob_store: FakeBlobStore) -> Generator[TestClient, None, None]:
    """Create a test client with overridden session, engine and blob store dependencies."""

    def override_get_db():
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_engine] = lambda: engine
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


def count(session: Session, model, *criteria) -> int:
    return session.scalar(select(func.count()).select_from(model).where(*criteria)) or 0


# ============================================================================
# Request Helpers
# ============================================================================


def tomorrow() -> str:
    return (datetime.now(timezone.utc) + timedelta(days=1)).isoformat()


def yesterday() -> str:
    return (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()


def image_file(name: str, content: bytes, content_type: str = "image/jpeg"):
    return ("images", (name, content, content_type))


def task_data(**overrides) -> dict[str, str]:
    data = {"name": "Buy milk", "description": "2%", "endDate": tomorrow(), "priority": "high"}
    data.update(overrides)
    return {k: v for k, v in data.items() if v is not None}
