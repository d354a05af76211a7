"""Pytest fixtures for the filing desk backend.

Provides reusable test fixtures for:
- In-memory SQLite database, fresh schema per test
- Users for every role (CUSTOMER, TAX_ADVISOR, OPERATIONS, SUPER_ADMIN)
- An in-memory upload store, a recording notification sink and outbox
- A TestClient with JWT headers per role

Usage:
    def test_customer_endpoint(client, customer_headers):
        response = client.get("/api/v1/filings", headers=customer_headers)
        assert response.status_code == 200
"""

import os

# Set environment variables BEFORE any imports to ensure they take effect
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DISPATCH_NOTIFICATIONS_ON_COMMIT"] = "false"
os.environ["REQUIRE_COMPLETE_CHECKLIST"] = "false"
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-key-256-bits-minimum-length-required-for-security")
os.environ.setdefault("LOG_JSON", "false")

from typing import Dict, Generator, List

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from filingdesk.auth.jwt import create_access_token
from filingdesk.database import enable_sqlite_savepoints, get_db
from filingdesk.dependencies import get_upload_store
from filingdesk.domain.documents.ports import StoredObject, UploadStoreError, UploadStorePort
from filingdesk.models import Base, User
from filingdesk.notifications.outbox import OutboxWriter
from filingdesk.notifications.ports import NotificationSink


test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
enable_sqlite_savepoints(test_engine)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


class FakeUploadStore(UploadStorePort):
    """Dict-backed upload store."""

    def __init__(self):
        self.objects: Dict[str, bytes] = {}
        self.fail_puts = False

    def put(self, key, data, mime_type):
        if self.fail_puts:
            raise UploadStoreError("storage unavailable")
        self.objects[key] = data
        return StoredObject(key=key, url=f"memory://{key}")

    def delete(self, key):
        return self.objects.pop(key, None) is not None

    def url_for(self, key, expires_in_seconds=900):
        if key not in self.objects:
            raise FileNotFoundError(key)
        return f"https://files.test/{key}?expires={expires_in_seconds}"


class RecordingSink(NotificationSink):
    """Keeps notifications in memory; can be told to fail."""

    def __init__(self, fail: bool = False):
        self.sent: List[dict] = []
        self.fail = fail

    def notify(self, user_id, type, title, body, link=None):
        if self.fail:
            raise RuntimeError("sink down")
        self.sent.append({"user_id": str(user_id), "type": type, "title": title, "body": body, "link": link})


class RecordingOutbox(OutboxWriter):
    """OutboxWriter that also keeps the published events in memory."""

    def __init__(self):
        self.events = []

    def publish(self, db, event):
        row = super().publish(db, event)
        self.events.append(event)
        return row

    @property
    def last_event(self):
        return self.events[-1] if self.events else None


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Fresh schema and session for each test."""
    Base.metadata.create_all(bind=test_engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


def _make_user(db: Session, email: str, role: str, status: str = "ACTIVE") -> User:
    user = User(email=email, full_name=email.split("@")[0].title(), role=role, status=status)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def customer(db_session: Session) -> User:
    return _make_user(db_session, "rahim@example.com", "CUSTOMER")


@pytest.fixture
def other_customer(db_session: Session) -> User:
    return _make_user(db_session, "karim@example.com", "CUSTOMER")


@pytest.fixture
def advisor(db_session: Session) -> User:
    return _make_user(db_session, "advisor@example.com", "TAX_ADVISOR")


@pytest.fixture
def inactive_advisor(db_session: Session) -> User:
    return _make_user(db_session, "former@example.com", "TAX_ADVISOR", status="DISABLED")


@pytest.fixture
def ops_user(db_session: Session) -> User:
    return _make_user(db_session, "ops@example.com", "OPERATIONS")


@pytest.fixture
def admin_user(db_session: Session) -> User:
    return _make_user(db_session, "admin@example.com", "SUPER_ADMIN")


@pytest.fixture
def upload_store() -> FakeUploadStore:
    return FakeUploadStore()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def outbox() -> RecordingOutbox:
    return RecordingOutbox()


def auth_headers(user: User) -> Dict[str, str]:
    token = create_access_token(user.id, user.role, user.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def customer_headers(customer: User) -> Dict[str, str]:
    return auth_headers(customer)


@pytest.fixture
def other_customer_headers(other_customer: User) -> Dict[str, str]:
    return auth_headers(other_customer)


@pytest.fixture
def advisor_headers(advisor: User) -> Dict[str, str]:
    return auth_headers(advisor)


@pytest.fixture
def ops_headers(ops_user: User) -> Dict[str, str]:
    return auth_headers(ops_user)


@pytest.fixture
def client(db_session: Session, upload_store: FakeUploadStore) -> Generator[TestClient, None, None]:
    """TestClient sharing the test session and the in-memory upload store."""
    from filingdesk.main import app

    def override_get_db():
        try:
            yield db_session
        except Exception:
            db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_upload_store] = lambda: upload_store

    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client

    app.dependency_overrides.clear()
