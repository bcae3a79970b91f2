"""Pytest fixtures and configuration for profilehub tests."""

import os
import tempfile

# Configure before any profilehub module reads the environment.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="profilehub-uploads-"))

import pytest
from datetime import datetime
from typing import Dict, List, Optional
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from profilehub.auth.jwt import TokenIssuer
from profilehub.database.database import Base
from profilehub.database import models  # noqa: F401
from profilehub.database.user_repository import UserRepository
from profilehub.errors import DeleteError, DeliveryError, UploadError
from profilehub.models.user import UserCreate
from profilehub.pipelines.staging import PhotoStager, PhotoUpload, StagedPhoto


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class InMemoryBlobStore:
    """Blob store fake keeping objects in a dict, with switchable failures."""

    def __init__(self):
        self.objects: Dict[str, bytes] = {}
        self.upload_calls = 0
        self.delete_calls = 0
        self.fail_upload = False
        self.fail_delete = False
        self._counter = 0

    def upload(self, data: bytes, name: str, mime_type: str) -> str:
        self.upload_calls += 1
        if self.fail_upload:
            raise UploadError(detail="bucket unavailable")
        self._counter += 1
        locator = f"s3://test-bucket/user-photos/{self._counter}-{name}"
        self.objects[locator] = data
        return locator

    def delete(self, locator: Optional[str]) -> None:
        if not locator:
            return
        self.delete_calls += 1
        if self.fail_delete:
            raise DeleteError(detail="access denied")
        self.objects.pop(locator, None)

    def signed_url(self, locator: Optional[str], ttl_seconds: int = 3600) -> Optional[str]:
        if not locator:
            return None
        key = locator.split("/", 3)[3]
        return f"https://test-bucket.s3.amazonaws.com/{key}?X-Amz-Expires={ttl_seconds}&X-Amz-Signature=test"


class RecordingNotifier:
    """Notifier fake recording every welcome message."""

    def __init__(self):
        self.sent: List[tuple] = []
        self.fail = False

    def send_welcome(self, email: str, display_name: str) -> str:
        if self.fail:
            raise DeliveryError(detail="relay refused")
        self.sent.append((email, display_name))
        return f"<{len(self.sent)}@test>"


class CountingStagedPhoto(StagedPhoto):
    """Staged photo that counts how many times its file was actually removed."""

    def __init__(self, upload: PhotoUpload, path: str):
        super().__init__(upload, path)
        self.release_count = 0

    def release(self) -> None:
        if not self.released:
            self.release_count += 1
        super().release()


class RecordingStager(PhotoStager):
    """Stager that keeps a handle on every photo it staged."""

    def __init__(self, upload_dir: str):
        super().__init__(upload_dir)
        self.staged: List[CountingStagedPhoto] = []

    def _write(self, upload: PhotoUpload) -> StagedPhoto:
        staged = super()._write(upload)
        counting = CountingStagedPhoto(upload, staged.path)
        self.staged.append(counting)
        return counting


@pytest.fixture(scope="function")
def db_session():
    """Create a database session for testing.

    Uses an in-memory SQLite database that is created fresh for each test.
    """
    # Create engine with StaticPool for in-memory database
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    # Create all tables
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def user_repository(db_session: Session):
    """Create a UserRepository instance for testing."""
    return UserRepository(db_session)


@pytest.fixture
def blob_store():
    return InMemoryBlobStore()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def token_issuer():
    return TokenIssuer(secret_key="test-secret")


@pytest.fixture
def stager(tmp_path):
    return RecordingStager(str(tmp_path / "uploads"))


@pytest.fixture
def photo():
    return PhotoUpload(filename="portrait.png", content_type="image/png", data=PNG_BYTES)


@pytest.fixture
def registration_fields():
    """Raw registration input as it arrives from the form (camelCase keys)."""
    return {
        "firstName": "Ada",
        "lastName": "Lovelace",
        "email": "Ada@Lovelace.io",
        "password": "analytical",
        "dob": "1815-12-10",
        "gender": "female",
        "hobbies": ["Mathematics", "Poetry"],
    }


@pytest.fixture
def sample_user_create():
    """Validated create payload with a photo locator already assigned."""
    return UserCreate(
        first_name="Grace",
        last_name="Hopper",
        email="grace@hopper.dev",
        password="compiler",
        dob=datetime(1906, 12, 9),
        gender="female",
        hobbies=["Navy"],
        photo="s3://test-bucket/user-photos/1-grace.png",
    )


@pytest.fixture
def test_client(db_session: Session, blob_store, notifier, token_issuer, stager):
    """Create a FastAPI test client with overridden database and external clients."""
    from profilehub.api.app import app
    from profilehub.api.clients import get_blob_store, get_notifier, get_photo_stager
    from profilehub.auth.dependencies import get_token_issuer
    from profilehub.database.database import get_db

    # Override the get_db dependency to use our test database session
    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close the session here, let the fixture handle it

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_token_issuer] = lambda: token_issuer
    app.dependency_overrides[get_photo_stager] = lambda: stager

    with TestClient(app) as client:
        yield client

    # Clean up dependency overrides
    app.dependency_overrides.clear()


def register_via_api(client: TestClient, fields: Dict, *, filename: str = "me.png", content_type: str = "image/png"):
    """POST /auth/register with a photo attached."""
    return client.post(
        "/auth/register",
        data=fields,
        files={"photo": (filename, PNG_BYTES, content_type)},
    )


@pytest.fixture
def registered(test_client, registration_fields):
    """Register one user through the API and return the response payload."""
    response = register_via_api(test_client, registration_fields)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def auth_headers(registered):
    return {"Authorization": f"Bearer {registered['token']}"}


@pytest.fixture
def register_user(test_client):
    """Callable registering ``fields`` through the API."""
    def _register(fields: Dict, **kwargs):
        return register_via_api(test_client, fields, **kwargs)
    return _register
