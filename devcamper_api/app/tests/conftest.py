from collections.abc import Generator
from typing import Dict

import pytest
from fastapi.testclient import TestClient

from devcamper_api.app.core.db import SQLiteDocumentStore
from devcamper_api.app.core.store import InMemoryDocumentStore
from devcamper_api.app.main import create_app
from devcamper_api.app.tests.utils import (
    FakeGeocoder,
    MemoryPhotoStorage,
    RecordingMailer,
    create_admin,
    register,
)


@pytest.fixture
def store(tmp_path) -> SQLiteDocumentStore:
    """A migrated SQLite store in a fresh temporary file."""
    sqlite_store = SQLiteDocumentStore(str(tmp_path / "devcamper-test.db"))
    sqlite_store.migrate()
    return sqlite_store


@pytest.fixture(params=["sqlite", "memory"])
def any_store(request, tmp_path):
    """Runs a test once against each store implementation."""
    if request.param == "memory":
        return InMemoryDocumentStore()
    sqlite_store = SQLiteDocumentStore(str(tmp_path / "devcamper-any.db"))
    sqlite_store.migrate()
    return sqlite_store


@pytest.fixture
def geocoder() -> FakeGeocoder:
    return FakeGeocoder()


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def photo_storage() -> MemoryPhotoStorage:
    return MemoryPhotoStorage()


@pytest.fixture
def client(store, geocoder, mailer, photo_storage) -> Generator[TestClient, None, None]:
    app = create_app(store=store, geocoder=geocoder, mailer=mailer, photo_storage=photo_storage)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def admin_headers(store) -> Dict[str, str]:
    return create_admin(store)[1]


@pytest.fixture
def publisher_headers(client: TestClient) -> Dict[str, str]:
    return register(client, "publisher@devcamper.io", role="publisher")


@pytest.fixture
def other_publisher_headers(client: TestClient) -> Dict[str, str]:
    return register(client, "other.publisher@devcamper.io", role="publisher")


@pytest.fixture
def user_headers(client: TestClient) -> Dict[str, str]:
    return register(client, "user@devcamper.io")
