"""
Pytest configuration and shared fixtures.

Each test gets an app backed by its own SQLite file, so tests never share
rows. Required environment variables are seeded before any app import.
"""

import os

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("TURSO_DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("TURSO_AUTH_TOKEN", "test-token")

# Clear settings cache so the values above are used
from contact_api.config import Settings, get_settings  # noqa: E402
from contact_api.main import create_app  # noqa: E402
from contact_api.models import Contact  # noqa: E402

get_settings.cache_clear()


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing at a fresh SQLite file."""
    return Settings(
        TURSO_DATABASE_URL=f"sqlite:///{tmp_path / 'contacts.db'}",
        TURSO_AUTH_TOKEN="test-token",
    )


@pytest.fixture
def client(settings):
    """Test client; entering it runs startup (connect + create table)."""
    with TestClient(create_app(settings)) as test_client:
        yield test_client


@pytest.fixture
def repository(client):
    """The repository the running app serves from."""
    return client.app.state.repository


@pytest.fixture
def insert_row(repository):
    """Insert a row directly, bypassing the API, e.g. to control created_at."""

    def _insert(name="Ada", email="ada@example.com", message="Hi", created_at=None):
        with repository.database.session() as db:
            row = Contact(name=name, email=email, message=message)
            if created_at is not None:
                row.created_at = created_at
            db.add(row)
            db.commit()
            return row.id

    return _insert
