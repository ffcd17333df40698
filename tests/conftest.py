"""
Pytest configuration and shared fixtures.
"""

import pytest
from fastapi.testclient import TestClient

from api.config import APIConfig
from api.main import create_app
from api.security import CredentialService, TokenIdentity
from storage.models import BookRecord, EntityKind
from storage.record_store import InMemoryRecordStore, JSONFileRecordStore
from utilities.config import AppConfig

TEST_SECRET = "test-signing-secret"


@pytest.fixture
def api_settings():
    """API settings with a cheap bcrypt cost and a generous rate limit."""
    return APIConfig(
        jwt_secret=TEST_SECRET,
        bcrypt_rounds=4,
        rate_limit_max_requests=1000,
    )


@pytest.fixture
def app_settings(tmp_path):
    """Storage settings pointing at a temporary data directory."""
    return AppConfig(environment="test", data_dir=str(tmp_path / "data"))


@pytest.fixture
def file_store(app_settings):
    """JSON file store in the temporary data directory."""
    return JSONFileRecordStore(app_settings.get_data_dir_path())


@pytest.fixture
def memory_store():
    return InMemoryRecordStore()


@pytest.fixture
def credential_service():
    """Credential service matching the test API settings."""
    return CredentialService(secret_key=TEST_SECRET, bcrypt_rounds=4)


@pytest.fixture
def alice():
    return TokenIdentity(user_id="user-alice", email="alice@example.com")


@pytest.fixture
def bob():
    return TokenIdentity(user_id="user-bob", email="bob@example.com")


@pytest.fixture
def sample_books(alice, bob):
    """A small catalog split between two owners."""
    return [
        BookRecord(id="b1", title="Dune", author="Frank Herbert", genre="Science Fiction",
                   published_year=1965, user_id=alice.user_id),
        BookRecord(id="b2", title="Emma", author="Jane Austen", genre="Romance",
                   published_year=1815, user_id=alice.user_id),
        BookRecord(id="b3", title="Neuromancer", author="William Gibson", genre="Cyberpunk Fiction",
                   published_year=1984, user_id=bob.user_id),
    ]


@pytest.fixture
def seeded_store(sample_books):
    """In-memory store holding the sample catalog."""
    return InMemoryRecordStore({
        EntityKind.BOOKS: [book.to_record() for book in sample_books],
    })


@pytest.fixture
def client(api_settings, app_settings, file_store):
    """Test client for an app backed by the temporary data directory."""
    app = create_app(api_settings=api_settings, app_settings=app_settings, record_store=file_store)
    return TestClient(app)


@pytest.fixture
def register_user(client):
    """Register a user through the API and return its token and public record."""

    def _register(email="reader@example.com", password="secret123", name=None):
        body = {"email": email, "password": password}
        if name is not None:
            body["name"] = name
        response = client.post("/api/auth/register", json=body)
        assert response.status_code == 201, response.text
        data = response.json()
        return data["token"], data["user"]

    return _register


@pytest.fixture
def auth_headers(register_user):
    """Bearer headers for a freshly registered user."""
    token, _ = register_user()
    return {"Authorization": f"Bearer {token}"}
