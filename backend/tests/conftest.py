"""Pytest configuration and fixtures for testing."""
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from ticketdesk.core.config import Settings
from ticketdesk.core.credentials import CredentialStore
from ticketdesk.core.file_store import FileRecordStore
from ticketdesk.core.security import PasswordHasher
from ticketdesk.core.tickets import TicketService
from ticketdesk.core.tokens import TokenService
from ticketdesk.core.users import AuthenticationService
from ticketdesk.db.session import Base
from ticketdesk.main import create_app
from ticketdesk.models.models import UserType
from ticketdesk.models.records import Ticket

# Use SQLite in-memory database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
TEST_SECRET_KEY = "test-secret-key-not-for-production"
# Low iteration count keeps the suite fast; production default is 100000
TEST_ITERATIONS = 1000


class FakeClock:
    """Controllable UTC clock."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture(scope="function")
def engine():
    """Fresh in-memory credential database for each test."""
    engine = create_engine(
        SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def credential_store(engine):
    return CredentialStore(engine)


@pytest.fixture
def hasher():
    return PasswordHasher(iterations=TEST_ITERATIONS)


@pytest.fixture
def auth_service(credential_store, hasher):
    return AuthenticationService(credential_store, hasher)


@pytest.fixture
def sleeps():
    """Records the backoff delays requested by the file store instead of sleeping."""
    return []


@pytest.fixture
def ticket_path(tmp_path):
    return str(tmp_path / "App_Data" / "tickets.json")


@pytest.fixture
def ticket_store(ticket_path, sleeps):
    return FileRecordStore(ticket_path, Ticket, sleep=sleeps.append)


@pytest.fixture
def ticket_service(ticket_store):
    return TicketService(ticket_store)


@pytest.fixture
def token_service():
    return TokenService(TEST_SECRET_KEY)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        SECRET_KEY=TEST_SECRET_KEY,
        TICKET_STORE_PATH=str(tmp_path / "data" / "tickets.json"),
        USER_DB_PATH=str(tmp_path / "data" / "users.db"),
        PASSWORD_HASH_ITERATIONS=TEST_ITERATIONS,
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    """Create a test client backed by temporary stores."""
    return TestClient(app, raise_server_exceptions=False)


def _login_headers(client, app, username, password, user_type):
    app.state.auth_service.register(username, password, user_type)
    response = client.post(
        "/api/auth/login", json={"username": username, "password": password}
    )
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def staff_headers(client, app):
    return _login_headers(client, app, "staff", "staff-pass-1", UserType.USER)


@pytest.fixture
def admin_headers(client, app):
    return _login_headers(client, app, "admin", "admin-pass-1", UserType.ADMIN)


@pytest.fixture
def customer_headers(client, app):
    return _login_headers(client, app, "customer", "customer-pass-1", UserType.CUSTOMER)


@pytest.fixture
def sample_ticket(ticket_service):
    return ticket_service.create(
        "Bob", "bob@example.com", "Printer on floor 2 is jammed", None
    )
