import pytest
from unittest.mock import MagicMock

from backend.auth_service.hashing import PasswordHasher
from backend.auth_service.utils import TokenService
from backend.errors import DuplicateEmail, InvalidCredentials, NotFound
from backend.gateway.server import create_app

TEST_SECRET = "test_secret_with_at_least_32_bytes!!"

TEST_CONFIG = {
    "DATABASE_URL": "postgresql://unused",
    "JWT_SECRET": TEST_SECRET,
    "CORS_ORIGINS": [],
    "TESTING": True,
}


@pytest.fixture
def fast_hasher():
    """Argon2 with minimal cost so tests stay quick."""
    return PasswordHasher(time_cost=1, memory_cost=8, parallelism=1)


@pytest.fixture
def tokens():
    return TokenService(TEST_SECRET)


@pytest.fixture
def services(mocker, tokens):
    """
    Service objects with mocked stores and a real token service.
    """
    return {
        "tokens": tokens,
        "users": mocker.Mock(),
        "events": mocker.Mock(),
        "registrations": mocker.Mock(),
    }


@pytest.fixture
def app(services):
    return create_app(config=TEST_CONFIG, services=services)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_header(tokens):
    def make(user_id):
        return {"Authorization": f"Bearer {tokens.issue(user_id)}"}
    return make


@pytest.fixture
def mock_db():
    """
    Mocks the Database object, its connection and cursor.
    """
    mock_conn = MagicMock()
    mock_cursor = MagicMock()

    # Setup the context manager for the cursor
    mock_cursor.__enter__.return_value = mock_cursor
    mock_cursor.__exit__.return_value = None
    mock_conn.cursor.return_value = mock_cursor

    # db.transaction() yields the connection
    db = MagicMock()
    db.transaction.return_value.__enter__.return_value = mock_conn
    db.transaction.return_value.__exit__.return_value = None

    return db, mock_conn, mock_cursor


# --- IN-MEMORY STORES FOR END-TO-END TESTS ---

class MemoryUserStore:
    def __init__(self, hasher):
        self.hasher = hasher
        self.rows = {}
        self.next_id = 1

    def create_user(self, email, password):
        if any(row["email"] == email for row in self.rows.values()):
            raise DuplicateEmail("Email already exists")
        user_id = self.next_id
        self.next_id += 1
        self.rows[user_id] = {"email": email, "password_hash": self.hasher.hash(password)}
        return user_id

    def authenticate(self, email, password):
        for user_id, row in self.rows.items():
            if row["email"] == email and self.hasher.verify(password, row["password_hash"]):
                return user_id
        raise InvalidCredentials("Invalid email or password")


class MemoryEventStore:
    def __init__(self):
        self.rows = {}
        self.next_id = 1

    def create(self, fields, owner_id):
        event = dict(fields, id=self.next_id, owner_id=owner_id)
        self.rows[self.next_id] = event
        self.next_id += 1
        return dict(event)

    def get_by_id(self, event_id):
        if event_id not in self.rows:
            raise NotFound("Event not found")
        return dict(self.rows[event_id])

    def list_all(self):
        return [dict(e) for e in self.rows.values()]

    def update(self, event_id, fields):
        if event_id not in self.rows:
            raise NotFound("Event not found")
        self.rows[event_id].update(fields)
        return dict(self.rows[event_id])

    def delete(self, event_id):
        if self.rows.pop(event_id, None) is None:
            raise NotFound("Event not found")


class MemoryLedger:
    def __init__(self, events):
        self.events = events
        self.pairs = set()

    def register(self, event_id, user_id):
        self.events.get_by_id(event_id)
        created = (event_id, user_id) not in self.pairs
        self.pairs.add((event_id, user_id))
        return created

    def cancel(self, event_id, user_id):
        self.pairs.discard((event_id, user_id))

    def list_for_event(self, event_id):
        self.events.get_by_id(event_id)
        return sorted(u for e, u in self.pairs if e == event_id)


@pytest.fixture
def memory_client(fast_hasher, tokens):
    events = MemoryEventStore()
    services = {
        "tokens": tokens,
        "users": MemoryUserStore(fast_hasher),
        "events": events,
        "registrations": MemoryLedger(events),
    }
    return create_app(config=TEST_CONFIG, services=services).test_client()
