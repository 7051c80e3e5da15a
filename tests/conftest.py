"""
Pytest configuration and fixtures
"""
import os
import sys
from pathlib import Path
from typing import List

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Add src to path
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

# Set test environment variables before importing
os.environ["ENV"] = "test"
os.environ["SECRET_KEY"] = "test-secret-key-for-loyalty-tests-only-min-32-chars"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ADMIN_SECRET"] = "test-admin-secret"
os.environ["ENABLE_SCHEDULER"] = "false"
os.environ["ENABLE_PUSH"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"  # Fast hashing in tests
os.environ["LOG_LEVEL"] = "WARNING"

# Import after setting env vars
from thamel_loyalty.db import Base, get_db
from thamel_loyalty.db.engine import create_database_engine
from thamel_loyalty.dependencies import get_email_provider, get_push_provider
from thamel_loyalty.main import app
from thamel_loyalty.services.email_provider import EmailMessage, EmailProvider
from thamel_loyalty.services.push_provider import PushProvider

ADMIN_SECRET = "test-admin-secret"


class RecordingEmailProvider(EmailProvider):
    """Keeps every message; ``fail`` makes sends report failure"""

    def __init__(self):
        self.messages: List[EmailMessage] = []
        self.fail = False

    def send(self, message: EmailMessage) -> bool:
        if self.fail:
            return False
        self.messages.append(message)
        return True

    def is_available(self) -> bool:
        return True

    def last_code(self) -> str:
        # Text body reads "...verification code is: 123456. It expires..."
        text = self.messages[-1].text_body
        return text.split("code is: ")[1][:6]


class RecordingPushProvider(PushProvider):
    def __init__(self):
        self.sent = []
        self.error = None

    def send(self, tokens, title, body) -> int:
        if self.error is not None:
            raise self.error
        tokens = list(tokens)
        self.sent.append((tokens, title, body))
        return len(tokens)


@pytest.fixture(scope="function")
def test_engine():
    """In-memory SQLite shared by every session of one test"""
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(test_engine):
    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, expire_on_commit=False, bind=test_engine
    )
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture(scope="function")
def file_session_factory(tmp_path):
    """
    File-backed SQLite for tests that hit the database from several threads

    Each thread opens its own session; writers serialize on the SQLite lock.
    """
    engine = create_database_engine(f"sqlite:///{tmp_path / 'concurrency.db'}")
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
    engine.dispose()


@pytest.fixture
def email_provider():
    return RecordingEmailProvider()


@pytest.fixture
def push_provider():
    return RecordingPushProvider()


@pytest.fixture(scope="function")
def client(db_session, email_provider, push_provider):
    """Test client wired to the per-test database and recording providers"""

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_email_provider] = lambda: email_provider
    app.dependency_overrides[get_push_provider] = lambda: push_provider

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def staff_headers():
    return {"X-Admin-Secret": ADMIN_SECRET}


@pytest.fixture
def member(db_session):
    """A verified local member with password 'secret123'"""
    from thamel_loyalty.services.account_registry import AccountRegistry

    return AccountRegistry(db_session).create_local("member@example.com", "Member", "secret123", verified=True)


@pytest.fixture
def auth_headers(member):
    from thamel_loyalty.auth import create_access_token

    return {"Authorization": f"Bearer {create_access_token(member.id)}"}
