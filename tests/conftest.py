import os

# settings are read at import time, so the test environment must be in place first
os.environ["ENCODE_KEY"] = "test-signing-key-0123456789abcdef0123456789"
os.environ["ENCODE_PREVIOUS_KEYS"] = ""
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["APP_DOMAIN"] = "walletgate.test"
os.environ["NONCE_EXPIRY_SECONDS"] = "300"
os.environ["SUPERSEDE_PRIOR_CHALLENGES"] = "true"
os.environ["CORS_ORIGINS"] = "http://localhost:3000"
os.environ["RECORD_STORE"] = "sql"

import time
from threading import Lock
from typing import Generator

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from walletgate.core.jwt_utils import TokenConfig
from walletgate.db.base import Base
from walletgate.db.session import get_db
from walletgate.models.identity import Identity, IdentityRole, WalletBinding
from walletgate.services.memory_store import MemoryRecordStore
from walletgate.services.record_store import IdentityRecord, WalletBindingRecord
import walletgate.models.auth  # noqa: F401

TEST_KEY = os.environ["ENCODE_KEY"]
START_TIME = 1_763_461_800

ALICE_KEY = "0x" + "11" * 32
BOB_KEY = "0x" + "22" * 32
MALLORY_KEY = "0x" + "33" * 32


# Create in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FrozenClock:
    """Manually driven clock."""

    def __init__(self, start: int | None = None) -> None:
        self._now = int(time.time()) if start is None else int(start)
        self._lock = Lock()

    def now(self) -> int:
        with self._lock:
            return self._now

    def advance(self, seconds: int) -> int:
        with self._lock:
            self._now += int(seconds)
            return self._now

    def set(self, value: int) -> None:
        with self._lock:
            self._now = int(value)


def override_get_db() -> Generator:
    """Override database dependency for testing"""
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()


def sign(account, message: str) -> str:
    """personal_sign ``message`` with ``account``, returned as 0x hex."""
    signed = Account.sign_message(encode_defunct(text=message), private_key=account.key)
    return "0x" + bytes(signed.signature).hex()


@pytest.fixture
def tables() -> Generator:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session(tables) -> Generator[Session, None, None]:
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(tables) -> TestClient:
    """Create a test client for the FastAPI application"""
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def alice():
    return Account.from_key(ALICE_KEY)


@pytest.fixture
def bob():
    return Account.from_key(BOB_KEY)


@pytest.fixture
def mallory():
    return Account.from_key(MALLORY_KEY)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(START_TIME)


@pytest.fixture
def token_config() -> TokenConfig:
    return TokenConfig(signing_key=TEST_KEY, expire_seconds=7 * 24 * 3600)


@pytest.fixture
def memory_store(alice, bob) -> MemoryRecordStore:
    """Alice is an active ADMIN, Bob is an active USER; Mallory is not linked."""
    store = MemoryRecordStore()
    store.add_identity(IdentityRecord(id="id-alice", role="ADMIN", is_active=True, full_name="Alice", email="alice@example.com"))
    store.add_identity(IdentityRecord(id="id-bob", role="USER", is_active=True, full_name="Bob", email="bob@example.com"))
    store.link_wallet(WalletBindingRecord(address=alice.address, identity_id="id-alice", is_primary=True))
    store.link_wallet(WalletBindingRecord(address=bob.address, identity_id="id-bob", is_primary=True))
    return store


def seed_identity(
    db: Session,
    address: str,
    role: IdentityRole = IdentityRole.USER,
    is_active: bool = True,
    name: str = "Test User",
    email: str | None = None,
) -> Identity:
    """Insert an identity with one primary wallet (stored lowercase)."""
    identity = Identity(
        full_name=name,
        email=email or f"{address.lower()}@example.com",
        role=role,
        is_active=is_active,
    )
    db.add(identity)
    db.flush()
    db.add(WalletBinding(identity_id=identity.id, address=address.lower(), is_primary=True))
    db.commit()
    db.refresh(identity)
    return identity
