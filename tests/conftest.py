"""Shared fixtures: in-memory database, session store with a fake clock, fake mailer."""
import os
import re
import tempfile

os.environ.setdefault("DB_USER", "test")
os.environ.setdefault("DB_PASSWORD", "test")
os.environ.setdefault("DB_NAME", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("GOOGLE_CLIENT_ID", "client-id")
os.environ.setdefault("GOOGLE_CLIENT_SECRET", "client-secret")
os.environ.setdefault("GMAIL_REDIRECT_URI", "https://example.org/admin/email/")
os.environ.setdefault("IMAGES_DIR", tempfile.mkdtemp(prefix="images_"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from core.database import get_db
from core.mailer import get_mailer
from core.security import hash_password
from core.session_store import SessionStore, get_session_store
from main import app
from models.admin_credential import AdminCredential
from models.base import Base
from models.user import User

CODE_RE = re.compile(r"website: ([A-Za-z0-9]{16})")
PASSWORD = "correct horse"


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeMailer:
    """Records what would have been sent instead of calling Google."""

    __test__ = False

    def __init__(self):
        self.sent: list[dict] = []
        self.exchanged: list[str] = []

    def authorization_url(self) -> str:
        return "https://accounts.example/auth?client_id=client-id"

    def exchange_auth_code(self, code: str) -> str:
        self.exchanged.append(code)
        return f"refresh-{code}"

    def access_token_for(self, refresh_token: str) -> str:
        return f"access-for-{refresh_token}"

    def send_message(self, sender, to, subject, body, access_token) -> None:
        self.sent.append({"to": to, "subject": subject, "body": body, "access_token": access_token})

    def last_code(self) -> str:
        return CODE_RE.search(self.sent[-1]["body"]).group(1)


def add_user(db, email, password=PASSWORD, verified=1, admin=0, subscription_policy=1, invalid_email=0) -> User:
    user = User(
        email=email,
        password=hash_password(password) if password else "",
        verified=verified,
        admin=admin,
        subscription_policy=subscription_policy,
        invalid_email=invalid_email,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def login(client, email, password=PASSWORD) -> dict:
    return client.post("/auth/login", json={"email": email, "password": password}).json()


@pytest.fixture()
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def db_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


@pytest.fixture()
def db(db_factory):
    s = db_factory()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def store(clock):
    return SessionStore(capacity=100, ttl=30 * 60, clock=clock)


@pytest.fixture()
def mailer():
    return FakeMailer()


@pytest.fixture()
def sender(db):
    """An administrator who has authorized Gmail, so mail gets queued."""
    db.add(AdminCredential(email="sender@example.org", refresh_token="sender-refresh"))
    db.commit()


@pytest.fixture()
def client(db_factory, store, mailer):
    def _get_db():
        s = db_factory()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_session_store] = lambda: store
    app.dependency_overrides[get_mailer] = lambda: mailer
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def write_counter(engine):
    """Counts INSERT/UPDATE/DELETE statements reaching the database."""
    counts = {"writes": 0}

    def _count(conn, cursor, statement, parameters, context, executemany):
        if statement.lstrip().upper().startswith(("INSERT", "UPDATE", "DELETE")):
            counts["writes"] += 1

    event.listen(engine, "before_cursor_execute", _count)
    yield counts
    event.remove(engine, "before_cursor_execute", _count)
