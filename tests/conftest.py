"""
tests/conftest.py
Shared fixtures: fake Supabase auth client, in-memory profile repository,
SQLite engine, recording webhook transport and an HTTP client on the app.
"""

import os

os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SESSION_SECRET", "test-session-secret")

import json
from contextlib import nullcontext
from datetime import datetime, timezone
from types import SimpleNamespace

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine
from supabase import AuthError

from app.main import app
from app.models.news import NewsItem  # noqa: F401
from app.models.profile import Profile
from app.repositories.profile_repo import ProfileRepository
from app.schemas.auth import Identity
from app.services.client_session import ClientSession, SessionRegistry
from app.services.profile_store import ProfileStore

WEBHOOK_URL = "https://hook.test/booking"


# ── Fake Supabase auth ─────────────────────────────────────────────────────────


class FakeAuthApiError(AuthError):
    """Stand-in for the provider's API error; only the message matters."""

    def __init__(self, message: str):
        Exception.__init__(self, message)
        self.message = message


class FakeSubscription:
    def __init__(self, auth: "FakeAuthClient", callback):
        self._auth = auth
        self._callback = callback

    def unsubscribe(self):
        if self._callback in self._auth.callbacks:
            self._auth.callbacks.remove(self._callback)


class FakeAuthClient:
    """
    Behaves like the synchronous Supabase auth client for the calls the
    app makes: every state change is announced to the subscribers.
    """

    def __init__(self):
        self.callbacks = []
        self.session = None
        self.accounts: dict[str, tuple[str, SimpleNamespace]] = {}
        self.calls: list[str] = []

    def add_account(self, email, password, user_id, **metadata):
        user = SimpleNamespace(id=user_id, email=email, user_metadata=dict(metadata))
        self.accounts[email] = (password, user)
        return user

    def on_auth_state_change(self, callback):
        self.callbacks.append(callback)
        return FakeSubscription(self, callback)

    def get_session(self):
        return self.session

    def emit(self, event):
        for callback in list(self.callbacks):
            callback(event, self.session)

    def sign_in_with_password(self, credentials):
        self.calls.append("sign_in_with_password")
        account = self.accounts.get(credentials["email"])
        if account is None or account[0] != credentials["password"]:
            raise FakeAuthApiError("Invalid login credentials")
        self.session = SimpleNamespace(user=account[1])
        self.emit("SIGNED_IN")
        return SimpleNamespace(user=account[1], session=self.session)

    def sign_up(self, credentials):
        self.calls.append("sign_up")
        if credentials["email"] in self.accounts:
            raise FakeAuthApiError("User already registered")
        user = self.add_account(
            credentials["email"],
            credentials["password"],
            f"user-{len(self.accounts) + 1}",
        )
        self.session = SimpleNamespace(user=user)
        self.emit("SIGNED_IN")
        return SimpleNamespace(user=user, session=self.session)

    def update_user(self, attributes):
        self.calls.append("update_user")
        user = self.session.user
        user.user_metadata.update(attributes.get("data", {}))
        self.emit("USER_UPDATED")
        return SimpleNamespace(user=user)

    def sign_in_with_oauth(self, credentials):
        self.calls.append("sign_in_with_oauth")
        provider = credentials["provider"]
        return SimpleNamespace(provider=provider, url=f"https://auth.test/{provider}")

    def exchange_code_for_session(self, params):
        self.calls.append("exchange_code_for_session")
        if params["auth_code"] != "good-code":
            raise FakeAuthApiError("invalid flow state")
        user = SimpleNamespace(
            id="google-1",
            email="g@example.com",
            user_metadata={"full_name": "Gitte", "avatar_url": "https://img.test/g"},
        )
        self.session = SimpleNamespace(user=user)
        self.emit("SIGNED_IN")
        return SimpleNamespace(user=user, session=self.session)

    def sign_out(self):
        self.calls.append("sign_out")
        self.session = None
        self.emit("SIGNED_OUT")


# ── Profile repositories ───────────────────────────────────────────────────────


class InMemoryProfileRepository(ProfileRepository):
    """Dict-backed repository; timestamps are stamped like the database does."""

    def __init__(self):
        self.rows: dict[str, Profile] = {}
        self.merges: list[tuple[str, dict]] = []

    def get_by_id(self, session, profile_id):
        return self.rows.get(profile_id)

    def create(self, session, profile):
        now = datetime.now(timezone.utc)
        profile.created_at = now
        profile.updated_at = now
        self.rows[profile.id] = profile
        return profile

    def merge(self, session, profile_id, fields):
        self.merges.append((profile_id, dict(fields)))
        row = self.rows.get(profile_id) or Profile(id=profile_id)
        for key, value in fields.items():
            setattr(row, key, value)
        row.updated_at = datetime.now(timezone.utc)
        self.rows[profile_id] = row
        return row


def db_error() -> OperationalError:
    return OperationalError("SELECT", {}, Exception("permission denied"))


class RecordingProfileStore(ProfileStore):
    """Profile store that remembers every save() call."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.saved: list[dict] = []

    async def save(self, updates):
        self.saved.append(dict(updates))
        await super().save(updates)


class ReadFailingRepository(InMemoryProfileRepository):
    def get_by_id(self, session, profile_id):
        raise db_error()


class WriteFailingRepository(InMemoryProfileRepository):
    def create(self, session, profile):
        raise db_error()

    def merge(self, session, profile_id, fields):
        raise db_error()


# ── Fixtures ───────────────────────────────────────────────────────────────────


@pytest.fixture
def no_session():
    """Session factory for repositories that ignore the session."""
    return nullcontext


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return lambda: Session(engine)


@pytest.fixture
def identity():
    return Identity(id="u1", email="anna@example.com", display_name="Anna")


@pytest.fixture
def auth_client():
    auth = FakeAuthClient()
    auth.add_account("anna@example.com", "hemmelig", "u1", display_name="Anna")
    return auth


@pytest.fixture
def webhook_requests():
    return []


@pytest.fixture
def webhook_status():
    """Status code the fake webhook answers with."""
    return 200


@pytest.fixture
def http_client(webhook_requests, webhook_status):
    def handler(request: httpx.Request) -> httpx.Response:
        webhook_requests.append(
            {"url": str(request.url), "json": json.loads(request.content)}
        )
        return httpx.Response(webhook_status, text="Accepted")

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def uploads():
    return []


@pytest.fixture
def uploader(uploads):
    def upload(path, data, content_type):
        uploads.append({"path": path, "size": len(data), "content_type": content_type})
        return f"https://cdn.test/{path}"

    return upload


@pytest.fixture
def registry(auth_client, http_client, session_factory, uploader):
    def factory(sid):
        return ClientSession(
            sid,
            auth_client,
            http_client,
            session_factory=session_factory,
            uploader=uploader,
            webhook_url=WEBHOOK_URL,
        )

    return SessionRegistry(factory)


@pytest_asyncio.fixture
async def client(registry, http_client):
    app.state.registry = registry
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://testserver"
    ) as ac:
        yield ac
    await registry.close_all()
    await http_client.aclose()


async def sign_in(client: AsyncClient, email="anna@example.com", password="hemmelig"):
    response = await client.post(
        "/api/v1/auth/sign-in", json={"email": email, "password": password}
    )
    assert response.status_code == 200, response.text
    return response.json()
