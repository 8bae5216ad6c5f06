# app/services/client_session.py
import logging
import secrets
import time
from typing import Any, Callable

import httpx
from sqlmodel import Session

from app.core.config import get_settings
from app.core.supabase_client import supabase_session_client
from app.core.storage_utils import upload_to_storage
from app.database import new_session
from app.repositories.news_repo import NewsRepository
from app.repositories.profile_repo import ProfileRepository
from app.schemas.auth import AuthState, Identity
from app.schemas.view import ViewStateRead
from app.services.auth_service import AuthService
from app.services.booking_flow import BookingFlow
from app.services.news_feed import NewsFeed
from app.services.profile_store import ProfileStore
from app.services.session_provider import SessionProvider
from app.services.settings_overlay import SettingsOverlay, Uploader
from app.services.view_router import ViewRouter

settings = get_settings()
logger = logging.getLogger(__name__)

GUEST_GREETING = "ven"


class ClientSession:
    """
    Everything one browser session sees, wired together.

    Control flow:
      - SessionProvider publishes the identity
      - ProfileStore follows it (one load per change)
      - view, booking form, settings draft and news list start over
        whenever a different user signs in or out
      - BookingFlow and SettingsOverlay write back through ProfileStore.save

    Lives until the client discards it, it idles out, or the process
    restarts.
    """

    def __init__(
        self,
        sid: str,
        auth_client: Any,
        http_client: httpx.AsyncClient,
        session_factory: Callable[[], Session] = new_session,
        uploader: Uploader = upload_to_storage,
        webhook_url: str | None = None,
    ):
        self.sid = sid
        self.auth = AuthService(auth_client)
        self.provider = SessionProvider(auth_client)
        self.profiles = ProfileStore(ProfileRepository(), session_factory)
        self.view = ViewRouter()
        self.booking = BookingFlow(self.profiles, http_client, webhook_url)
        self.news = NewsFeed(NewsRepository(), session_factory)
        self.settings = SettingsOverlay(self.profiles, self.view, self.auth, uploader)
        self._unsubscribe: Callable[[], None] | None = None

    async def start(self) -> None:
        self.booking.attach()
        self._unsubscribe = self.provider.subscribe(self._on_identity)
        await self.provider.start()

    async def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.provider.stop()
        self.booking.detach()
        self.profiles.close()

    @property
    def identity(self) -> Identity | None:
        return self.provider.identity

    def _on_identity(self, identity: Identity | None) -> None:
        previous = self.profiles.identity
        self.profiles.bind(identity)

        same_user = (
            previous is not None
            and identity is not None
            and previous.id == identity.id
        )
        if not same_user:
            self.view.reset()
            self.booking.reset()
            self.settings.reset()
            self.news.clear()

    # ----- navigation -----

    async def activate_tab(self, tab: str) -> None:
        """
        Switch tabs; entering a tab refreshes what it shows.
          - booking: re-derive the stage from the current profile
          - news: fetch a new snapshot
        """
        self.view.set_tab(tab)
        if tab == "booking":
            self.booking.reseed(self.profiles.profile)
        elif tab == "news":
            await self.news.activate()

    # ----- read models -----

    def auth_state(self) -> AuthState:
        return AuthState(
            resolving=self.provider.resolving,
            signed_in=self.identity is not None,
            identity=self.identity,
            busy=self.auth.busy,
            error=self.auth.error,
        )

    def view_state(self) -> ViewStateRead:
        profile = self.profiles.profile
        # Dark until a profile says otherwise
        dark = profile.dark_mode if profile is not None else True
        return ViewStateRead(
            tab=self.view.tab,
            settings_open=self.view.settings_open,
            theme="dark" if dark else "light",
            greeting_name=(profile.name if profile else "") or GUEST_GREETING,
            photo_url=(profile.photo_url or None) if profile else None,
            warning=self.profiles.error,
        )


def build_client_session(sid: str, http_client: httpx.AsyncClient) -> ClientSession:
    """Production wiring: one Supabase client per client session."""
    return ClientSession(sid, supabase_session_client().auth, http_client)


class SessionRegistry:
    """
    In-process registry of client sessions, keyed by session id.

    Nothing here is persisted: a restart forgets every session,
    just like reloading the page.

    Bounded two ways, both enforced when a session is opened:
      - sessions idle for more than `idle_seconds` are closed
      - at most `max_sessions` stay open; the least recently used
        one is closed to make room
    """

    def __init__(
        self,
        factory: Callable[[str], ClientSession],
        idle_seconds: float | None = None,
        max_sessions: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._factory = factory
        self._idle_seconds = (
            idle_seconds if idle_seconds is not None else settings.SESSION_IDLE_SECONDS
        )
        self._max_sessions = (
            max_sessions if max_sessions is not None else settings.MAX_CLIENT_SESSIONS
        )
        self._clock = clock
        self._sessions: dict[str, ClientSession] = {}
        self._last_seen: dict[str, float] = {}

    def get(self, sid: str) -> ClientSession | None:
        """Return a live session and mark it as used; expired ones are None."""
        client = self._sessions.get(sid)
        if client is None or self._expired(sid):
            return None
        self._last_seen[sid] = self._clock()
        return client

    async def evict_idle(self) -> None:
        for sid in [sid for sid in self._sessions if self._expired(sid)]:
            await self.close(sid)

    async def open(self) -> ClientSession:
        await self.evict_idle()
        while self._sessions and len(self._sessions) >= self._max_sessions:
            oldest = min(self._last_seen, key=self._last_seen.__getitem__)
            await self.close(oldest)

        sid = secrets.token_urlsafe(24)
        client = self._factory(sid)
        self._sessions[sid] = client
        self._last_seen[sid] = self._clock()
        await client.start()
        logger.info("Opened client session %s", sid[:8])
        return client

    async def close(self, sid: str) -> None:
        client = self._sessions.pop(sid, None)
        self._last_seen.pop(sid, None)
        if client is not None:
            await client.close()
            logger.info("Closed client session %s", sid[:8])

    async def close_all(self) -> None:
        for sid in list(self._sessions):
            await self.close(sid)

    def __len__(self) -> int:
        return len(self._sessions)

    def _expired(self, sid: str) -> bool:
        last_seen = self._last_seen.get(sid)
        return last_seen is not None and self._clock() - last_seen > self._idle_seconds
