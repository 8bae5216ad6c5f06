# app/services/session_provider.py
import asyncio
import logging
from typing import Any, Callable

from fastapi.concurrency import run_in_threadpool

from app.schemas.auth import Identity

logger = logging.getLogger(__name__)

IdentityListener = Callable[[Identity | None], None]


class SessionProvider:
    """
    Observes the Supabase auth client and publishes the current identity.

    Responsibilities:
      - hold the single auth subscription of a client session
      - publish Identity | None to listeners, once per actual change
      - end the "resolving" period on the first notification

    The Supabase SDK is synchronous and its auth calls run in a thread pool,
    so notifications may arrive on a worker thread. They are handed over to
    the event loop before any state changes.
    """

    def __init__(self, auth_client: Any):
        self._auth = auth_client
        self._listeners: list[IdentityListener] = []
        self._subscription = None
        self._loop: asyncio.AbstractEventLoop | None = None

        self.identity: Identity | None = None
        self.resolving = True

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        """
        Register a listener; returns the matching unsubscribe callable.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def start(self) -> None:
        """
        Subscribe to auth changes.

        The current session is reported right away so the resolving
        period ends even if the SDK stays silent until the next sign-in.
        Reading it may refresh the token, so it runs in the thread pool.
        """
        if self._subscription is not None:
            return
        self._loop = asyncio.get_running_loop()
        self._subscription = self._auth.on_auth_state_change(
            self._on_auth_state_change
        )
        session = await run_in_threadpool(self._auth.get_session)
        self._on_auth_state_change("INITIAL_SESSION", session)

    def stop(self) -> None:
        """Drop the auth subscription and all listeners."""
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        self._listeners.clear()

    # ----- internals -----

    def _on_auth_state_change(self, event: str, session: Any) -> None:
        user = getattr(session, "user", None) if session is not None else None
        identity = Identity.from_user(user) if user is not None else None

        if self._on_loop_thread():
            self._publish(event, identity)
        elif self._loop is not None:
            self._loop.call_soon_threadsafe(self._publish, event, identity)

    def _on_loop_thread(self) -> bool:
        try:
            return asyncio.get_running_loop() is self._loop
        except RuntimeError:
            return False

    def _publish(self, event: str, identity: Identity | None) -> None:
        if not self.resolving and identity == self.identity:
            return

        self.resolving = False
        self.identity = identity
        logger.info(
            "Auth %s: %s",
            event,
            f"user {identity.id}" if identity else "signed out",
        )
        for listener in list(self._listeners):
            listener(identity)
