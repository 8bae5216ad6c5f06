# app/services/profile_store.py
import asyncio
import logging
from typing import Callable

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session

from app.core.config import get_settings
from app.database import new_session
from app.models.profile import Profile
from app.repositories.profile_repo import ProfileRepository
from app.schemas.auth import Identity
from app.schemas.profile import ProfileRead, ProfileState

settings = get_settings()
logger = logging.getLogger(__name__)

READ_FAILED_MESSAGE = "Kunne ikke hente profil (tilladelser)."
WRITE_FAILED_MESSAGE = "Kunne ikke gemme profiloplysninger (tilladelser)."

ProfileListener = Callable[[ProfileRead | None], None]


class ProfileStore:
    """
    Profile of the signed-in user, kept in memory and mirrored remotely.

    Two tiers:
      - `profile` (in memory) is always the latest locally applied state
        and is what every view reads
      - the `users` row is best effort: read/create on load, merge on save

    Remote failures never roll back local state. A failed load falls back
    to a local-only profile (no timestamps) and sets `error`, which the
    shell shows as a non-blocking warning.

    Every load gets a generation number; a result that settles after a
    newer load (or after close()) was requested is dropped.
    """

    def __init__(
        self,
        repo: ProfileRepository,
        session_factory: Callable[[], Session] = new_session,
        default_language: str | None = None,
    ):
        self.repo = repo
        self._session_factory = session_factory
        self._default_language = default_language or settings.DEFAULT_LANGUAGE

        self.identity: Identity | None = None
        self.profile: ProfileRead | None = None
        self.loading = True
        self.error: str | None = None

        self._generation = 0
        # Saved while a load was in flight; re-applied when it settles
        self._pending: dict = {}
        self._settled = asyncio.Event()
        self._task: asyncio.Task | None = None
        self._listeners: list[ProfileListener] = []

    # ----- observers -----

    def subscribe(self, listener: ProfileListener) -> Callable[[], None]:
        """Call `listener` after every local profile change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ----- loading -----

    def bind(self, identity: Identity | None) -> None:
        """
        Follow a new identity: schedule one load for it.

        Any load still in flight for a previous identity becomes stale.
        """
        generation = self._begin(identity)
        self._task = asyncio.create_task(self._load(identity, generation))

    async def load(self, identity: Identity | None) -> None:
        """Load (or lazily create) the profile of `identity` and wait for it."""
        await self._load(identity, self._begin(identity))

    def _begin(self, identity: Identity | None) -> int:
        self._generation += 1
        if identity is None or self.identity is None or identity.id != self.identity.id:
            self.profile = None
        self.identity = identity
        self.error = None
        self.loading = True
        self._settled.clear()
        self._pending = {}
        return self._generation

    async def _load(self, identity: Identity | None, generation: int) -> None:
        if identity is None:
            self._settle(generation, None, None)
            return

        try:
            stored = await run_in_threadpool(self._read, identity.id)
        except SQLAlchemyError:
            logger.warning(
                "Profile read failed for %s, continuing with a local profile",
                identity.id,
                exc_info=True,
            )
            self._settle(generation, self._defaults(identity), READ_FAILED_MESSAGE)
            return

        if stored is not None:
            self._settle(generation, stored, None)
            return

        if not self._is_current(generation):
            return

        try:
            created = await run_in_threadpool(self._create, identity)
        except SQLAlchemyError:
            logger.warning(
                "Profile create failed for %s, continuing with a local profile",
                identity.id,
                exc_info=True,
            )
            self._settle(generation, self._defaults(identity), WRITE_FAILED_MESSAGE)
            return

        self._settle(generation, created, None)

    async def wait_settled(self, timeout: float | None = None) -> bool:
        """
        Wait until the current load has settled.

        Returns False if it did not settle within `timeout` seconds.
        """
        try:
            await asyncio.wait_for(self._settled.wait(), timeout)
        except asyncio.TimeoutError:
            return False
        return True

    def close(self) -> None:
        """Stop listening to pending loads (teardown)."""
        self._generation += 1
        self._listeners.clear()
        self._settled.set()

    def state(self) -> ProfileState:
        return ProfileState(
            profile=self.profile,
            loading=self.loading,
            warning=self.error,
        )

    # ----- saving -----

    async def save(self, updates: dict) -> None:
        """
        Merge `updates` into the profile.

        Applied locally first, then written remotely (merge/upsert).
        A failed remote write is logged and otherwise ignored.

        The full editable snapshot is only written once the local profile
        mirrors the stored row (it has timestamps). Before that, during a
        load or in degraded mode, only `updates` are sent, so stored fields
        are never replaced by local defaults.
        """
        identity = self.identity
        if identity is None:
            return

        synced = self.profile is not None and self.profile.created_at is not None
        if self.loading:
            self._pending.update(updates)

        self._apply(updates)
        fields = self.profile.editable() if synced else dict(updates)

        try:
            await run_in_threadpool(self._merge, identity.id, fields)
        except SQLAlchemyError:
            logger.warning(
                "Profile save failed for %s, kept local changes only",
                identity.id,
                exc_info=True,
            )

        # A load may have settled meanwhile; local changes win.
        if self.identity == identity:
            self._apply(updates)

    # ----- internals -----

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    def _settle(
        self,
        generation: int,
        profile: ProfileRead | None,
        error: str | None,
    ) -> None:
        if not self._is_current(generation):
            logger.debug("Dropping stale profile load (generation %s)", generation)
            return
        if profile is not None and self._pending:
            profile = profile.model_copy(update=self._pending)
        self._pending = {}
        self.profile = profile
        self.error = error
        self.loading = False
        self._settled.set()
        self._notify()

    def _apply(self, updates: dict) -> None:
        base = self.profile or self._defaults(self.identity)
        self.profile = base.model_copy(update=updates)
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self.profile)

    def _defaults(self, identity: Identity) -> ProfileRead:
        return ProfileRead(
            name=identity.display_name or "",
            address="",
            phone="",
            language=self._default_language,
            photo_url=identity.photo_url or "",
            dark_mode=False,
        )

    # Blocking helpers, executed in the thread pool.

    def _read(self, profile_id: str) -> ProfileRead | None:
        with self._session_factory() as session:
            row = self.repo.get_by_id(session, profile_id)
            if row is None:
                return None
            return ProfileRead.model_validate(row, from_attributes=True)

    def _create(self, identity: Identity) -> ProfileRead:
        try:
            with self._session_factory() as session:
                row = self.repo.create(
                    session,
                    Profile(id=identity.id, **self._defaults(identity).editable()),
                )
                return ProfileRead.model_validate(row, from_attributes=True)
        except IntegrityError:
            # Another load created the row in the meantime
            logger.info("Profile %s already exists, reading it back", identity.id)
            stored = self._read(identity.id)
            if stored is None:
                raise
            return stored

    def _merge(self, profile_id: str, fields: dict) -> None:
        with self._session_factory() as session:
            self.repo.merge(session, profile_id, fields)
