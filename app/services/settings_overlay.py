# app/services/settings_overlay.py
import logging
from typing import Callable

import httpx
from fastapi import HTTPException, status
from fastapi.concurrency import run_in_threadpool
from storage3.utils import StorageException

from app.core.storage_utils import avatar_path, upload_to_storage
from app.schemas.settings import SettingsState
from app.services.auth_service import AuthService
from app.services.profile_store import ProfileStore
from app.services.view_router import ViewRouter

logger = logging.getLogger(__name__)

# (path, bytes, content_type) -> public URL
Uploader = Callable[[str, bytes, str], str]


class SettingsOverlay:
    """
    Settings overlay: profile draft, avatar upload, sign-out.

    Responsibilities:
      - keep a draft of the editable profile fields, separate from the
        live profile, until the user confirms
      - upload the avatar and commit its URL right away, without touching
        the rest of the draft
      - sign out (the session provider unwinds everything else)
    """

    def __init__(
        self,
        profiles: ProfileStore,
        view: ViewRouter,
        auth: AuthService,
        uploader: Uploader = upload_to_storage,
    ):
        self.profiles = profiles
        self.view = view
        self.auth = auth
        self._upload = uploader
        self.reset()

    def reset(self) -> None:
        self.draft: dict | None = None
        self.uploading = False
        self.upload_failed = False

    def open(self) -> None:
        """Open the overlay with a fresh draft of the live profile."""
        profile = self.profiles.profile
        self.draft = profile.editable() if profile else {}
        self.upload_failed = False
        self.view.open_settings()

    def close(self) -> None:
        """Close without saving; the draft is dropped."""
        self.draft = None
        self.view.close_settings()

    def update_draft(self, changes: dict) -> dict:
        if self.draft is None:
            self.open()
        self.draft.update(changes)
        return self.draft

    async def upload_avatar(
        self,
        data: bytes,
        content_type: str | None,
    ) -> str | None:
        """
        Upload a new avatar and commit its URL to the profile.

        Returns the public URL, or None when the upload failed
        (upload_failed is set; nothing is raised).

        Raises:
            HTTPException(400): if the file is not an image.
            HTTPException(401): if nobody is signed in.
        """
        identity = self.profiles.identity
        if identity is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Authentication required",
            )
        if not content_type or not content_type.startswith("image/"):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Only image files are allowed",
            )

        self.uploading = True
        self.upload_failed = False
        try:
            url = await run_in_threadpool(
                self._upload, avatar_path(identity.id), data, content_type
            )
        except (StorageException, httpx.HTTPError):
            logger.warning("Avatar upload failed for %s", identity.id, exc_info=True)
            self.upload_failed = True
            return None
        finally:
            self.uploading = False

        await self.profiles.save({"photo_url": url})
        if self.draft is not None:
            self.draft["photo_url"] = url
        return url

    async def confirm(self) -> None:
        """Save the whole draft, then close the overlay."""
        if self.draft is not None:
            await self.profiles.save(dict(self.draft))
        self.close()

    async def sign_out(self) -> None:
        await self.auth.sign_out()

    def state(self) -> SettingsState:
        return SettingsState(
            open=self.view.settings_open,
            draft=dict(self.draft) if self.draft is not None else None,
            uploading=self.uploading,
            upload_failed=self.upload_failed,
        )
