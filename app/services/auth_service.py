# app/services/auth_service.py
import logging
from typing import Any

import httpx
from fastapi import HTTPException, status
from fastapi.concurrency import run_in_threadpool
from supabase import AuthError

from app.core.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


def default_name_from_email(email: str) -> str:
    """
    Derive a default display name from email for freshly created accounts.
    """
    if "@" in email:
        return email.split("@", 1)[0]
    return email


class AuthService:
    """
    Explicit auth actions of one client session.

    Responsibilities:
      - call the Supabase auth client (sign-in, sign-up, OAuth, sign-out)
      - turn provider failures into a human-readable message
        (kept in `error` for the auth screen, raised as HTTP 400)

    The resulting identity is NOT returned from here: Supabase notifies the
    session provider, which is the single source of the current identity.
    """

    def __init__(self, auth_client: Any):
        self._auth = auth_client
        self.busy = False
        self.error: str | None = None

    async def sign_in(self, email: str, password: str) -> None:
        await self._run(
            self._auth.sign_in_with_password,
            {"email": email, "password": password},
        )

    async def sign_up(self, email: str, password: str) -> None:
        """
        Create an account, then give it a display name.

        When the project requires email confirmation no session is
        returned yet; the name is set on a later sign-up attempt instead.
        """
        response = await self._run(
            self._auth.sign_up,
            {"email": email, "password": password},
        )
        if getattr(response, "session", None) is not None:
            await self.update_display_name(default_name_from_email(email))

    async def start_oauth(self, provider: str) -> str:
        """
        Start a federated sign-in (PKCE) and return the provider URL.
        """
        options = {}
        if settings.OAUTH_REDIRECT_URL:
            options["redirect_to"] = settings.OAUTH_REDIRECT_URL
        response = await self._run(
            self._auth.sign_in_with_oauth,
            {"provider": provider, "options": options},
        )
        return response.url

    async def complete_oauth(self, code: str) -> None:
        """Exchange the provider's authorization code for a session."""
        await self._run(self._auth.exchange_code_for_session, {"auth_code": code})

    async def sign_out(self) -> None:
        await self._run(self._auth.sign_out)

    async def update_display_name(self, name: str) -> None:
        await self._run(self._auth.update_user, {"data": {"display_name": name}})

    async def _run(self, action, *args):
        self.error = None
        self.busy = True
        try:
            return await run_in_threadpool(action, *args)
        except (AuthError, httpx.HTTPError) as exc:
            message = getattr(exc, "message", None) or str(exc)
            self.error = message
            logger.info(
                "Auth action %s failed: %s",
                getattr(action, "__name__", "auth"),
                message,
            )
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=message,
            )
        finally:
            self.busy = False
