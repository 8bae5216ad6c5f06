# app/schemas/auth.py
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr
from sqlmodel import SQLModel, Field


class Identity(BaseModel):
    """
    The signed-in principal, as reported by Supabase Auth.

    Immutable value: two notifications carrying the same user compare equal,
    which is how repeated notifications (token refresh) are recognised.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    email: str | None = None
    display_name: str | None = None
    photo_url: str | None = None

    @classmethod
    def from_user(cls, user: Any) -> "Identity":
        """
        Build an Identity from a Supabase auth User.

        Display name and photo come from user metadata; email/password
        users carry "display_name", OAuth providers "full_name"/"avatar_url".
        """
        meta = getattr(user, "user_metadata", None) or {}
        return cls(
            id=str(user.id),
            email=getattr(user, "email", None),
            display_name=meta.get("display_name")
            or meta.get("full_name")
            or meta.get("name"),
            photo_url=meta.get("avatar_url") or meta.get("picture"),
        )


class Credentials(SQLModel):
    """Email/password pair for sign-in and sign-up."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(min_length=1)


class AuthState(SQLModel):
    """
    Auth screen state.

    resolving: True until the auth provider reported for the first time.
    error: human-readable message from the last failed auth action.
    """

    resolving: bool
    signed_in: bool
    identity: Identity | None = None
    busy: bool = False
    error: str | None = None


class OAuthStart(SQLModel):
    """Where to send the browser to continue a federated sign-in."""

    provider: str
    url: str
