# app/schemas/profile.py
from datetime import datetime

from pydantic import ConfigDict
from sqlmodel import SQLModel, Field

# Fields a user may edit; everything else is owned by the server.
EDITABLE_FIELDS = ("name", "address", "phone", "language", "photo_url", "dark_mode")


class ProfileRead(SQLModel):
    """
    Profile as seen by the client.

    Also used as the in-memory copy held by the profile store.
    Timestamps are None when the profile only exists locally
    (degraded mode: the database refused the read or the write).
    """

    name: str = ""
    address: str = ""
    phone: str = ""
    language: str = "Dansk"
    photo_url: str = ""
    dark_mode: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def editable(self) -> dict:
        """Return only the user-editable fields."""
        return self.model_dump(include=set(EDITABLE_FIELDS))


class ProfileUpdate(SQLModel):
    """
    Partial profile update (merge semantics).

    Only the fields present in the payload are applied.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=200)
    address: str | None = Field(default=None, max_length=300)
    phone: str | None = Field(default=None, max_length=50)
    language: str | None = Field(default=None, max_length=30)
    photo_url: str | None = None
    dark_mode: bool | None = None


class ProfileState(SQLModel):
    """
    Profile store snapshot returned by GET /profile.

    warning: persistent, non-blocking message shown when the profile
    could not be read or created remotely.
    """

    profile: ProfileRead | None
    loading: bool
    warning: str | None = None
