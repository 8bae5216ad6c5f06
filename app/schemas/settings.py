# app/schemas/settings.py
from sqlmodel import SQLModel

from app.schemas.profile import ProfileUpdate


class SettingsDraft(ProfileUpdate):
    """Edits to the settings draft; same fields as a profile update."""


class SettingsState(SQLModel):
    """
    Settings overlay state.

    draft is None while the overlay has never been opened for the
    current identity.
    """

    open: bool
    draft: dict | None = None
    uploading: bool = False
    upload_failed: bool = False


class AvatarRead(SQLModel):
    photo_url: str | None
    upload_failed: bool
