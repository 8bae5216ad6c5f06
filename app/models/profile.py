# app/models/profile.py
from datetime import datetime

from sqlalchemy import DateTime, func
from sqlmodel import SQLModel, Field


class Profile(SQLModel, table=True):
    """
    Persistent profile record, one row per signed-in user.

    Identity:
      - id: MUST match Supabase auth.users.id ("sub" of the user's JWT)

    The row is created lazily the first time the user is seen.
    Timestamps are assigned by the database:
      - created_at on insert
      - updated_at on insert and on every update
    """

    __tablename__ = "users"

    id: str = Field(
        primary_key=True,
        index=True,
        description="Matches Supabase auth.users.id",
    )

    name: str = Field(default="", max_length=200)
    address: str = Field(default="", max_length=300)
    phone: str = Field(default="", max_length=50)

    language: str = Field(default="Dansk", max_length=30)

    # Public URL of the avatar in Supabase Storage ("" = none)
    photo_url: str = Field(default="")

    dark_mode: bool = Field(default=False)

    created_at: datetime | None = Field(
        default=None,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"server_default": func.now()},
        description="Server-assigned creation timestamp",
    )

    updated_at: datetime | None = Field(
        default=None,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"server_default": func.now(), "onupdate": func.now()},
        description="Server-assigned last update timestamp",
    )
