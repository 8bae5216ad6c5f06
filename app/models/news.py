# app/models/news.py
import uuid
from datetime import datetime

from sqlalchemy import DateTime, func
from sqlmodel import SQLModel, Field


class NewsItem(SQLModel, table=True):
    """
    Announcement shown in the news tab.

    Authored outside this application (Supabase dashboard / admin tools);
    the backend only reads it.
    """

    __tablename__ = "news"

    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        primary_key=True,
        index=True,
    )

    title: str = Field(max_length=200)
    description: str = Field(default="")

    # Optional hero image URL
    image: str | None = Field(default=None)

    created_at: datetime | None = Field(
        default=None,
        sa_type=DateTime(timezone=True),
        index=True,
        sa_column_kwargs={"server_default": func.now()},
    )
