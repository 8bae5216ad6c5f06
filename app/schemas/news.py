# app/schemas/news.py
from datetime import datetime

from sqlmodel import SQLModel

EMPTY_NEWS_MESSAGE = "Ingen nyheder endnu"


class NewsItemRead(SQLModel):
    id: str
    title: str
    description: str = ""
    image: str | None = None
    created_at: datetime | None = None
    # Danish short date (dd.mm.yyyy), None when created_at is unknown
    created_label: str | None = None


class NewsFeedRead(SQLModel):
    """
    News tab content.

    empty/empty_message let the client render the empty state
    without inspecting the list.
    """

    items: list[NewsItemRead]
    empty: bool
    empty_message: str | None = None
