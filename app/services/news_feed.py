# app/services/news_feed.py
import logging
from typing import Callable

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.database import new_session
from app.models.news import NewsItem
from app.repositories.news_repo import NewsRepository
from app.schemas.news import EMPTY_NEWS_MESSAGE, NewsFeedRead, NewsItemRead

logger = logging.getLogger(__name__)


def _to_read(item: NewsItem) -> NewsItemRead:
    return NewsItemRead(
        id=str(item.id),
        title=item.title,
        description=item.description or "",
        image=item.image or None,
        created_at=item.created_at,
        created_label=item.created_at.strftime("%d.%m.%Y") if item.created_at else None,
    )


class NewsFeed:
    """
    News tab: a one-shot snapshot of the news collection.

    Each activation replaces the whole list (newest first).
    No paging, no caching, no live updates; a failed fetch leaves
    the list empty.
    """

    def __init__(
        self,
        repo: NewsRepository,
        session_factory: Callable[[], Session] = new_session,
    ):
        self.repo = repo
        self._session_factory = session_factory
        self.items: list[NewsItemRead] = []

    async def activate(self) -> NewsFeedRead:
        try:
            self.items = await run_in_threadpool(self._fetch)
        except SQLAlchemyError:
            logger.warning("News fetch failed, showing empty feed", exc_info=True)
            self.items = []
        return self.state()

    def clear(self) -> None:
        self.items = []

    def state(self) -> NewsFeedRead:
        empty = not self.items
        return NewsFeedRead(
            items=list(self.items),
            empty=empty,
            empty_message=EMPTY_NEWS_MESSAGE if empty else None,
        )

    def _fetch(self) -> list[NewsItemRead]:
        with self._session_factory() as session:
            return [_to_read(item) for item in self.repo.list_latest(session)]
