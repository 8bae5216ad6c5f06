# app/repositories/news_repo.py
from sqlmodel import Session, select

from app.models.news import NewsItem


class NewsRepository:
    """Read-only access to the news collection."""

    def list_latest(self, session: Session) -> list[NewsItem]:
        """All news items, newest first."""
        stmt = select(NewsItem).order_by(NewsItem.created_at.desc())
        return session.exec(stmt).all()
