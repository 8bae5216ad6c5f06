# app/routers/news.py
from fastapi import APIRouter, Depends

from app.core.auth import require_identity
from app.schemas.news import NewsFeedRead
from app.services.client_session import ClientSession

router = APIRouter(prefix="/news", tags=["News"])


@router.get("", response_model=NewsFeedRead)
async def read_news(client: ClientSession = Depends(require_identity)):
    """
    Fetch the news feed (newest first).

    Never fails: if the collection cannot be read the feed is empty.
    """
    return await client.news.activate()
