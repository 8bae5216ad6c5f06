# app/routers/view.py
from fastapi import APIRouter, Depends

from app.core.auth import require_identity
from app.core.config import get_settings
from app.schemas.view import TabUpdate, ViewStateRead
from app.services.client_session import ClientSession

settings = get_settings()

router = APIRouter(prefix="/view", tags=["View"])


@router.get("", response_model=ViewStateRead)
async def read_view(client: ClientSession = Depends(require_identity)):
    """
    Shell state: active tab, settings flag, theme, greeting, warning.
    """
    await client.profiles.wait_settled(settings.PROFILE_WAIT_SECONDS)
    return client.view_state()


@router.put("/tab", response_model=ViewStateRead)
async def change_tab(
    payload: TabUpdate,
    client: ClientSession = Depends(require_identity),
):
    """
    Switch between home, booking and news.

    Entering news fetches a fresh snapshot; entering booking
    re-derives the booking stage from the profile.
    """
    await client.activate_tab(payload.tab)
    return client.view_state()


@router.post("/settings/open", response_model=ViewStateRead)
async def open_settings(client: ClientSession = Depends(require_identity)):
    client.settings.open()
    return client.view_state()


@router.post("/settings/close", response_model=ViewStateRead)
async def close_settings(client: ClientSession = Depends(require_identity)):
    client.settings.close()
    return client.view_state()
