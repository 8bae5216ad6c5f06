# app/routers/settings.py
from fastapi import APIRouter, Depends, File, UploadFile

from app.core.auth import require_identity
from app.schemas.auth import AuthState
from app.schemas.settings import AvatarRead, SettingsDraft, SettingsState
from app.services.client_session import ClientSession

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get("", response_model=SettingsState)
async def read_settings(client: ClientSession = Depends(require_identity)):
    return client.settings.state()


@router.patch("/draft", response_model=SettingsState)
async def update_draft(
    payload: SettingsDraft,
    client: ClientSession = Depends(require_identity),
):
    """
    Edit the settings draft. Nothing is saved until /settings/confirm.
    """
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    client.settings.update_draft(changes)
    return client.settings.state()


@router.post("/avatar", response_model=AvatarRead)
async def upload_avatar(
    file: UploadFile = File(...),
    client: ClientSession = Depends(require_identity),
):
    """
    Upload a new avatar image and save its URL on the profile right away.

    - Only image/* files are accepted (400 otherwise).
    - A failed upload is reported via `upload_failed`, not as an error.
    """
    data = await file.read()
    url = await client.settings.upload_avatar(data, file.content_type)
    return AvatarRead(photo_url=url, upload_failed=client.settings.upload_failed)


@router.post("/confirm", response_model=SettingsState)
async def confirm_settings(client: ClientSession = Depends(require_identity)):
    """Save the whole draft to the profile and close the overlay."""
    await client.settings.confirm()
    return client.settings.state()


@router.post("/sign-out", response_model=AuthState)
async def sign_out(client: ClientSession = Depends(require_identity)):
    await client.settings.sign_out()
    return client.auth_state()
