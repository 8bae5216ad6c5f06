# app/routers/profile.py
from fastapi import APIRouter, Depends

from app.core.auth import require_identity
from app.core.config import get_settings
from app.schemas.profile import ProfileState, ProfileUpdate
from app.services.client_session import ClientSession

settings = get_settings()

router = APIRouter(prefix="/profile", tags=["Profile"])


@router.get("", response_model=ProfileState)
async def read_profile(client: ClientSession = Depends(require_identity)):
    """
    Return the signed-in user's profile.

    Waits for the current load to settle (bounded by PROFILE_WAIT_SECONDS);
    `loading` is still true if it did not.

    Auth:
      - Requires a signed-in client session.
    """
    await client.profiles.wait_settled(settings.PROFILE_WAIT_SECONDS)
    return client.profiles.state()


@router.patch("", response_model=ProfileState)
async def update_profile(
    payload: ProfileUpdate,
    client: ClientSession = Depends(require_identity),
):
    """
    Merge the given fields into the profile.

    Always succeeds from the caller's point of view: the in-memory
    profile is updated even if the database write fails.
    """
    updates = payload.model_dump(exclude_unset=True, exclude_none=True)
    await client.profiles.save(updates)
    return client.profiles.state()
