# app/routers/booking.py
from fastapi import APIRouter, Depends

from app.core.auth import require_identity
from app.core.config import get_settings
from app.schemas.booking import BookingSchedule, BookingSetup, BookingState
from app.services.client_session import ClientSession

settings = get_settings()

router = APIRouter(prefix="/booking", tags=["Booking"])


@router.get("", response_model=BookingState)
async def read_booking(client: ClientSession = Depends(require_identity)):
    """
    Booking form state.

    stage="setup" until name, address and phone are on the profile.
    """
    await client.profiles.wait_settled(settings.PROFILE_WAIT_SECONDS)
    return client.booking.state()


@router.post("/setup", response_model=BookingState)
async def submit_setup(
    payload: BookingSetup,
    client: ClientSession = Depends(require_identity),
):
    """
    Save name/address/phone to the profile and continue to scheduling.
    """
    await client.booking.submit_setup(payload.name, payload.address, payload.phone)
    return client.booking.state()


@router.put("/schedule", response_model=BookingState)
async def update_schedule(
    payload: BookingSchedule,
    client: ClientSession = Depends(require_identity),
):
    """
    Set the preferred date and/or the number of hours (1..8).
    """
    if payload.date is not None:
        client.booking.set_date(payload.date)
    if payload.hours is not None:
        client.booking.set_hours(payload.hours)
    return client.booking.state()


@router.post("/submit", response_model=BookingState)
async def submit_booking(client: ClientSession = Depends(require_identity)):
    """
    Send the booking to the booking webhook.

    Errors:
      - 409 if no date is set or a submission is still running

    A failing webhook does not fail the request; see `delivery_failed`.
    """
    await client.booking.submit()
    return client.booking.state()
