# app/services/booking_flow.py
import logging
from typing import Callable

import httpx
from fastapi import HTTPException, status

from app.core.config import get_settings
from app.core.webhook_client import post_json
from app.schemas.booking import (
    MAX_HOURS,
    MIN_HOURS,
    BookingRequest,
    BookingState,
)
from app.schemas.profile import ProfileRead
from app.services.profile_store import ProfileStore

settings = get_settings()
logger = logging.getLogger(__name__)

DEFAULT_HOURS = 2


def profile_is_complete(profile: ProfileRead | None) -> bool:
    """Setup is done once name, address and phone are all filled in."""
    return bool(profile and profile.name and profile.address and profile.phone)


class BookingFlow:
    """
    Two-stage booking form of one client session.

    Stages:
      - "setup": collect name/address/phone (saved to the profile)
      - "scheduling": pick a date and a number of hours, then submit

    The stage is derived from the profile: it is recomputed, and the setup
    fields re-seeded, every time the profile changes.

    Submission posts a BookingRequest to the booking webhook exactly once.
    The outcome never blocks the flow: `done` is set either way and
    `delivery_failed` records whether the webhook call failed.
    """

    def __init__(
        self,
        profiles: ProfileStore,
        http_client: httpx.AsyncClient,
        webhook_url: str | None = None,
    ):
        self.profiles = profiles
        self._http = http_client
        self._webhook_url = webhook_url or settings.BOOKING_WEBHOOK_URL
        self._unsubscribe: Callable[[], None] | None = None
        self.reset()

    def attach(self) -> None:
        """Start following profile changes."""
        if self._unsubscribe is None:
            self._unsubscribe = self.profiles.subscribe(self.reseed)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def reset(self) -> None:
        """Back to a blank form (identity changed)."""
        self.date = ""
        self.hours = DEFAULT_HOURS
        self.sending = False
        self.done = False
        self.delivery_failed = False
        self.reseed(self.profiles.profile)

    def reseed(self, profile: ProfileRead | None) -> None:
        """Re-derive the stage and the setup fields from the profile."""
        self.stage = "scheduling" if profile_is_complete(profile) else "setup"
        self.name = profile.name if profile else ""
        self.address = profile.address if profile else ""
        self.phone = profile.phone if profile else ""

    # ----- setup -----

    async def submit_setup(self, name: str, address: str, phone: str) -> None:
        """
        Save the three setup fields, then move on to scheduling.

        The transition does not wait for remote confirmation.
        """
        self.name, self.address, self.phone = name, address, phone
        await self.profiles.save({"name": name, "address": address, "phone": phone})
        self.stage = "scheduling"

    # ----- scheduling -----

    def set_date(self, date: str) -> None:
        self.date = date.strip()

    def set_hours(self, hours: int) -> None:
        """Slider semantics: values outside 1..8 snap to the nearest bound."""
        self.hours = max(MIN_HOURS, min(MAX_HOURS, int(hours)))

    @property
    def can_submit(self) -> bool:
        return bool(self.date) and not self.sending

    def build_request(self) -> BookingRequest:
        profile = self.profiles.profile or ProfileRead()
        identity = self.profiles.identity
        return BookingRequest(
            name=profile.name,
            address=profile.address,
            phone=profile.phone,
            hours=str(self.hours),
            date=self.date,
            user_id=identity.id if identity else "",
        )

    async def submit(self) -> None:
        """
        Send the booking to the webhook.

        Raises:
            HTTPException(409): if no date is set or a submission is running.
        """
        if self.profiles.identity is None or not self.can_submit:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Booking cannot be submitted yet",
            )

        payload = self.build_request().to_wire()
        self.sending = True
        self.delivery_failed = False
        try:
            await post_json(self._http, self._webhook_url, payload)
        except httpx.HTTPError:
            logger.warning(
                "Booking webhook failed for %s", payload["userId"], exc_info=True
            )
            self.delivery_failed = True
        finally:
            self.sending = False
            self.done = True

    def state(self) -> BookingState:
        return BookingState(
            stage=self.stage,
            name=self.name,
            address=self.address,
            phone=self.phone,
            date=self.date,
            hours=self.hours,
            can_submit=self.can_submit,
            sending=self.sending,
            done=self.done,
            delivery_failed=self.delivery_failed,
        )
