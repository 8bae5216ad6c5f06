# app/schemas/booking.py
from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic import Field as PydanticField
from sqlmodel import SQLModel, Field

Stage = Literal["setup", "scheduling"]

MIN_HOURS = 1
MAX_HOURS = 8


class BookingSetup(SQLModel):
    """
    First-time setup form.

    Validation rules:
      - every field must be present and not blank
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(max_length=200)
    address: str = Field(max_length=300)
    phone: str = Field(max_length=50)

    @field_validator("name", "address", "phone")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v


class BookingSchedule(SQLModel):
    """
    Scheduling form edits. Omitted fields keep their current value.

    hours follows the slider bounds (1..8); anything else is a 422.
    """

    model_config = ConfigDict(extra="forbid")

    date: str | None = None
    hours: int | None = Field(default=None, ge=MIN_HOURS, le=MAX_HOURS)


class BookingRequest(BaseModel):
    """
    Payload POSTed to the booking webhook.

    Wire format is fixed by the automation scenario:
      - hours and date are sent as text
      - the owner id is sent as "userId"
    """

    name: str
    address: str
    phone: str
    hours: str
    date: str
    user_id: str = PydanticField(serialization_alias="userId")

    def to_wire(self) -> dict[str, str]:
        return self.model_dump(by_alias=True)


class BookingState(SQLModel):
    stage: Stage
    name: str
    address: str
    phone: str
    date: str
    hours: int
    can_submit: bool
    sending: bool
    done: bool
    delivery_failed: bool = False
