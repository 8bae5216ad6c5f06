# app/schemas/view.py
from typing import Literal

from pydantic import ConfigDict
from sqlmodel import SQLModel

Tab = Literal["home", "booking", "news"]
Theme = Literal["dark", "light"]


class TabUpdate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    tab: Tab


class ViewStateRead(SQLModel):
    """
    Shell state: which tab is shown and whether settings are open.

    theme, greeting_name and warning are derived from the profile.
    """

    tab: Tab
    settings_open: bool
    theme: Theme
    greeting_name: str
    photo_url: str | None = None
    warning: str | None = None
