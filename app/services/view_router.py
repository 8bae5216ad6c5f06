# app/services/view_router.py
from typing import get_args

from app.schemas.view import Tab

TABS: tuple[str, ...] = get_args(Tab)
DEFAULT_TAB = "home"


class ViewRouter:
    """Active tab and settings overlay flag. Pure state, nothing persisted."""

    def __init__(self):
        self.tab: str = DEFAULT_TAB
        self.settings_open = False

    def set_tab(self, tab: str) -> None:
        if tab not in TABS:
            raise ValueError(f"unknown tab: {tab}")
        self.tab = tab

    def open_settings(self) -> None:
        self.settings_open = True

    def close_settings(self) -> None:
        self.settings_open = False

    def reset(self) -> None:
        self.tab = DEFAULT_TAB
        self.settings_open = False
