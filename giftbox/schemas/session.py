from typing import Literal

from pydantic import BaseModel

ThemeId = Literal["ant_and_grasshopper", "tortoise_and_hare", "dolphin_and_fish"]

LinkState = Literal["none", "pending", "approved", "rejected", "missing"]


class SessionContext(BaseModel):
    """Everything a device remembers between launches."""

    auto_login_enabled: bool = True
    child_auto_login_enabled: bool = True
    child_session_id: str | None = None
    active_request_id: str | None = None
    premium_active: bool = False
    selected_theme: ThemeId = "ant_and_grasshopper"


class SessionUpdate(BaseModel):
    auto_login_enabled: bool | None = None
    child_auto_login_enabled: bool | None = None
    child_session_id: str | None = None
    active_request_id: str | None = None
    premium_active: bool | None = None
    selected_theme: ThemeId | None = None


class LinkStatusResponse(BaseModel):
    state: LinkState
    request_id: str | None = None
    child_id: str | None = None
    rejection_reason: str | None = None
