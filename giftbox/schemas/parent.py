import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict


class ParentProfileCreate(BaseModel):
    display_name: str | None = None
    photo_url: str | None = None


class ParentProfileUpdate(BaseModel):
    display_name: str | None = None
    photo_url: str | None = None


class ParentProfileResponse(BaseModel):
    uid: uuid.UUID
    email: str
    display_name: str
    group_id: str | None = None
    is_premium: bool
    photo_url: str | None = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)
