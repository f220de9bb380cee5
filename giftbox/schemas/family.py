import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict


class FamilyCodeResponse(BaseModel):
    invite_code: str


class FamilyGroupResponse(BaseModel):
    invite_code: str
    owner_id: uuid.UUID
    children: list[str] = []
    settings: dict = {}
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)
