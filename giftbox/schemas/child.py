import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_AVATAR = "🐼"
DEFAULT_NICKNAME = "아이"

# Column sizes of children.nickname and children.avatar
NICKNAME_MAX_LENGTH = 50
AVATAR_MAX_LENGTH = 32


class ChildSummary(BaseModel):
    """What a child device and the parent's roster view need to render."""

    child_id: str
    nickname: str
    avatar: str
    age: int | None = None
    model_config = ConfigDict(from_attributes=True)


class ChildResponse(ChildSummary):
    family_code: str
    parent_uid: uuid.UUID
    approval_settings: dict = {}
    created_at: datetime
    updated_at: datetime


class ChildUpdate(BaseModel):
    nickname: str = Field(max_length=NICKNAME_MAX_LENGTH)
    avatar: str = Field(default=DEFAULT_AVATAR, max_length=AVATAR_MAX_LENGTH)
    age: int = Field(ge=3, le=6)

    @field_validator("nickname")
    @classmethod
    def _nickname_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("nickname-required")
        return value

    @field_validator("avatar")
    @classmethod
    def _avatar_default(cls, value: str) -> str:
        return value.strip() or DEFAULT_AVATAR
