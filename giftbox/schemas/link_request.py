"""Schemas for child link requests and the parent's approval form.

Request bodies accept the mobile client's camelCase field names as well
as snake_case.
"""

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from giftbox.schemas.child import AVATAR_MAX_LENGTH, NICKNAME_MAX_LENGTH, ChildResponse

LinkRequestStatus = Literal["pending", "approved", "rejected"]

_TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class LinkRequestCreate(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    family_code: str = Field(min_length=1)
    child_nickname: str = Field(max_length=NICKNAME_MAX_LENGTH)
    child_avatar: str = Field(default="🐼", max_length=AVATAR_MAX_LENGTH)
    child_age: int | None = Field(default=None, ge=0)

    @field_validator("family_code", "child_nickname")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class LinkRequestResponse(BaseModel):
    id: str
    family_code: str
    child_nickname: str
    child_avatar: str
    child_age: int | None = None
    status: LinkRequestStatus
    rejection_reason: str | None = None
    parent_uid: uuid.UUID | None = None
    child_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


class LinkRequestCreated(LinkRequestResponse):
    # The id the device should remember as its single outstanding request.
    active_request_id: str


class RejectRequest(BaseModel):
    reason: str = ""


class ApprovalPayload(BaseModel):
    """Everything a parent confirms when approving a child.

    Validation that used to be repeated on every approval screen lives here:
    both mandatory consents, a non-blank nickname and numeric fields.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    confirmed_nickname: str = Field(max_length=NICKNAME_MAX_LENGTH)
    confirmed_age: int = Field(ge=0)
    service_terms_agreed: bool
    privacy_agreed: bool
    push_agreed: bool = False
    reward_enabled: bool = True
    base_coin_reward: int = Field(default=10, ge=0)
    approval_mode: Literal["manual", "auto"] = "manual"
    recovery_email: str = ""
    usage_start_time: str = Field(default="07:00", pattern=_TIME_PATTERN)
    usage_end_time: str = Field(default="20:00", pattern=_TIME_PATTERN)
    daily_max_completion: int = Field(default=10, ge=0)

    @field_validator("confirmed_nickname", "recovery_email", "usage_start_time", "usage_end_time", mode="before")
    @classmethod
    def _strip(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("confirmed_nickname")
    @classmethod
    def _nickname_required(cls, value: str) -> str:
        if not value:
            raise ValueError("nickname-required")
        return value

    @model_validator(mode="after")
    def _consents_required(self) -> "ApprovalPayload":
        if not (self.service_terms_agreed and self.privacy_agreed):
            raise ValueError("consent-required")
        return self

    def approval_settings(self) -> dict:
        """The subset stored on the child profile."""
        return {
            "reward_enabled": self.reward_enabled,
            "base_coin_reward": self.base_coin_reward,
            "approval_mode": self.approval_mode,
            "usage_start_time": self.usage_start_time,
            "usage_end_time": self.usage_end_time,
            "daily_max_completion": self.daily_max_completion,
            "push_agreed": self.push_agreed,
            "recovery_email": self.recovery_email,
        }


class ApprovalResponse(BaseModel):
    request: LinkRequestResponse
    child: ChildResponse
