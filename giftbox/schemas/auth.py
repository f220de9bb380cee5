import uuid

from pydantic import BaseModel, EmailStr, Field


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class RefreshRequest(BaseModel):
    refresh_token: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    display_name: str = ""


class MeResponse(BaseModel):
    id: uuid.UUID
    email: str
    display_name: str
    role: str


class FlowStatusResponse(BaseModel):
    phone_verified: bool
    onboarding_completed: bool
