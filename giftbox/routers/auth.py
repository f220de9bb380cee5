"""Authentication router.

Endpoints for parent registration, login, token refresh, logout and the
sign-up flow flags (phone verification, onboarding).
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from giftbox.core.dependencies import get_current_user
from giftbox.core.rate_limit import limiter
from giftbox.database import get_db
from giftbox.models.user import User
from giftbox.schemas.auth import (
    FlowStatusResponse,
    LoginRequest,
    MeResponse,
    RefreshRequest,
    RegisterRequest,
    TokenResponse,
)
from giftbox.services.account_service import (
    authenticate,
    issue_tokens,
    register_account,
    revoke_refresh_token,
    rotate_refresh_token,
)
from giftbox.services.onboarding_service import (
    get_user_flow_status,
    set_onboarding_completed,
    set_phone_verified,
)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/register", response_model=TokenResponse)
async def register(
    body: RegisterRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Register a new parent account.

    The parent profile and family group are created later in onboarding.
    """
    user = await register_account(db, body)
    return await issue_tokens(db, user)


@router.post("/login", response_model=TokenResponse)
@limiter.limit("20/minute")
async def login(
    request: Request,
    body: LoginRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    user = await authenticate(db, body.email, body.password)
    return await issue_tokens(db, user)


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    body: RefreshRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Exchange a refresh token for a new pair; the old one stops working."""
    return await rotate_refresh_token(db, body.refresh_token)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    body: RefreshRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    await revoke_refresh_token(db, body.refresh_token)
    return None


@router.get("/me", response_model=MeResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    return MeResponse(
        id=current_user.id,
        email=current_user.email,
        display_name=current_user.display_name,
        role=current_user.role,
    )


# ---------------------------------------------------------------------------
# Sign-up flow
# ---------------------------------------------------------------------------

@router.get("/flow-status", response_model=FlowStatusResponse)
async def flow_status(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    """Which sign-up steps the user has completed."""
    return await get_user_flow_status(db, current_user)


@router.post("/phone-verified", response_model=FlowStatusResponse)
async def mark_phone_verified(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    await set_phone_verified(db, current_user)
    return await get_user_flow_status(db, current_user)


@router.post("/onboarding-completed", response_model=FlowStatusResponse)
async def mark_onboarding_completed(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    await set_onboarding_completed(db, current_user)
    return await get_user_flow_status(db, current_user)
