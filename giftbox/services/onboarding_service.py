"""Parent onboarding.

Tracks where a signed-up user is in the sign-up flow (phone verification,
onboarding) and creates the parent profile at the end of it.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from giftbox.models.parent import ParentProfile
from giftbox.models.user import User
from giftbox.schemas.auth import FlowStatusResponse

logger = logging.getLogger(__name__)


async def create_parent_profile(
    db: AsyncSession,
    user: User,
    display_name: str | None = None,
    photo_url: str | None = None,
) -> ParentProfile:
    """Create ``parents/{uid}`` for the user; an existing profile is returned as is."""
    parent = await db.get(ParentProfile, user.id)
    if parent is not None:
        return parent

    parent = ParentProfile(
        uid=user.id,
        email=user.email,
        display_name=display_name if display_name is not None else user.display_name,
        group_id=None,
        is_premium=False,
        photo_url=photo_url or None,
    )
    db.add(parent)
    await db.flush()
    await db.refresh(parent)
    logger.info("Parent profile created for user %s", user.id)
    return parent


async def get_user_flow_status(db: AsyncSession, user: User) -> FlowStatusResponse:
    """Where the user is in sign-up.

    Users who already own a parent profile finished onboarding before the
    flags existed; they are marked complete on first check.
    """
    phone_verified = bool(user.phone_verified)
    onboarding_completed = bool(user.onboarding_completed)

    if not onboarding_completed and await db.get(ParentProfile, user.id) is not None:
        phone_verified = True
        onboarding_completed = True
        user.phone_verified = True
        user.onboarding_completed = True
        user.updated_at = datetime.now(timezone.utc)
        await db.flush()

    return FlowStatusResponse(
        phone_verified=phone_verified,
        onboarding_completed=onboarding_completed,
    )


async def set_phone_verified(db: AsyncSession, user: User) -> None:
    now = datetime.now(timezone.utc)
    user.phone_verified = True
    user.phone_verified_at = now
    user.updated_at = now
    await db.flush()


async def set_onboarding_completed(db: AsyncSession, user: User) -> None:
    now = datetime.now(timezone.utc)
    user.onboarding_completed = True
    user.onboarding_completed_at = now
    user.updated_at = now
    await db.flush()
