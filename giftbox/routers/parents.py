"""Parents router.

The ``parents/{uid}`` profile of the signed-in parent. It is created at the
end of onboarding and holds the family code once a family exists.
"""

from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from giftbox.core.dependencies import get_current_parent, require_parent
from giftbox.database import get_db
from giftbox.models.parent import ParentProfile
from giftbox.models.user import User
from giftbox.schemas.parent import (
    ParentProfileCreate,
    ParentProfileResponse,
    ParentProfileUpdate,
)
from giftbox.services.onboarding_service import create_parent_profile

router = APIRouter(prefix="/parents", tags=["Parents"])


@router.post("/me", response_model=ParentProfileResponse)
async def create_own_profile(
    body: ParentProfileCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(require_parent),
):
    """Create the parent profile. Calling it again returns the existing one."""
    return await create_parent_profile(
        db, current_user, display_name=body.display_name, photo_url=body.photo_url,
    )


@router.get("/me", response_model=ParentProfileResponse)
async def get_own_profile(parent: ParentProfile = Depends(get_current_parent)):
    return parent


@router.put("/me", response_model=ParentProfileResponse)
async def update_own_profile(
    body: ParentProfileUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(require_parent),
    parent: ParentProfile = Depends(get_current_parent),
):
    """Edit display name and photo; the display name is mirrored on the user."""
    update_data = body.model_dump(exclude_unset=True)
    if update_data.get("display_name") is not None:
        parent.display_name = update_data["display_name"]
        current_user.display_name = update_data["display_name"]
        current_user.updated_at = datetime.now(timezone.utc)
    if "photo_url" in update_data:
        parent.photo_url = update_data["photo_url"] or None
        current_user.photo_url = parent.photo_url or ""

    await db.flush()
    await db.refresh(parent)
    return parent
