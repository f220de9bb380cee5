"""Families router.

Endpoints for a parent's family code, family group and connected children.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from giftbox.core.dependencies import get_current_parent, require_parent
from giftbox.core.errors import FAMILY_GROUP_NOT_FOUND
from giftbox.database import get_db
from giftbox.models.parent import ParentProfile
from giftbox.models.user import User
from giftbox.schemas.child import ChildSummary
from giftbox.schemas.family import FamilyCodeResponse, FamilyGroupResponse
from giftbox.services.child_session_service import summarize_child
from giftbox.services.family_directory import (
    get_connected_children,
    get_family_group,
    get_or_create_family_code,
)

router = APIRouter(prefix="/families", tags=["Families"])


@router.post("", response_model=FamilyCodeResponse)
async def get_or_create_family(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(require_parent),
):
    """Return the parent's family code, creating the family if needed."""
    code = await get_or_create_family_code(db, current_user.id)
    return FamilyCodeResponse(invite_code=code)


@router.get("/me", response_model=FamilyGroupResponse)
async def get_own_family(
    db: Annotated[AsyncSession, Depends(get_db)],
    parent: ParentProfile = Depends(get_current_parent),
):
    """The family group owned by the current parent."""
    group = await get_family_group(db, parent.group_id) if parent.group_id else None
    if group is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=FAMILY_GROUP_NOT_FOUND,
        )
    await db.refresh(group)
    return group


@router.get("/me/children", response_model=list[ChildSummary])
async def list_connected_children(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(require_parent),
):
    """Children already paired with the parent's family, newest first."""
    children = await get_connected_children(db, current_user.id)
    return [summarize_child(child) for child in children]
