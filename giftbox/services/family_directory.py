"""Family Directory.

Maps a human-entered family code to the group that owns a child roster,
and mints new codes for parents who do not have one yet.
"""

import logging
import random
import string
import uuid

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from giftbox.config import settings
from giftbox.core.errors import INVITE_CODE_EXHAUSTED, NOT_FAMILY_OWNER
from giftbox.models.child import ChildProfile
from giftbox.models.family_group import FamilyGroup
from giftbox.models.parent import ParentProfile

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_invite_code() -> str:
    """Generate a family code like 'A1B2C3'."""
    return "".join(random.choices(CODE_ALPHABET, k=settings.INVITE_CODE_LENGTH))


def normalize_code(code: str) -> str:
    return code.strip().upper()


def default_group_settings() -> dict:
    return {
        "selected_theme": settings.DEFAULT_THEME,
        "allow_auto_approval": False,
    }


async def get_family_group(db: AsyncSession, code: str) -> FamilyGroup | None:
    return await db.get(FamilyGroup, normalize_code(code))


async def is_code_unique(db: AsyncSession, code: str) -> bool:
    """True when no family group uses ``code`` yet."""
    result = await db.execute(
        select(FamilyGroup.invite_code).where(FamilyGroup.invite_code == code)
    )
    return result.scalar_one_or_none() is None


async def create_family_group(db: AsyncSession, owner_id: uuid.UUID) -> str:
    """Create a group with a fresh unique code and link it to the parent.

    Codes are regenerated on collision. The parent row is created if it
    does not exist yet, otherwise only its ``group_id`` changes.
    """
    for _ in range(settings.INVITE_CODE_MAX_ATTEMPTS):
        code = generate_invite_code()
        if await is_code_unique(db, code):
            break
    else:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=INVITE_CODE_EXHAUSTED,
        )

    group = FamilyGroup(
        invite_code=code,
        owner_id=owner_id,
        children=[],
        settings=default_group_settings(),
    )
    db.add(group)

    parent = await db.get(ParentProfile, owner_id)
    if parent is None:
        parent = ParentProfile(uid=owner_id)
        db.add(parent)
    parent.group_id = code

    await db.flush()
    await db.refresh(group)
    await db.refresh(parent)
    logger.info("Family group %s created for parent %s", code, owner_id)
    return code


async def get_or_create_family_code(db: AsyncSession, owner_id: uuid.UUID) -> str:
    """Return the parent's code, creating a group when it is missing.

    A ``group_id`` that points at a group which no longer exists is
    replaced by a new group.
    """
    parent = await db.get(ParentProfile, owner_id)
    existing_code = parent.group_id if parent is not None else None

    if existing_code:
        if await get_family_group(db, existing_code) is not None:
            return existing_code
        logger.warning(
            "Parent %s points at missing group %s, creating a new one",
            owner_id, existing_code,
        )

    return await create_family_group(db, owner_id)


async def ensure_family_owner(
    db: AsyncSession, owner_id: uuid.UUID, family_code: str
) -> None:
    """Raise 403 unless ``family_code`` is the parent's own family."""
    parent = await db.get(ParentProfile, owner_id)
    if parent is None or not parent.group_id or parent.group_id != family_code:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=NOT_FAMILY_OWNER,
        )


async def get_connected_children(
    db: AsyncSession, owner_id: uuid.UUID
) -> list[ChildProfile]:
    """Children attached to the parent's family, newest first."""
    parent = await db.get(ParentProfile, owner_id)
    if parent is None or not parent.group_id:
        return []

    result = await db.execute(
        select(ChildProfile)
        .where(ChildProfile.family_code == parent.group_id)
        .order_by(ChildProfile.created_at.desc())
    )
    return list(result.scalars().all())
