"""Link Request Store.

A child device asks to join a family by entering its code; the request
waits as ``pending`` until a parent of that family approves or rejects it.
"""

import logging
import random
import string
import time
import uuid
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from giftbox.config import settings
from giftbox.core.errors import INVALID_FAMILY_CODE, REQUEST_NOT_FOUND, REQUEST_NOT_PENDING
from giftbox.models.link_request import ChildLinkRequest
from giftbox.models.parent import ParentProfile
from giftbox.services.family_directory import (
    ensure_family_owner,
    get_family_group,
    normalize_code,
)

logger = logging.getLogger(__name__)

_ID_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def generate_document_id(prefix: str) -> str:
    """Generate an id like 'req_1739000000000_k3x9qa'."""
    millis = int(time.time() * 1000)
    suffix = "".join(random.choices(_ID_SUFFIX_ALPHABET, k=6))
    return f"{prefix}_{millis}_{suffix}"


async def create_child_link_request(
    db: AsyncSession,
    family_code: str,
    child_nickname: str,
    child_avatar: str,
    child_age: int | None = None,
) -> ChildLinkRequest:
    """Create a pending request for the family identified by ``family_code``.

    Raises:
        HTTPException 400 ``invalid-family-code``: no group has that code.
            Nothing is written in that case.
    """
    code = normalize_code(family_code)
    if not code or await get_family_group(db, code) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=INVALID_FAMILY_CODE,
        )

    now = datetime.now(timezone.utc)
    request = ChildLinkRequest(
        id=generate_document_id("req"),
        family_code=code,
        child_nickname=child_nickname.strip(),
        child_avatar=child_avatar,
        child_age=child_age,
        status="pending",
        created_at=now,
        updated_at=now,
    )
    db.add(request)
    await db.flush()
    await db.refresh(request)
    logger.info("Link request %s created for family %s", request.id, code)
    return request


async def get_child_link_request(
    db: AsyncSession, request_id: str
) -> ChildLinkRequest | None:
    """Point lookup. ``None`` means the request was lost or deleted."""
    return await db.get(ChildLinkRequest, request_id, populate_existing=True)


async def get_pending_requests_for_parent(
    db: AsyncSession, parent_uid: uuid.UUID
) -> list[ChildLinkRequest]:
    """Pending requests for the parent's own family, most recent first."""
    parent = await db.get(ParentProfile, parent_uid)
    if parent is None or not parent.group_id:
        return []

    result = await db.execute(
        select(ChildLinkRequest)
        .where(
            ChildLinkRequest.family_code == parent.group_id,
            ChildLinkRequest.status == "pending",
        )
        .order_by(ChildLinkRequest.created_at.desc(), ChildLinkRequest.id.desc())
    )
    return list(result.scalars().all())


async def load_pending_request(
    db: AsyncSession, request_id: str, parent_uid: uuid.UUID
) -> ChildLinkRequest:
    """Fetch a request a parent is about to resolve.

    Raises:
        HTTPException 404 ``request-not-found``
        HTTPException 403 ``not-family-owner`` (when ownership is enforced)
        HTTPException 409 ``request-not-pending``
    """
    request = await get_child_link_request(db, request_id)
    if request is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=REQUEST_NOT_FOUND,
        )

    if settings.ENFORCE_FAMILY_OWNERSHIP:
        await ensure_family_owner(db, parent_uid, request.family_code)

    if request.status != "pending":
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=REQUEST_NOT_PENDING,
        )
    return request


async def resolve_request(
    db: AsyncSession, request_id: str, **values
) -> None:
    """Move a request out of ``pending`` exactly once.

    The update only matches while the row is still pending, so a second
    approval or rejection racing this one finds nothing to change.
    """
    result = await db.execute(
        update(ChildLinkRequest)
        .where(
            ChildLinkRequest.id == request_id,
            ChildLinkRequest.status == "pending",
        )
        .values(updated_at=datetime.now(timezone.utc), **values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=REQUEST_NOT_PENDING,
        )


async def reject_child_link_request(
    db: AsyncSession,
    request_id: str,
    parent_uid: uuid.UUID,
    reason: str = "",
) -> ChildLinkRequest:
    """Reject a pending request. A blank reason gets the default message."""
    request = await load_pending_request(db, request_id, parent_uid)

    await resolve_request(
        db,
        request.id,
        status="rejected",
        parent_uid=parent_uid,
        rejection_reason=reason.strip() or settings.DEFAULT_REJECTION_REASON,
    )
    await db.refresh(request)
    logger.info("Link request %s rejected by parent %s", request.id, parent_uid)
    return request
