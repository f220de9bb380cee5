"""Approval Workflow.

Turns a pending link request into a live child profile: creates the
child, appends it to the family roster and marks the request approved.
All three writes share the caller's transaction, so they land together
or not at all.
"""

import logging
import uuid
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from giftbox.core.errors import FAMILY_GROUP_NOT_FOUND
from giftbox.models.child import ChildProfile
from giftbox.models.family_group import FamilyGroup
from giftbox.models.link_request import ChildLinkRequest
from giftbox.schemas.link_request import ApprovalPayload
from giftbox.services.link_request_service import (
    generate_document_id,
    load_pending_request,
    resolve_request,
)

logger = logging.getLogger(__name__)


async def approve_child_link_request(
    db: AsyncSession,
    request_id: str,
    parent_uid: uuid.UUID,
    payload: ApprovalPayload,
) -> tuple[ChildLinkRequest, ChildProfile]:
    """Approve a pending request and create the child it describes.

    Raises:
        HTTPException 404 ``request-not-found`` / ``family-group-not-found``
        HTTPException 403 ``not-family-owner``
        HTTPException 409 ``request-not-pending``: already approved or
            rejected, including by a concurrent call.
    """
    request = await load_pending_request(db, request_id, parent_uid)

    group = await db.get(FamilyGroup, request.family_code, with_for_update=True)
    if group is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=FAMILY_GROUP_NOT_FOUND,
        )

    child_id = generate_document_id("child")
    now = datetime.now(timezone.utc)

    # Claim the request first; a concurrent approval fails here before
    # anything else is written.
    await resolve_request(
        db,
        request.id,
        status="approved",
        parent_uid=parent_uid,
        child_id=child_id,
        parent_approval={**payload.model_dump(), "approved_at": now.isoformat()},
    )

    child = ChildProfile(
        child_id=child_id,
        family_code=request.family_code,
        nickname=payload.confirmed_nickname,
        avatar=request.child_avatar,
        age=payload.confirmed_age,
        parent_uid=parent_uid,
        approval_settings=payload.approval_settings(),
        created_at=now,
        updated_at=now,
    )
    db.add(child)

    if child_id not in group.children:
        group.children = [*group.children, child_id]
    group.updated_at = now

    await db.flush()
    await db.refresh(child)
    await db.refresh(request)
    logger.info(
        "Link request %s approved by parent %s, child %s joined family %s",
        request.id, parent_uid, child_id, request.family_code,
    )
    return request, child
