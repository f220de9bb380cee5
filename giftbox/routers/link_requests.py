"""Link requests router.

Child devices submit pairing requests with a family code; parents list,
approve and reject the requests addressed to their family.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from giftbox.config import settings
from giftbox.core.dependencies import get_device_id, get_preference_store, require_parent
from giftbox.core.errors import REQUEST_NOT_FOUND
from giftbox.core.rate_limit import limiter
from giftbox.database import get_db
from giftbox.models.user import User
from giftbox.schemas.child import ChildResponse
from giftbox.schemas.link_request import (
    ApprovalPayload,
    ApprovalResponse,
    LinkRequestCreate,
    LinkRequestCreated,
    LinkRequestResponse,
    RejectRequest,
)
from giftbox.services.approval_service import approve_child_link_request
from giftbox.services.link_request_service import (
    create_child_link_request,
    get_child_link_request,
    get_pending_requests_for_parent,
    reject_child_link_request,
)
from giftbox.services.preference_store import PreferenceStore

router = APIRouter(prefix="/link-requests", tags=["Link Requests"])


@router.post("", response_model=LinkRequestCreated, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.LINK_REQUEST_RATE_LIMIT)
async def create_link_request(
    request: Request,
    body: LinkRequestCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    prefs: Annotated[PreferenceStore, Depends(get_preference_store)],
    device_id: Annotated[str | None, Depends(get_device_id)],
):
    """Ask to join the family behind ``family_code``.

    When the caller identifies its device (``X-Device-Id``), the new request
    replaces the device's active request.
    """
    link_request = await create_child_link_request(
        db,
        family_code=body.family_code,
        child_nickname=body.child_nickname,
        child_avatar=body.child_avatar,
        child_age=body.child_age,
    )
    if device_id is not None:
        await prefs.set_active_request_id(device_id, link_request.id)

    return LinkRequestCreated(
        **LinkRequestResponse.model_validate(link_request).model_dump(),
        active_request_id=link_request.id,
    )


@router.get("/pending", response_model=list[LinkRequestResponse])
async def list_pending_requests(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(require_parent),
):
    """Pending requests for the parent's family, most recent first."""
    return await get_pending_requests_for_parent(db, current_user.id)


@router.get("/{request_id}", response_model=LinkRequestResponse)
async def get_link_request(
    request_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Status of a single request, polled by the child device."""
    link_request = await get_child_link_request(db, request_id)
    if link_request is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=REQUEST_NOT_FOUND,
        )
    return link_request


@router.post("/{request_id}/approve", response_model=ApprovalResponse)
async def approve_link_request(
    request_id: str,
    body: ApprovalPayload,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(require_parent),
):
    """Approve a pending request, creating the child profile."""
    link_request, child = await approve_child_link_request(
        db, request_id, current_user.id, body,
    )
    return ApprovalResponse(
        request=LinkRequestResponse.model_validate(link_request),
        child=ChildResponse.model_validate(child),
    )


@router.post("/{request_id}/reject", response_model=LinkRequestResponse)
async def reject_link_request(
    request_id: str,
    body: RejectRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(require_parent),
):
    """Reject a pending request with an optional reason."""
    return await reject_child_link_request(db, request_id, current_user.id, body.reason)
