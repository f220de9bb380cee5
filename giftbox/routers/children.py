"""Children router.

Child profiles are created by approving a link request. This router reads
them, lets the owning parent edit them and streams live profile updates
to child devices over a WebSocket.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession

from giftbox.core.dependencies import require_parent
from giftbox.core.errors import CHILD_NOT_FOUND
from giftbox.database import get_db
from giftbox.models.user import User
from giftbox.schemas.child import ChildSummary, ChildUpdate
from giftbox.services.child_session_service import get_child_profile, summarize_child
from giftbox.services.family_directory import ensure_family_owner
from giftbox.services.profile_watcher import ProfileSubscription, profile_watcher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/children", tags=["Children"])


@router.get("/{child_id}", response_model=ChildSummary)
async def get_child(
    child_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Get the profile a child device renders."""
    child = await get_child_profile(db, child_id)
    if child is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=CHILD_NOT_FOUND,
        )
    return summarize_child(child)


@router.put("/{child_id}", response_model=ChildSummary)
async def update_child(
    child_id: str,
    body: ChildUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(require_parent),
):
    """Edit a child's nickname, avatar and age.

    Only the parent who owns the child's family may edit. Watchers of the
    profile receive the new version once it is committed.
    """
    child = await get_child_profile(db, child_id)
    if child is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=CHILD_NOT_FOUND,
        )
    await ensure_family_owner(db, current_user.id, child.family_code)

    child.nickname = body.nickname
    child.avatar = body.avatar
    child.age = body.age
    child.updated_at = datetime.now(timezone.utc)
    # Watchers only hear about committed writes
    await db.commit()
    await db.refresh(child)

    summary = summarize_child(child)
    await profile_watcher.publish(child_id, summary)
    logger.info("Child %s updated by parent %s", child_id, current_user.id)
    return summary


async def _forward_events(websocket: WebSocket, subscription: ProfileSubscription) -> None:
    async for event in subscription:
        await websocket.send_json(event.as_message())


@router.websocket("/{child_id}/ws")
async def child_profile_websocket(
    websocket: WebSocket,
    child_id: str,
    db: AsyncSession = Depends(get_db),
):
    """Live profile stream for a child device.

    Protocol:
    1. Client connects; no authentication, the child id is the key
    2. Server sends ``{type: "profile", sync_state, profile}`` for the
       current snapshot and again after every change
    3. Client can send "ping" → server replies "pong"
    """

    async def _load(requested_id: str) -> ChildSummary | None:
        child = await get_child_profile(db, requested_id)
        return summarize_child(child) if child is not None else None

    await websocket.accept()
    subscription = None
    forwarder = None

    try:
        subscription = await profile_watcher.subscribe(child_id, _load)
        forwarder = asyncio.create_task(_forward_events(websocket, subscription))

        while True:
            data = await websocket.receive_text()
            if data == "ping":
                await websocket.send_json({
                    "type": "pong",
                    "server_time": datetime.now(timezone.utc).isoformat(),
                })

    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("Profile stream for child %s failed", child_id)
        try:
            await websocket.close(code=1011)
        except RuntimeError:
            pass
    finally:
        if subscription is not None:
            await subscription.cancel()
        if forwarder is not None:
            forwarder.cancel()
            try:
                await forwarder
            except (asyncio.CancelledError, WebSocketDisconnect, RuntimeError):
                pass
