"""Devices router.

Per-device session state for the child and parent apps: auto-login flags,
the current child session, the active link request and the chosen theme.
Devices are anonymous; the device id in the path is the only key.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from giftbox.core.dependencies import get_preference_store
from giftbox.core.errors import CHILD_NOT_FOUND
from giftbox.database import get_db
from giftbox.schemas.child import ChildSummary
from giftbox.schemas.session import LinkStatusResponse, SessionContext, SessionUpdate
from giftbox.services.child_session_service import (
    check_link_status,
    get_current_child_profile,
    resume_child_session,
)
from giftbox.services.preference_store import PreferenceStore

router = APIRouter(prefix="/devices/{device_id}", tags=["Devices"])


@router.get("/session", response_model=SessionContext)
async def get_session(
    device_id: str,
    prefs: Annotated[PreferenceStore, Depends(get_preference_store)],
):
    return await prefs.get_session_context(device_id)


@router.put("/session", response_model=SessionContext)
async def update_session(
    device_id: str,
    body: SessionUpdate,
    prefs: Annotated[PreferenceStore, Depends(get_preference_store)],
):
    """Update the fields present in the body; ``null`` clears an id."""
    return await prefs.update_session_context(device_id, body)


@router.delete("/session/active-request", status_code=status.HTTP_204_NO_CONTENT)
async def clear_active_request(
    device_id: str,
    prefs: Annotated[PreferenceStore, Depends(get_preference_store)],
):
    await prefs.clear_active_request(device_id)
    return None


@router.delete("/session/child", status_code=status.HTTP_204_NO_CONTENT)
async def clear_child_session(
    device_id: str,
    prefs: Annotated[PreferenceStore, Depends(get_preference_store)],
):
    await prefs.clear_child_session(device_id)
    return None


@router.post("/link-status", response_model=LinkStatusResponse)
async def refresh_link_status(
    device_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    prefs: Annotated[PreferenceStore, Depends(get_preference_store)],
):
    """Check the device's active request and apply its outcome."""
    return await check_link_status(db, prefs, device_id)


@router.post("/resume", response_model=ChildSummary | None)
async def resume_session(
    device_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    prefs: Annotated[PreferenceStore, Depends(get_preference_store)],
):
    """Sign straight back in as the stored child when auto-login allows it.

    Returns ``null`` when the device has to go through pairing again.
    """
    return await resume_child_session(db, prefs, device_id)


@router.get("/child", response_model=ChildSummary)
async def get_device_child(
    device_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    prefs: Annotated[PreferenceStore, Depends(get_preference_store)],
):
    """The child profile this device is signed in as."""
    child = await get_current_child_profile(db, prefs, device_id)
    if child is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=CHILD_NOT_FOUND,
        )
    return child
