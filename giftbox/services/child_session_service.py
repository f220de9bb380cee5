"""Child device sessions.

A child device has no account. It remembers which link request it is
waiting on and, once approved, which child profile it belongs to.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from giftbox.models.child import ChildProfile
from giftbox.schemas.child import DEFAULT_AVATAR, DEFAULT_NICKNAME, ChildSummary
from giftbox.schemas.session import LinkStatusResponse
from giftbox.services.link_request_service import get_child_link_request
from giftbox.services.preference_store import PreferenceStore

logger = logging.getLogger(__name__)


async def get_child_profile(db: AsyncSession, child_id: str) -> ChildProfile | None:
    return await db.get(ChildProfile, child_id, populate_existing=True)


async def is_child_session_valid(db: AsyncSession, child_id: str) -> bool:
    """True when ``child_id`` still names an existing child profile."""
    return await get_child_profile(db, child_id) is not None


def summarize_child(child: ChildProfile) -> ChildSummary:
    return ChildSummary(
        child_id=child.child_id,
        nickname=child.nickname or DEFAULT_NICKNAME,
        avatar=child.avatar or DEFAULT_AVATAR,
        age=child.age,
    )


async def get_current_child_profile(
    db: AsyncSession, prefs: PreferenceStore, device_id: str
) -> ChildSummary | None:
    """The child profile the device is signed in as, if any."""
    child_id = await prefs.get_child_session_id(device_id)
    if not child_id:
        return None

    child = await get_child_profile(db, child_id)
    if child is None:
        return None
    return summarize_child(child)


async def resume_child_session(
    db: AsyncSession, prefs: PreferenceStore, device_id: str
) -> ChildSummary | None:
    """Skip pairing when auto-login is on and the stored child still exists.

    A stored id whose profile is gone is cleared.
    """
    if not await prefs.get_child_auto_login_enabled(device_id):
        return None

    child_id = await prefs.get_child_session_id(device_id)
    if not child_id:
        return None

    child = await get_child_profile(db, child_id)
    if child is None:
        logger.info("Clearing stale child session %s on device %s", child_id, device_id)
        await prefs.clear_child_session(device_id)
        return None
    return summarize_child(child)


async def check_link_status(
    db: AsyncSession, prefs: PreferenceStore, device_id: str
) -> LinkStatusResponse:
    """Re-fetch the device's active request and act on its outcome.

    approved: the device becomes that child (session id stored, child
    auto-login on) and the pointer is cleared. rejected or missing: the
    pointer is cleared so the child can ask again. pending: nothing changes.
    """
    request_id = await prefs.get_active_request_id(device_id)
    if not request_id:
        return LinkStatusResponse(state="none")

    request = await get_child_link_request(db, request_id)
    if request is None:
        await prefs.clear_active_request(device_id)
        return LinkStatusResponse(state="missing", request_id=request_id)

    if request.status == "approved":
        if request.child_id:
            await prefs.set_child_session_id(device_id, request.child_id)
            await prefs.set_child_auto_login_enabled(device_id, True)
        await prefs.clear_active_request(device_id)
        logger.info("Device %s paired as child %s", device_id, request.child_id)
        return LinkStatusResponse(
            state="approved", request_id=request_id, child_id=request.child_id,
        )

    if request.status == "rejected":
        await prefs.clear_active_request(device_id)
        return LinkStatusResponse(
            state="rejected",
            request_id=request_id,
            rejection_reason=request.rejection_reason,
        )

    return LinkStatusResponse(state="pending", request_id=request_id)
