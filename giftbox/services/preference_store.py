"""Device preference store.

Each device keeps a handful of flags between launches: auto-login for the
parent and child apps, which child profile is current, the single
outstanding link request, the premium flag and the parent's theme. They
live in one Redis hash per device. Every getter returns an explicit
default when the key is unset; read failures are logged and fall back to
that default, write failures are logged and dropped.
"""

import logging

import redis.asyncio as aioredis

from giftbox.config import settings
from giftbox.core.redis_client import device_hash_key
from giftbox.schemas.session import SessionContext, SessionUpdate

logger = logging.getLogger(__name__)

AUTO_LOGIN_KEY = "auto_login_enabled"
CHILD_AUTO_LOGIN_KEY = "child_auto_login_enabled"
CHILD_SESSION_ID_KEY = "child_session_id"
ACTIVE_REQUEST_ID_KEY = "active_child_link_request_id"
PREMIUM_SUBSCRIPTION_KEY = "premium_subscription_active"
SELECTED_THEME_KEY = "parent_selected_theme"

THEMES = ("ant_and_grasshopper", "tortoise_and_hare", "dolphin_and_fish")


class PreferenceStore:
    """String key/value preferences scoped to a device id."""

    def __init__(self, redis: aioredis.Redis | None) -> None:
        self._redis = redis

    async def _get(self, device_id: str, key: str) -> str | None:
        if self._redis is None:
            return None
        return await self._redis.hget(device_hash_key(device_id), key)

    async def _set(self, device_id: str, key: str, value: str) -> None:
        if self._redis is None:
            logger.warning("Preference %s not saved for device %s: no store", key, device_id)
            return
        try:
            await self._redis.hset(device_hash_key(device_id), key, value)
        except Exception:
            logger.exception("Error saving preference %s for device %s", key, device_id)

    async def _delete(self, device_id: str, key: str) -> None:
        if self._redis is None:
            return
        try:
            await self._redis.hdel(device_hash_key(device_id), key)
        except Exception:
            logger.exception("Error clearing preference %s for device %s", key, device_id)

    async def _get_flag(self, device_id: str, key: str, default: bool) -> bool:
        try:
            value = await self._get(device_id, key)
        except Exception:
            logger.exception("Error reading preference %s for device %s", key, device_id)
            return default
        if value is None:
            return default
        return value == "true"

    async def _get_optional(self, device_id: str, key: str) -> str | None:
        try:
            return await self._get(device_id, key)
        except Exception:
            logger.exception("Error reading preference %s for device %s", key, device_id)
            return None

    # -- Auto-login ---------------------------------------------------------

    async def get_auto_login_enabled(self, device_id: str) -> bool:
        return await self._get_flag(device_id, AUTO_LOGIN_KEY, True)

    async def set_auto_login_enabled(self, device_id: str, enabled: bool) -> None:
        await self._set(device_id, AUTO_LOGIN_KEY, str(enabled).lower())

    async def get_child_auto_login_enabled(self, device_id: str) -> bool:
        return await self._get_flag(device_id, CHILD_AUTO_LOGIN_KEY, True)

    async def set_child_auto_login_enabled(self, device_id: str, enabled: bool) -> None:
        await self._set(device_id, CHILD_AUTO_LOGIN_KEY, str(enabled).lower())

    # -- Child session ------------------------------------------------------

    async def get_child_session_id(self, device_id: str) -> str | None:
        return await self._get_optional(device_id, CHILD_SESSION_ID_KEY)

    async def set_child_session_id(self, device_id: str, child_id: str) -> None:
        await self._set(device_id, CHILD_SESSION_ID_KEY, child_id)

    async def clear_child_session(self, device_id: str) -> None:
        await self._delete(device_id, CHILD_SESSION_ID_KEY)

    # -- Active link request (at most one per device) -----------------------

    async def get_active_request_id(self, device_id: str) -> str | None:
        return await self._get_optional(device_id, ACTIVE_REQUEST_ID_KEY)

    async def set_active_request_id(self, device_id: str, request_id: str) -> None:
        await self._set(device_id, ACTIVE_REQUEST_ID_KEY, request_id)

    async def clear_active_request(self, device_id: str) -> None:
        await self._delete(device_id, ACTIVE_REQUEST_ID_KEY)

    # -- Subscription & theme -----------------------------------------------

    async def get_premium_active(self, device_id: str) -> bool:
        return await self._get_flag(device_id, PREMIUM_SUBSCRIPTION_KEY, False)

    async def set_premium_active(self, device_id: str, active: bool) -> None:
        await self._set(device_id, PREMIUM_SUBSCRIPTION_KEY, str(active).lower())

    async def get_selected_theme(self, device_id: str) -> str:
        value = await self._get_optional(device_id, SELECTED_THEME_KEY)
        if value in THEMES:
            return value
        return settings.DEFAULT_THEME

    async def set_selected_theme(self, device_id: str, theme: str) -> None:
        await self._set(device_id, SELECTED_THEME_KEY, theme)

    # -- Whole context ------------------------------------------------------

    async def get_session_context(self, device_id: str) -> SessionContext:
        return SessionContext(
            auto_login_enabled=await self.get_auto_login_enabled(device_id),
            child_auto_login_enabled=await self.get_child_auto_login_enabled(device_id),
            child_session_id=await self.get_child_session_id(device_id),
            active_request_id=await self.get_active_request_id(device_id),
            premium_active=await self.get_premium_active(device_id),
            selected_theme=await self.get_selected_theme(device_id),
        )

    async def update_session_context(
        self, device_id: str, update: SessionUpdate
    ) -> SessionContext:
        """Apply the fields present in ``update``; an explicit null clears an id."""
        data = update.model_dump(exclude_unset=True)

        if "auto_login_enabled" in data and data["auto_login_enabled"] is not None:
            await self.set_auto_login_enabled(device_id, data["auto_login_enabled"])
        if "child_auto_login_enabled" in data and data["child_auto_login_enabled"] is not None:
            await self.set_child_auto_login_enabled(device_id, data["child_auto_login_enabled"])
        if "premium_active" in data and data["premium_active"] is not None:
            await self.set_premium_active(device_id, data["premium_active"])
        if "selected_theme" in data and data["selected_theme"] is not None:
            await self.set_selected_theme(device_id, data["selected_theme"])

        if "child_session_id" in data:
            if data["child_session_id"]:
                await self.set_child_session_id(device_id, data["child_session_id"])
            else:
                await self.clear_child_session(device_id)
        if "active_request_id" in data:
            if data["active_request_id"]:
                await self.set_active_request_id(device_id, data["active_request_id"])
            else:
                await self.clear_active_request(device_id)

        return await self.get_session_context(device_id)
