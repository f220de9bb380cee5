"""Child Profile Watcher.

Live subscriptions to a child profile. Each subscriber gets an async
stream of ``ProfileEvent(profile, sync_state)`` and cancels it through
the subscription handle.

Sync states:
- ``offline``: served from the watcher's in-memory copy, not yet confirmed
- ``synced``: confirmed by a database read or by a write going through
  :meth:`ProfileWatcher.publish`
- ``error``: the database read failed; the event carries the cached copy

Ordering is eventually consistent, last write observed wins. A subscriber
that falls behind loses its oldest events, never the newest one.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Literal

from giftbox.schemas.child import ChildSummary

logger = logging.getLogger(__name__)

SyncState = Literal["synced", "offline", "error"]

ProfileLoader = Callable[[str], Awaitable[ChildSummary | None]]

MAX_PENDING_EVENTS = 16


@dataclass(frozen=True)
class ProfileEvent:
    profile: ChildSummary | None
    sync_state: SyncState

    def as_message(self) -> dict:
        return {
            "type": "profile",
            "sync_state": self.sync_state,
            "profile": self.profile.model_dump() if self.profile is not None else None,
        }


class ProfileSubscription:
    """Handle returned by :meth:`ProfileWatcher.subscribe`.

    Iterate with ``async for``; iteration ends after :meth:`cancel`.
    """

    def __init__(self, watcher: "ProfileWatcher", child_id: str) -> None:
        self.child_id = child_id
        self._watcher = watcher
        self._queue: asyncio.Queue[ProfileEvent | None] = asyncio.Queue(
            maxsize=MAX_PENDING_EVENTS
        )
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def push(self, event: ProfileEvent) -> None:
        if self._cancelled:
            return
        if self._queue.full():
            self._queue.get_nowait()
        self._queue.put_nowait(event)

    async def cancel(self) -> None:
        """Stop receiving events. Safe to call more than once."""
        if self._cancelled:
            return
        self._cancelled = True
        await self._watcher.unsubscribe(self)
        # Wake a consumer blocked in __anext__
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(None)

    def __aiter__(self) -> "ProfileSubscription":
        return self

    async def __anext__(self) -> ProfileEvent:
        event = await self._queue.get()
        if event is None:
            raise StopAsyncIteration
        return event


class ProfileWatcher:
    """Singleton registry of profile subscriptions, keyed by child id."""

    def __init__(self) -> None:
        self._subscriptions: dict[str, set[ProfileSubscription]] = {}
        self._cache: dict[str, ChildSummary] = {}
        self._lock = asyncio.Lock()

    async def subscribe(self, child_id: str, load: ProfileLoader) -> ProfileSubscription:
        """Register a subscriber and deliver the current snapshot.

        The cached copy (if any) is delivered first as ``offline``, then the
        result of ``load`` as ``synced``, or the cached copy as ``error`` when
        ``load`` raises.
        """
        subscription = ProfileSubscription(self, child_id)
        async with self._lock:
            self._subscriptions.setdefault(child_id, set()).add(subscription)
        logger.info("Profile watcher: subscribed to child %s", child_id)

        cached = self._cache.get(child_id)
        if cached is not None:
            subscription.push(ProfileEvent(cached, "offline"))

        try:
            profile = await load(child_id)
        except Exception:
            logger.exception("Profile watcher: failed to load child %s", child_id)
            subscription.push(ProfileEvent(cached, "error"))
            return subscription

        if not subscription.cancelled:
            self._remember(child_id, profile)
        subscription.push(ProfileEvent(profile, "synced"))
        return subscription

    async def unsubscribe(self, subscription: ProfileSubscription) -> None:
        async with self._lock:
            subscribers = self._subscriptions.get(subscription.child_id)
            if subscribers is not None:
                subscribers.discard(subscription)
                if not subscribers:
                    del self._subscriptions[subscription.child_id]
                    self._cache.pop(subscription.child_id, None)
        logger.info("Profile watcher: unsubscribed from child %s", subscription.child_id)

    async def publish(self, child_id: str, profile: ChildSummary | None) -> int:
        """Push a confirmed profile write to every subscriber of ``child_id``.

        Returns the number of subscribers notified. The in-memory copy is
        only kept while someone watches the profile.
        """
        subscribers = self._subscriptions.get(child_id, set()).copy()
        if subscribers:
            self._remember(child_id, profile)
        event = ProfileEvent(profile, "synced")
        for subscription in subscribers:
            subscription.push(event)
        return len(subscribers)

    async def subscriber_count(self, child_id: str) -> int:
        return len(self._subscriptions.get(child_id, set()))

    def _remember(self, child_id: str, profile: ChildSummary | None) -> None:
        if profile is None:
            self._cache.pop(child_id, None)
        else:
            self._cache[child_id] = profile


# Singleton instance
profile_watcher = ProfileWatcher()
