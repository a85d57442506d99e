"""Reward notifications produced by one engagement pass.

The queue is owned by a single EngagementOutcome rather than shared
process-wide; the presentation layer drains it in FIFO order.
"""

from __future__ import annotations

import json
import logging
from collections import deque
from collections.abc import Iterator
from dataclasses import asdict, dataclass, field
from typing import Union

logger = logging.getLogger(__name__)

ENGAGEMENT_CHANNEL = "pubsub:engagement"


@dataclass(frozen=True)
class XPAwarded:
    amount: int
    reason: str
    kind: str = field(default="xp_awarded", init=False)


@dataclass(frozen=True)
class LevelUp:
    old_level: int
    new_level: int
    kind: str = field(default="level_up", init=False)


@dataclass(frozen=True)
class BadgeEarned:
    badge_id: str
    kind: str = field(default="badge_earned", init=False)


Notification = Union[XPAwarded, LevelUp, BadgeEarned]


class NotificationQueue:
    """FIFO of notifications. Empty dequeue/peek return None."""

    def __init__(self) -> None:
        self._items: deque[Notification] = deque()

    def enqueue(self, notification: Notification) -> None:
        self._items.append(notification)

    def dequeue(self) -> Notification | None:
        if not self._items:
            return None
        return self._items.popleft()

    def peek(self) -> Notification | None:
        if not self._items:
            return None
        return self._items[0]

    def to_list(self) -> list[dict]:
        return [asdict(n) for n in self._items]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Notification]:
        return iter(list(self._items))

    def __bool__(self) -> bool:
        return bool(self._items)


async def publish_notifications(
    redis: object | None,
    user_id: str,
    queue: NotificationQueue,
) -> bool:
    """Broadcast queued notifications for live clients. Best-effort.

    Returns True when the payload was handed to Redis.
    """
    if redis is None or not queue:
        return False
    try:
        await redis.publish(  # type: ignore[union-attr]
            ENGAGEMENT_CHANNEL,
            json.dumps({
                "user_id": user_id,
                "notifications": queue.to_list(),
            }),
        )
    except Exception:
        logger.warning("Failed to publish engagement notifications for user %s", user_id, exc_info=True)
        return False
    return True
