"""In-process fan-out of new readings to live subscribers."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Set
from uuid import uuid4

logger = logging.getLogger(__name__)


class Subscription:
    """One live connection's inbox of pending events."""

    def __init__(self) -> None:
        self.id = uuid4().hex[:12]
        self.queue: asyncio.Queue[Dict[str, Any]] = asyncio.Queue()

    async def next_message(self) -> Dict[str, Any]:
        return await self.queue.get()


class Broadcaster:
    """Registry of active subscriptions.

    All mutation happens on the event loop thread, and ``publish`` never
    awaits, so the registry needs no further locking. Events are not
    retained: subscribers that join later never see earlier events.
    """

    def __init__(self) -> None:
        self._subscribers: Set[Subscription] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> Subscription:
        subscription = Subscription()
        self._subscribers.add(subscription)
        logger.info(
            "Client connected",
            extra={
                "subscriber_id": subscription.id,
                "subscriber_count": self.subscriber_count,
            },
        )
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        if subscription not in self._subscribers:
            return
        self._subscribers.discard(subscription)
        logger.info(
            "Client disconnected",
            extra={
                "subscriber_id": subscription.id,
                "subscriber_count": self.subscriber_count,
            },
        )

    def publish(self, event: str, data: Dict[str, Any]) -> int:
        """Queue ``data`` for every current subscriber without waiting on delivery."""
        message = {"event": event, "data": data}
        subscribers = list(self._subscribers)
        for subscription in subscribers:
            subscription.queue.put_nowait(message)
        logger.debug(
            "Published event",
            extra={"event": event, "subscriber_count": len(subscribers)},
        )
        return len(subscribers)
