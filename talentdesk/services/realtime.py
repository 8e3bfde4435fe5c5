"""In-process change feed keyed by table name.

Backend inserts publish here; the application stores subscribe with callbacks
and the SSE endpoint consumes ``stream``.
"""

import asyncio
from collections import defaultdict
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

import structlog

logger = structlog.get_logger()

Callback = Callable[[dict[str, Any]], Awaitable[None] | None]


class Subscription:
    def __init__(self, manager: "SubscriptionManager", table: str, event: str, callback: Callback):
        self._manager = manager
        self.table = table
        self.event = event
        self.callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._manager._remove(self)
            self.active = False


class SubscriptionManager:
    def __init__(self) -> None:
        self._subscriptions: dict[str, list[Subscription]] = defaultdict(list)
        self._queues: dict[str, list[asyncio.Queue[dict[str, Any]]]] = defaultdict(list)

    def subscribe(self, table: str, callback: Callback, event: str = "INSERT") -> Subscription:
        subscription = Subscription(self, table, event, callback)
        self._subscriptions[table].append(subscription)
        logger.debug("realtime_subscribed", table=table, realtime_event=event)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        subscribers = self._subscriptions.get(subscription.table, [])
        if subscription in subscribers:
            subscribers.remove(subscription)

    def subscriber_count(self, table: str) -> int:
        return len(self._subscriptions.get(table, []))

    async def publish(self, table: str, event: str, record: dict[str, Any]) -> None:
        message = {"table": table, "event": event, "record": record}
        for subscription in list(self._subscriptions.get(table, [])):
            if subscription.event != event:
                continue
            try:
                result = subscription.callback(message)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as e:
                logger.error("realtime_callback_failed", table=table, error=str(e))
        for queue in list(self._queues.get(table, [])):
            await queue.put(message)

    async def stream(self, table: str) -> AsyncIterator[dict[str, Any]]:
        queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        self._queues[table].append(queue)
        try:
            while True:
                yield await queue.get()
        finally:
            if queue in self._queues.get(table, []):
                self._queues[table].remove(queue)
