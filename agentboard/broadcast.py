"""
In-process broadcast hub.

Real-time listeners (websocket bridges, tests)
subscribe here. Delivery is best-effort and at-most-once: a failing
subscriber is logged and skipped, never retried.
"""

import logging
import threading
from typing import Any, Callable

logger = logging.getLogger(__name__)

ITEM_CREATED = "item:created"
ITEM_TRANSITIONED = "item:transitioned"
COMMENT_ADDED = "comment:added"
DECISION_ADDED = "decision:added"
DEPENDENCY_ADDED = "dependency:added"
DEPENDENCY_REMOVED = "dependency:removed"

Subscriber = Callable[[str, Any], None]


class Broadcaster:
    """Fan-out of named events to registered callbacks."""

    def __init__(self):
        self._subscribers: list[Subscriber] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register callback(event, data). Returns a function that unsubscribes it."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe():
            self.unsubscribe(callback)

        return unsubscribe

    def unsubscribe(self, callback: Subscriber) -> None:
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, event: str, data: Any) -> None:
        with self._lock:
            subscribers = list(self._subscribers)

        for callback in subscribers:
            try:
                callback(event, data)
            except Exception as e:
                logger.warning(f"[BROADCAST] Subscriber failed on {event}: {e}")

    def close(self) -> None:
        """Drop all subscribers."""
        with self._lock:
            self._subscribers.clear()

