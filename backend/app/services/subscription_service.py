# Overview: In-process change feed; services publish after commit, consumers subscribe per key.

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Hashable, List


logger = logging.getLogger(__name__)

COLLECTION_STOCK_SUBMISSIONS = "stock_submissions"
COLLECTION_TEMPERATURE_LOGS = "temperature_logs"
COLLECTION_CURRENT_STOCK = "current_stock"


def collection_key(collection: str, store_id: str) -> tuple:
    return (collection, store_id)


class SubscriptionHub:
    def __init__(self) -> None:
        # key -> list of callbacks, in subscription order
        self._listeners: Dict[Hashable, List[Callable[[Any], None]]] = {}
        self._lock = threading.Lock()

    def subscribe(self, key: Hashable, on_change: Callable[[Any], None]) -> Callable[[], None]:
        with self._lock:
            self._listeners.setdefault(key, []).append(on_change)

        def unsubscribe() -> None:
            with self._lock:
                listeners = self._listeners.get(key)
                if listeners is None:
                    return
                try:
                    listeners.remove(on_change)
                except ValueError:
                    return
                if not listeners:
                    self._listeners.pop(key, None)

        return unsubscribe

    def publish(self, key: Hashable, payload: Any) -> None:
        with self._lock:
            targets = list(self._listeners.get(key, []))
        for callback in targets:
            try:
                callback(payload)
            except Exception:
                # a broken consumer never fails the write that triggered it
                logger.exception("Subscriber for %r failed", key)

    def clear(self) -> None:
        with self._lock:
            self._listeners.clear()


# Global singleton hub
hub = SubscriptionHub()


def subscribe(key: Hashable, on_change: Callable[[Any], None]) -> Callable[[], None]:
    return hub.subscribe(key, on_change)


def publish(key: Hashable, payload: Any) -> None:
    hub.publish(key, payload)
