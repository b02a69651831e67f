"""Hub zmian w procesie: subskrybenci per właściciel, doręczanie fire-and-forget."""

from __future__ import annotations

import logging
from collections import defaultdict
from threading import RLock
from typing import Callable

from taskboard.domain.task import UserId
from taskboard.ports.notifications import ChangeNotifier, TaskChangeEvent

logger = logging.getLogger(__name__)

Subscriber = Callable[[TaskChangeEvent], None]


class InProcessChangeHub(ChangeNotifier):
    """
    Doręcza zdarzenia zmian do callbacków zarejestrowanych dla właściciela.

    - Doręczanie w wątku publikującego, po migawce listy subskrybentów.
    - Wadliwy subskrybent jest logowany i pomijany; `publish` nigdy nie rzuca.
    """

    __slots__ = ("_lock", "_subscribers", "_published", "_failed")

    def __init__(self) -> None:
        self._lock = RLock()
        self._subscribers: dict[UserId, list[Subscriber]] = defaultdict(list)
        self._published = 0
        self._failed = 0

    def subscribe(self, owner_id: UserId, callback: Subscriber) -> Callable[[], None]:
        """Rejestruje `callback` dla `owner_id`; zwraca funkcję wypisującą."""
        with self._lock:
            self._subscribers[owner_id].append(callback)

        def unsubscribe() -> None:
            with self._lock:
                callbacks = self._subscribers.get(owner_id)
                if callbacks and callback in callbacks:
                    callbacks.remove(callback)
                if not callbacks:
                    self._subscribers.pop(owner_id, None)

        return unsubscribe

    def subscriber_count(self, owner_id: UserId) -> int:
        with self._lock:
            return len(self._subscribers.get(owner_id, ()))

    def publish(self, event: TaskChangeEvent) -> None:
        with self._lock:
            targets = list(self._subscribers.get(event.owner_id, ()))
            self._published += 1

        for callback in targets:
            try:
                callback(event)
            except Exception:
                with self._lock:
                    self._failed += 1
                logger.warning(
                    "Dropping %s for owner %s: subscriber failed",
                    event.event_type.value,
                    event.owner_id,
                    exc_info=True,
                )

    def diagnostics(self) -> dict[str, int]:
        with self._lock:
            return {
                "owners": len(self._subscribers),
                "subscribers": sum(len(v) for v in self._subscribers.values()),
                "published": self._published,
                "failed_deliveries": self._failed,
            }
