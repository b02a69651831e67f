"""Port powiadomień o zmianach: best-effort push zmian zadań do sesji użytkownika."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from taskboard.domain.task import UserId


class TaskEventType(str, Enum):
    """Zdarzenia zmian zadań rozsyłane do pozostałych sesji właściciela."""

    CREATED = "task-created"
    UPDATED = "task-updated"
    DELETED = "task-deleted"


@dataclass(frozen=True)
class TaskChangeEvent:
    event_type: TaskEventType
    owner_id: UserId
    payload: dict[str, Any] = field(default_factory=dict)


class ChangeNotifier(Protocol):
    """
    Port powiadomień typu fire-and-forget.

    Brak gwarancji dostarczenia i kolejności. Implementacja nie rzuca przy błędzie doręczenia.
    """

    def publish(self, event: TaskChangeEvent) -> None:
        """Wysyła zdarzenie do każdego subskrybenta `event.owner_id`."""
