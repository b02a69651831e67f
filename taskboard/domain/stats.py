from dataclasses import dataclass
from typing import Iterable

from taskboard.domain.enums import TaskPriority, TaskStatus


@dataclass(frozen=True)
class TaskStats:
    """Zagregowane liczniki zadań jednego właściciela. Pusty zbiór -> same zera."""
    total: int = 0
    completed: int = 0
    in_progress: int = 0
    todo: int = 0
    high_priority: int = 0
    medium_priority: int = 0
    low_priority: int = 0

    @classmethod
    def tally(cls, rows: Iterable[tuple[TaskStatus, TaskPriority, int]]) -> "TaskStats":
        """Składa statystyki z trójek (status, priorytet, liczba)."""
        by_status = {s: 0 for s in TaskStatus}
        by_priority = {p: 0 for p in TaskPriority}
        for status, priority, n in rows:
            by_status[TaskStatus(status)] += n
            by_priority[TaskPriority(priority)] += n

        return cls(
            total=sum(by_status.values()),
            completed=by_status[TaskStatus.COMPLETED],
            in_progress=by_status[TaskStatus.IN_PROGRESS],
            todo=by_status[TaskStatus.TODO],
            high_priority=by_priority[TaskPriority.HIGH],
            medium_priority=by_priority[TaskPriority.MEDIUM],
            low_priority=by_priority[TaskPriority.LOW],
        )
