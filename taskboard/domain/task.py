from typing import NewType
from datetime import datetime
from dataclasses import dataclass

from taskboard.domain.enums import TaskPriority, TaskStatus

TaskId = NewType("TaskId", str)
UserId = NewType("UserId", str)

TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500


@dataclass(frozen=True)
class Task():
    """
    Model domenowy pojedynczego zadania; niemutowalny; zawsze ma dokładnie jednego właściciela.
    Pola `is_completed` i `completed_at` są pochodną statusu (patrz `derive_completion`),
    czas w UTC dostarcza serwis.
    """
    task_id: TaskId
    owner_id: UserId
    title: str
    created_at: datetime
    updated_at: datetime
    description: str = ""
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: datetime | None = None
    tags: tuple[str, ...] = ()
    is_completed: bool = False
    completed_at: datetime | None = None


def derive_completion(
    status: TaskStatus,
    now: datetime,
    completed_at: datetime | None = None,
) -> tuple[bool, datetime | None]:
    """
    Wylicza pola pochodne (`is_completed`, `completed_at`) dla podanego statusu.

    - `completed` -> (True, dotychczasowe `completed_at` albo `now`),
    - każdy inny status -> (False, None).

    Wołana przy każdym zapisie, który ustawia status (create, update, patch statusu).
    """
    if status == TaskStatus.COMPLETED:
        return True, completed_at or now
    return False, None


def is_overdue(task: Task, now: datetime) -> bool:
    """Termin minął (porównanie pełnych znaczników czasu), a zadanie nie jest zakończone."""
    if task.due_date is None or task.status == TaskStatus.COMPLETED:
        return False
    return task.due_date < now


def is_due_today(task: Task, now: datetime) -> bool:
    """Termin przypada na dzisiejszy dzień kalendarzowy (bez względu na godzinę)."""
    if task.due_date is None:
        return False
    return task.due_date.astimezone(now.tzinfo).date() == now.date()
