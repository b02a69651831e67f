from datetime import datetime, timezone
from threading import RLock
from typing import Iterable, Optional

from taskboard.domain.enums import SortField, SortOrder, TaskPriority, TaskStatus
from taskboard.domain.errors import TaskAlreadyExistsError, TaskNotFoundError
from taskboard.domain.stats import TaskStats
from taskboard.domain.task import Task, TaskId, UserId

### COMMENTS
# ==========================================================
# Adapter pamięciowy dla repozytorium zadań (adapters/memory/task_repo.py).
# ==========================================================
# - Służy do testów, prototypowania i trybu `TASKBOARD_DATABASE_URL=memory`.
# - Dane przechowywane są w słowniku `_data: dict[TaskId, Task]` pod `RLock`
#   (serwer woła repozytorium z puli wątków); odczyty list idą po migawce.
# - Każdy odczyt/zapis sprawdza `owner_id`, cudzy rekord traktujemy jak brak rekordu.
# - Sortowanie zgodne z adapterem SQL (ranga priorytetu, brak terminu = NULL).

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _sort_key(sort: SortField):
    """Zwraca funkcję klucza dla danego pola; tiebreaker: created_at, task_id."""
    if sort == SortField.TITLE:
        primary = lambda t: t.title
    elif sort == SortField.PRIORITY:
        primary = lambda t: TaskPriority(t.priority).rank
    elif sort == SortField.DUE_DATE:
        # brak terminu zachowuje się jak NULL w SQL: pierwszy przy ASC
        primary = lambda t: (t.due_date is not None, t.due_date or _EPOCH)
    else:
        primary = lambda t: t.created_at
    return lambda t: (primary(t), t.created_at, t.task_id)


class InMemoryTaskRepository:
    """
        Repozytorium zadań w pamięci procesu.
        :param initial: Iterable z obiektami Task do wstępnego załadowania
        (przy duplikatach task_id ostatni wygrywa, to tylko seed, nie API).
    """
    def __init__(self, initial: Iterable[Task] | None = None) -> None:
        self._lock = RLock()
        self._data: dict[TaskId, Task] = {}
        for t in (initial or []):
            self._data[t.task_id] = t

    def _snapshot(self) -> list[Task]:
        with self._lock:
            return list(self._data.values())

    def _owned(self, owner_id: UserId, task_id: TaskId) -> Optional[Task]:
        with self._lock:
            task = self._data.get(task_id)
        if task is None or task.owner_id != owner_id:
            return None
        return task

    def add(self, task: Task) -> None:
        """
            Dodaje nowe zadanie do repozytorium.

            :raises TaskAlreadyExistsError: Jeśli zadanie o tym samym `task_id` już istnieje.
        """
        with self._lock:
            if task.task_id not in self._data:
                self._data[task.task_id] = task
                return
        raise TaskAlreadyExistsError(task.task_id)

    def get(self, owner_id: UserId, task_id: TaskId) -> Optional[Task]:
        """
            Zwraca zadanie właściciela albo `None` (brak lub cudze, bez rozróżnienia).
        """
        return self._owned(owner_id, task_id)

    def update(self, task: Task) -> None:
        """
            Pełna podmiana istniejącego rekordu tego samego właściciela.

            :raises TaskNotFoundError: Gdy rekord nie istnieje lub należy do kogoś innego.
        """
        with self._lock:
            if self._owned(task.owner_id, task.task_id) is None:
                raise TaskNotFoundError(task.task_id)
            self._data[task.task_id] = task

    def remove(self, owner_id: UserId, task_id: TaskId) -> None:
        """
            Usuwa zadanie właściciela.

            :raises TaskNotFoundError: Jeśli nie istnieje wpis dla tego właściciela.
        """
        with self._lock:
            if self._owned(owner_id, task_id) is None:
                raise TaskNotFoundError(task_id)
            del self._data[task_id]

    def list_for_owner(
        self,
        owner_id: UserId,
        *,
        status: Optional[TaskStatus] = None,
        priority: Optional[TaskPriority] = None,
        sort: SortField = SortField.CREATED_AT,
        order: SortOrder = SortOrder.DESC,
    ) -> list[Task]:
        """
        Zwraca przefiltrowaną i posortowaną listę zadań właściciela.
        """
        tasks = [
            t for t in self._snapshot()
            if t.owner_id == owner_id
            and (status is None or t.status == status)
            and (priority is None or t.priority == priority)
        ]
        tasks.sort(key=_sort_key(SortField(sort)), reverse=SortOrder(order) == SortOrder.DESC)
        return tasks

    def stats_for_owner(self, owner_id: UserId) -> TaskStats:
        return TaskStats.tally(
            (t.status, t.priority, 1) for t in self._snapshot() if t.owner_id == owner_id
        )
