from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from taskboard.domain.enums import TaskPriority, TaskStatus
from taskboard.domain.errors import AuthenticationError
from taskboard.domain.task import Task, TaskId, UserId, is_due_today, is_overdue
from taskboard.client.api_client import TaskApiClient
from taskboard.ports.system import Clock

logger = logging.getLogger(__name__)


### COMMENTS
# ==========================================================
# Cache zadań po stronie klienta (client/cache.py).
# ==========================================================
# - Lustro zadań JEDNEGO zalogowanego użytkownika: dict id -> Task,
#   kolejność wstawiania = kolejność wyświetlania.
# - Zmiany tylko po udanej odpowiedzi API i zawsze z treści odpowiedzi
#   (pola liczone przez serwer: id, znaczniki czasu, completedAt).
# - Błąd API: mapa bez zmian, wyjątek leci do wołającego.
#   401 dodatkowo czyści cache i zgłasza utratę tożsamości (`on_auth_failure`).
# - Odczyty pochodne (filtr, liczniki, overdue) liczone na żądanie z mapy.
# - Powiadomienia z kanału zmian NIE są tu scalane, najwyżej wyzwalają `refresh()`.


@dataclass(frozen=True)
class TaskSummary:
    """Statystyki panelu: liczniki, procent ukończenia, zaległe i na dziś."""
    total: int
    todo: int
    in_progress: int
    completed: int
    high_priority: int
    medium_priority: int
    low_priority: int
    completion_rate: int
    overdue: int
    due_today: int


class TaskCache:
    """
    Cache zadań właściciela `owner_id`, budowany od nowa przy każdej zmianie tożsamości.

    :param api: Klient API z tokenem tej samej sesji.
    :param owner_id: Właściciel, tylko do kontroli, serwer i tak zawęża po tokenie.
    :param clock: Źródło "teraz" dla overdue / due today.
    :param on_auth_failure: Wołane po 401 (np. sesja zapomina token).
    """
    def __init__(
        self,
        api: TaskApiClient,
        owner_id: UserId,
        clock: Clock,
        on_auth_failure: Optional[Callable[[], None]] = None,
    ) -> None:
        self.api = api
        self.owner_id = owner_id
        self.clock = clock
        self.on_auth_failure = on_auth_failure
        self._tasks: dict[TaskId, Task] = {}

    def _call(self, fn: Callable[..., Any], *args: Any) -> Any:
        try:
            return fn(*args)
        except AuthenticationError:
            logger.info("Session for %s rejected by API, clearing task cache", self.owner_id)
            self.clear()
            if self.on_auth_failure is not None:
                self.on_auth_failure()
            raise

    # ---- synchronizacja ----

    def refresh(self) -> list[Task]:
        """Pobiera pełną listę (domyślne sortowanie) i podmienia całą mapę."""
        tasks = self._call(self.api.list_tasks)
        self._tasks = {t.task_id: t for t in tasks}
        return tasks

    def clear(self) -> None:
        self._tasks = {}

    # ---- mutacje ----

    def create(self, fields: Mapping[str, Any]) -> Task:
        """Nowe zadanie trafia na początek (lista jest `createdAt desc`)."""
        task = self._call(self.api.create_task, fields)
        self._tasks = {task.task_id: task, **self._tasks}
        return task

    def update(self, task_id: str, fields: Mapping[str, Any]) -> Task:
        task = self._call(self.api.update_task, task_id, fields)
        self._put(task)
        return task

    def set_status(self, task_id: str, status: TaskStatus | str) -> Task:
        task = self._call(self.api.set_status, task_id, status)
        self._put(task)
        return task

    def delete(self, task_id: str) -> TaskId:
        deleted = self._call(self.api.delete_task, task_id)
        self._tasks.pop(TaskId(task_id), None)
        return deleted

    def _put(self, task: Task) -> None:
        # podmiana w miejscu zachowuje pozycję; nieznane id (np. z innej sesji) na początek
        if task.task_id in self._tasks:
            self._tasks[task.task_id] = task
        else:
            self._tasks = {task.task_id: task, **self._tasks}

    # ---- odczyty ----

    def tasks(self) -> list[Task]:
        return list(self._tasks.values())

    def get(self, task_id: str) -> Optional[Task]:
        return self._tasks.get(TaskId(task_id))

    def __len__(self) -> int:
        return len(self._tasks)

    def filter(self, status: TaskStatus | str | None = None) -> list[Task]:
        if status is None:
            return self.tasks()
        status = TaskStatus(status)
        return [t for t in self._tasks.values() if t.status == status]

    def count(self, status: TaskStatus | str) -> int:
        return len(self.filter(status))

    def overdue(self) -> list[Task]:
        now = self.clock.now()
        return [t for t in self._tasks.values() if is_overdue(t, now)]

    def due_today(self) -> list[Task]:
        now = self.clock.now()
        return [t for t in self._tasks.values() if is_due_today(t, now)]

    def completion_rate(self) -> int:
        """Procent ukończonych, zaokrąglony połówkami w górę; 0 gdy brak zadań."""
        total = len(self._tasks)
        if total == 0:
            return 0
        return int(self.count(TaskStatus.COMPLETED) * 100 / total + 0.5)

    def summary(self) -> TaskSummary:
        tasks = self.tasks()
        return TaskSummary(
            total=len(tasks),
            todo=self.count(TaskStatus.TODO),
            in_progress=self.count(TaskStatus.IN_PROGRESS),
            completed=self.count(TaskStatus.COMPLETED),
            high_priority=sum(1 for t in tasks if t.priority == TaskPriority.HIGH),
            medium_priority=sum(1 for t in tasks if t.priority == TaskPriority.MEDIUM),
            low_priority=sum(1 for t in tasks if t.priority == TaskPriority.LOW),
            completion_rate=self.completion_rate(),
            overdue=len(self.overdue()),
            # panel liczy tylko otwarte zadania na dziś
            due_today=sum(1 for t in self.due_today() if t.status != TaskStatus.COMPLETED),
        )
