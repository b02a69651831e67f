import logging
from dataclasses import replace
from typing import Any, Mapping

from taskboard.domain.enums import TaskStatus
from taskboard.domain.errors import InvalidTaskIdError, TaskNotFoundError
from taskboard.domain.stats import TaskStats
from taskboard.domain.task import Task, TaskId, UserId, derive_completion
from taskboard.ports.notifications import ChangeNotifier, TaskChangeEvent, TaskEventType
from taskboard.ports.system import Clock, IdProvider
from taskboard.ports.task_repository import TaskRepository
from taskboard.services.validation import clean_list_query, clean_task_fields

logger = logging.getLogger(__name__)


### COMMENTS
# ==========================================================
# Warstwa serwisowa (services/task_service.py): przypadki użycia zadań.
# ==========================================================
# Rola:
# - Jedyny czytelnik/pisarz magazynu zadań; każda operacja zawężona do właściciela.
# - Walidacje danych wejściowych (services/validation.py).
# - Pola pochodne (`is_completed`, `completed_at`) liczone wyłącznie przez
#   `derive_completion`, na każdej ścieżce zapisu, która ustawia status.
# - Po udanym zapisie: powiadomienie na kanał zmian (best-effort).
#
# Kolejność w operacji: format ID → walidacja pól → właściciel/istnienie → zapis → powiadomienie.
# Błąd na dowolnym etapie przerywa operację bez zapisu i bez powiadomienia.


class TaskService:
    """
    Serwis przypadków użycia dla zadań.

    :param repo: Implementacja portu TaskRepository.
    :param notifier: Kanał powiadomień o zmianach (publish nie może przerwać operacji).
    :param id_provider: Generator i walidator identyfikatorów.
    :param clock: Źródło czasu UTC.
    """
    def __init__(
        self,
        repo: TaskRepository,
        notifier: ChangeNotifier,
        id_provider: IdProvider,
        clock: Clock,
    ) -> None:
        self.repo = repo
        self.notifier = notifier
        self.id_provider = id_provider
        self.clock = clock

    def _check_id(self, task_id: str) -> TaskId:
        if not task_id or not self.id_provider.is_valid(task_id):
            raise InvalidTaskIdError(task_id)
        return TaskId(task_id)

    def _owned_task(self, owner_id: UserId, task_id: TaskId) -> Task:
        task = self.repo.get(owner_id, task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def _publish(self, event_type: TaskEventType, owner_id: UserId, payload: dict[str, Any]) -> None:
        try:
            self.notifier.publish(TaskChangeEvent(event_type, owner_id, payload))
        except Exception:
            logger.warning("Change notification %s for %s failed", event_type.value, owner_id, exc_info=True)

    def list_tasks(
        self,
        owner_id: UserId,
        *,
        status: Any = None,
        priority: Any = None,
        sort: Any = None,
        order: Any = None,
    ) -> list[Task]:
        """
        Zwraca zadania właściciela; domyślnie wszystkie, posortowane `createdAt desc`.

        :raises TaskValidationError: Gdy filtr lub sortowanie ma nieznaną wartość.
        """
        query = clean_list_query(status=status, priority=priority, sort=sort, order=order)
        return self.repo.list_for_owner(owner_id, **query)

    def get_task(self, owner_id: UserId, task_id: str) -> Task:
        """
            Zwraca pojedyncze zadanie właściciela.

            :raises InvalidTaskIdError: Gdy `task_id` ma zły format.
            :raises TaskNotFoundError: Gdy zadania nie ma albo należy do innego użytkownika.
        """
        return self._owned_task(owner_id, self._check_id(task_id))

    def create_task(self, owner_id: UserId, fields: Mapping[str, Any]) -> Task:
        """
            Tworzy nowe zadanie właściciela i zapisuje je w repozytorium.

            - Walidacja pól (`title` wymagany) → `TaskValidationError`.
            - `task_id` z `IdProvider`, `created_at = updated_at = clock.now()`.
            - Status startowy `todo`, chyba że podano inny; pola pochodne z `derive_completion`.
            - Po zapisie: zdarzenie `task-created`.
        """
        cleaned = clean_task_fields(fields, require_title=True)
        now = self.clock.now()
        status = cleaned.pop("status", TaskStatus.TODO)
        is_completed, completed_at = derive_completion(status, now)

        task = Task(
            task_id=TaskId(self.id_provider.new_id()),
            owner_id=owner_id,
            created_at=now,
            updated_at=now,
            status=status,
            is_completed=is_completed,
            completed_at=completed_at,
            **cleaned,
        )
        self.repo.add(task)
        logger.info("Task %s created for %s", task.task_id, owner_id)

        self._publish(TaskEventType.CREATED, owner_id, {"task": task})
        return task

    def update_task(self, owner_id: UserId, task_id: str, fields: Mapping[str, Any]) -> Task:
        """
            Scala przysłane pola z istniejącym zadaniem właściciela.

            - Pola nieprzysłane zostają bez zmian (w tym status i pola pochodne).
            - Gdy przysłano `status`, pola pochodne liczone od nowa.
            - Nieudana walidacja nie zmienia zapisanego zadania.

            :raises InvalidTaskIdError, TaskValidationError, TaskNotFoundError
        """
        task_id = self._check_id(task_id)
        cleaned = clean_task_fields(fields, require_title=False)
        task = self._owned_task(owner_id, task_id)

        now = self.clock.now()
        if "status" in cleaned:
            is_completed, completed_at = derive_completion(cleaned["status"], now, task.completed_at)
            cleaned.update(is_completed=is_completed, completed_at=completed_at)

        updated = replace(task, updated_at=now, **cleaned)
        self.repo.update(updated)
        logger.info("Task %s updated (%s)", task_id, ", ".join(sorted(cleaned)) or "no fields")

        self._publish(TaskEventType.UPDATED, owner_id, {"task": updated})
        return updated

    def set_status(self, owner_id: UserId, task_id: str, status: Any) -> Task:
        """Zmienia tylko status (skrót dla `PATCH /tasks/{id}/status`); status jest wymagany."""
        return self.update_task(owner_id, task_id, {"status": status})

    def delete_task(self, owner_id: UserId, task_id: str) -> TaskId:
        """
            Usuwa (hard delete) zadanie właściciela.

            :raises InvalidTaskIdError, TaskNotFoundError
            :return: Identyfikator usuniętego zadania.
        """
        task_id = self._check_id(task_id)
        self.repo.remove(owner_id, task_id)
        logger.info("Task %s deleted", task_id)

        self._publish(TaskEventType.DELETED, owner_id, {"taskId": task_id})
        return task_id

    def stats(self, owner_id: UserId) -> TaskStats:
        return self.repo.stats_for_owner(owner_id)
