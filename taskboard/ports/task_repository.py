from typing import Protocol, Optional

from taskboard.domain.enums import SortField, SortOrder, TaskPriority, TaskStatus
from taskboard.domain.stats import TaskStats
from taskboard.domain.task import Task, TaskId, UserId


### COMMENTS
# ==========================================================
# Kontrakt magazynu zadań (ports/task_repository.py).
# ==========================================================
# - Jest niezależny od technologii (pamięć, baza SQL).
# - Każda operacja odczytu/zapisu jest zawężona do właściciela (`owner_id`);
#   cudze zadanie wygląda dokładnie jak nieistniejące.
# - Adaptery mapują błędy technologiczne na błędy domenowe
#   (UNIQUE → TaskAlreadyExistsError, brak rekordu → TaskNotFoundError, reszta → StorageError).
# - Repozytorium nie zawiera logiki biznesowej (walidacje i pola pochodne są w serwisie).


class TaskRepository(Protocol):
    """Interfejs repozytorium do zapisu i odczytu obiektów `Task`.

    Adaptery (implementacje) muszą:
    - zapewnić atomowość zapisu pojedynczego dokumentu,
    - nigdy nie zwracać ani nie modyfikować zadań innego właściciela,
    - stosować stabilne sortowanie (tiebreaker: `created_at`, potem `task_id`, w tym samym kierunku).
    """

    def add(self, task: Task) -> None:
        """Dodaje nowy rekord `Task`.

        Wyjątki domenowe:
            TaskAlreadyExistsError: Gdy istnieje wpis o tym samym `task_id`.
        """

    def get(self, owner_id: UserId, task_id: TaskId) -> Optional[Task]:
        """Zwraca zadanie `task_id` należące do `owner_id` albo `None`.

        Uwagi:
            `None` oznacza zarówno brak rekordu, jak i cudzy rekord.
        """

    def update(self, task: Task) -> None:
        """Pełna podmiana rekordu (`task_id`, `owner_id`).

        Wyjątki domenowe:
            TaskNotFoundError: Gdy rekord nie istnieje dla tego właściciela.

        Uwagi:
            Repozytorium nie „skleja” pól, zapisuje kompletny obiekt. Ostatni zapis wygrywa.
        """

    def remove(self, owner_id: UserId, task_id: TaskId) -> None:
        """Usuwa (hard delete) rekord.

        Wyjątki domenowe:
            TaskNotFoundError: Gdy rekord nie istnieje dla tego właściciela.
        """

    def list_for_owner(
        self,
        owner_id: UserId,
        *,
        status: Optional[TaskStatus] = None,
        priority: Optional[TaskPriority] = None,
        sort: SortField = SortField.CREATED_AT,
        order: SortOrder = SortOrder.DESC,
    ) -> list[Task]:
        """Zwraca zadania właściciela, opcjonalnie filtrowane po statusie/priorytecie.

        Sortowanie:
            - `priority` wg rangi (low < medium < high),
            - `dueDate`: zadania bez terminu na początku przy ASC, na końcu przy DESC,
            - tiebreaker `created_at`, potem `task_id`, w kierunku `order`.
        """

    def stats_for_owner(self, owner_id: UserId) -> TaskStats:
        """Liczniki per status i priorytet. Brak zadań -> `TaskStats()` (same zera)."""
