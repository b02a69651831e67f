from dataclasses import dataclass
from typing import Iterable


### COMMENTS
# ============================================
# Konwencja użycia błędów domenowych w projekcie
# ============================================
# - Repozytoria (adaptery):
#     * wykrywają duplikaty lub brak rekordów (także cudzych, brak == cudzy)
#     * mapują błędy techniczne (np. IntegrityError, SQLAlchemyError) na DomainError
#
# - Serwisy:
#     * walidują dane wejściowe i rzucają TaskValidationError (z listą problemów)
#     * brak zadania lub zadanie innego właściciela, TaskNotFoundError
#
# - HTTP API:
#     * mapuje klasy błędów na kody (400/401/404/409/503)
#
# - Klient (cache, CLI):
#     * odtwarza te same klasy z odpowiedzi HTTP i pokazuje przyjazny komunikat


@dataclass(frozen=True)
class FieldProblem:
    """Pojedynczy problem walidacji przypisany do pola."""
    field: str
    message: str


class DomainError(Exception):
    """Bazowa klasa dla błędów domenowych.
    Umożliwia odróżnienie błędów domeny (logika aplikacji) od błędów technicznych.
    Nie powinna być rzucana bezpośrednio, używaj klas pochodnych.
    """


class TaskAlreadyExistsError(DomainError):
    """Kolizja identyfikatora przy `TaskRepository.add()`."""
    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(self.__str__())
    def __str__(self):
        return f"Task {self.task_id} already exists."


class TaskValidationError(DomainError):
    """Rzucany, gdy dane wejściowe nie spełniają reguł dla zadania lub konta.
    Przykłady:
    - tytuł jest pusty lub za długi,
    - status/priorytet spoza zamkniętego zestawu,
    - `dueDate` nie jest poprawną datą, `tags` nie jest listą.
    `field`/`message` opisują pierwszy problem, `problems`, wszystkie naraz
    (tak je zwraca API w polu `errors`).
    """
    def __init__(self, field: str, message: str, problems: Iterable[FieldProblem] | None = None):
        self.field = field
        self.message = message
        self.problems = list(problems) if problems else [FieldProblem(field, message)]
        super().__init__(self.__str__())

    def __str__(self):
        if len(self.problems) > 1:
            return "; ".join(f"{p.field}: {p.message}" for p in self.problems)
        return f"{self.field}: {self.message}"

    @classmethod
    def from_problems(cls, problems: Iterable[FieldProblem]) -> "TaskValidationError":
        problems = list(problems)
        first = problems[0]
        return cls(first.field, first.message, problems)


class InvalidTaskIdError(DomainError):
    """Identyfikator zadania ma niepoprawny format (to nie jest UUID)."""
    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(self.__str__())
    def __str__(self):
        return "Invalid task ID"


class TaskNotFoundError(DomainError):
    """Zadanie nie istnieje albo należy do innego użytkownika.
    Oba przypadki są celowo nierozróżnialne, nie zdradzamy istnienia cudzych zadań.
    """
    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(self.__str__())
    def __str__(self):
        return "Task not found"


class UserAlreadyExistsError(DomainError):
    """Konto z tym adresem e-mail już istnieje."""
    def __init__(self, email: str):
        self.email = email
        super().__init__(self.__str__())
    def __str__(self):
        return f"User with email {self.email} already exists"


class AuthenticationError(DomainError):
    """Brak, niepoprawny lub wygasły token albo złe dane logowania (HTTP 401)."""
    def __init__(self, message: str = "Not authorized"):
        self.message = message
        super().__init__(message)


class StorageError(DomainError):
    """Awaria magazynu danych niezwiązana z danymi wejściowymi (HTTP 503)."""


class ServiceUnavailableError(DomainError):
    """Po stronie klienta: serwer zwrócił 5xx albo zawiodła sieć. Można ponowić."""
