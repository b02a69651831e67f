from enum import Enum


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"

    def __str__(self):
        return self.value


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    def __str__(self):
        return self.value

    @property
    def rank(self) -> int:
        """Pozycja przy sortowaniu: low < medium < high."""
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {TaskPriority.LOW: 0, TaskPriority.MEDIUM: 1, TaskPriority.HIGH: 2}


class SortField(str, Enum):
    """Pola sortowania listy zadań (nazwy jak w API)."""
    CREATED_AT = "createdAt"
    DUE_DATE = "dueDate"
    PRIORITY = "priority"
    TITLE = "title"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"
