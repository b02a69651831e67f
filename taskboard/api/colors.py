from enum import Enum

from taskboard.domain.enums import TaskPriority, TaskStatus


class TaskColor(Enum):
    RED = "[red]"
    YELLOW = "[yellow]"
    BLUE = "[blue]"
    GREEN = "[green]"
    DIM = "[dim]"
    RESET = "[/]"

    def __str__(self):
        return self.value


STATUS_COLORS = {
    TaskStatus.TODO: TaskColor.DIM,
    TaskStatus.IN_PROGRESS: TaskColor.BLUE,
    TaskStatus.COMPLETED: TaskColor.GREEN,
}

PRIORITY_COLORS = {
    TaskPriority.LOW: TaskColor.GREEN,
    TaskPriority.MEDIUM: TaskColor.YELLOW,
    TaskPriority.HIGH: TaskColor.RED,
}


def paint(text: str, color: TaskColor) -> str:
    """Owija tekst w Rich-markup z kolorem."""
    return f"{color}{text}{TaskColor.RESET}"
