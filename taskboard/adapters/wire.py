"""Format JSON wspólny dla HTTP API i klienta (klucze camelCase)."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from taskboard.domain.enums import TaskPriority, TaskStatus
from taskboard.domain.stats import TaskStats
from taskboard.domain.task import Task, TaskId, UserId
from taskboard.domain.user import User


def encode_dt(dt: datetime | None) -> str | None:
    if dt is None:
        return None
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def decode_dt(s: str | None) -> datetime | None:
    """ISO8601 zakończone 'Z' (albo z przesunięciem) -> aware UTC."""
    if s is None:
        return None
    return datetime.fromisoformat(s.replace("Z", "+00:00")).astimezone(timezone.utc)


def encode_task(task: Task) -> dict[str, Any]:
    return {
        "id": str(task.task_id),
        "title": task.title,
        "description": task.description,
        "status": TaskStatus(task.status).value,
        "priority": TaskPriority(task.priority).value,
        "dueDate": encode_dt(task.due_date),
        "tags": list(task.tags),
        "isCompleted": task.is_completed,
        "completedAt": encode_dt(task.completed_at),
        "createdAt": encode_dt(task.created_at),
        "updatedAt": encode_dt(task.updated_at),
        "ownerId": str(task.owner_id),
    }


def decode_task(doc: dict[str, Any]) -> Task:
    return Task(
        task_id=TaskId(doc["id"]),
        owner_id=UserId(doc["ownerId"]),
        title=doc["title"],
        description=doc.get("description") or "",
        status=TaskStatus(doc.get("status", TaskStatus.TODO.value)),
        priority=TaskPriority(doc.get("priority", TaskPriority.MEDIUM.value)),
        due_date=decode_dt(doc.get("dueDate")),
        tags=tuple(doc.get("tags") or ()),
        is_completed=bool(doc.get("isCompleted", False)),
        completed_at=decode_dt(doc.get("completedAt")),
        created_at=decode_dt(doc["createdAt"]),
        updated_at=decode_dt(doc["updatedAt"]),
    )


def encode_user(user: User) -> dict[str, Any]:
    # password_hash nigdy nie opuszcza serwera
    return {"id": str(user.user_id), "email": user.email, "name": user.name}


def encode_stats(stats: TaskStats) -> dict[str, int]:
    return {
        "total": stats.total,
        "completed": stats.completed,
        "inProgress": stats.in_progress,
        "todo": stats.todo,
        "highPriority": stats.high_priority,
        "mediumPriority": stats.medium_priority,
        "lowPriority": stats.low_priority,
    }


def decode_stats(doc: dict[str, Any]) -> TaskStats:
    return TaskStats(
        total=int(doc.get("total", 0)),
        completed=int(doc.get("completed", 0)),
        in_progress=int(doc.get("inProgress", 0)),
        todo=int(doc.get("todo", 0)),
        high_priority=int(doc.get("highPriority", 0)),
        medium_priority=int(doc.get("mediumPriority", 0)),
        low_priority=int(doc.get("lowPriority", 0)),
    )
