from __future__ import annotations
from typing import Optional
from pathlib import Path

import sqlalchemy as db
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from taskboard.adapters.sql.engine import create_engine, decode_dt, encode_dt
from taskboard.domain.enums import SortField, SortOrder, TaskPriority, TaskStatus
from taskboard.domain.errors import StorageError, TaskAlreadyExistsError, TaskNotFoundError
from taskboard.domain.stats import TaskStats
from taskboard.domain.task import Task, TaskId, UserId

_PRIORITY_RANK = {p.value: p.rank for p in TaskPriority}


class SqlTaskRepository:
    def __init__(self, url: str | Path | db.Engine) -> None:
        """
        url: gotowy Engine (współdzielony z SqlUserRepository), URL SQLAlchemy lub Path do pliku.
        """
        self.engine = url if isinstance(url, db.Engine) else create_engine(url)
        self.meta = db.MetaData()

        self.tasks = db.Table(
            "tasks",
            self.meta,
            db.Column("task_id", db.String, primary_key=True),
            db.Column("owner_id", db.String, nullable=False, index=True),
            db.Column("title", db.String(100), nullable=False),
            db.Column("description", db.String(500), nullable=False, default=""),
            db.Column("status", db.String, nullable=False),      # 'todo'/'in-progress'/'completed'
            db.Column("priority", db.String, nullable=False),    # 'low'/'medium'/'high'
            db.Column("due_date", db.String, nullable=True),     # ISO8601 '...Z'
            db.Column("tags", db.JSON, nullable=False),
            db.Column("is_completed", db.Boolean, nullable=False),
            db.Column("completed_at", db.String, nullable=True),
            db.Column("created_at", db.String, nullable=False),
            db.Column("updated_at", db.String, nullable=False),
            db.Index("ix_tasks_owner_created", "owner_id", "created_at"),
        )

        # utwórz tabelę jeśli nie istnieje
        try:
            self.meta.create_all(self.engine)
        except SQLAlchemyError as e:
            raise StorageError(str(e))

    def _to_row(self, task: Task) -> dict:
        return {
            "task_id": str(task.task_id),
            "owner_id": str(task.owner_id),
            "title": task.title,
            "description": task.description,
            "status": TaskStatus(task.status).value,
            "priority": TaskPriority(task.priority).value,
            "due_date": encode_dt(task.due_date),
            "tags": list(task.tags),
            "is_completed": task.is_completed,
            "completed_at": encode_dt(task.completed_at),
            "created_at": encode_dt(task.created_at),
            "updated_at": encode_dt(task.updated_at),
        }

    def _from_row(self, row) -> Task:
        return Task(
            task_id=TaskId(row["task_id"]),
            owner_id=UserId(row["owner_id"]),
            title=row["title"],
            description=row["description"] or "",
            status=TaskStatus(row["status"]),
            priority=TaskPriority(row["priority"]),
            due_date=decode_dt(row["due_date"]),
            tags=tuple(row["tags"] or ()),
            is_completed=bool(row["is_completed"]),
            completed_at=decode_dt(row["completed_at"]),
            created_at=decode_dt(row["created_at"]),
            updated_at=decode_dt(row["updated_at"]),
        )

    def _owned(self, owner_id: UserId, task_id: TaskId):
        return db.and_(
            self.tasks.c.task_id == str(task_id),
            self.tasks.c.owner_id == str(owner_id),
        )

    def add(self, task: Task) -> None:
        stmt = db.insert(self.tasks).values(**self._to_row(task))
        try:
            with self.engine.begin() as conn:
                conn.execute(stmt)
        except IntegrityError:
            # konflikt PK
            raise TaskAlreadyExistsError(task.task_id)
        except SQLAlchemyError as e:
            raise StorageError(str(e))

    def get(self, owner_id: UserId, task_id: TaskId) -> Optional[Task]:
        stmt = db.select(self.tasks).where(self._owned(owner_id, task_id))
        try:
            with self.engine.connect() as conn:
                row = conn.execute(stmt).mappings().first()
        except SQLAlchemyError as e:
            raise StorageError(str(e))
        return None if row is None else self._from_row(row)

    def update(self, task: Task) -> None:
        rec = self._to_row(task)
        stmt = (
            db.update(self.tasks)
            .where(self._owned(task.owner_id, task.task_id))
            .values(**rec)
        )
        try:
            with self.engine.begin() as conn:
                result = conn.execute(stmt)
        except SQLAlchemyError as e:
            raise StorageError(str(e))
        if result.rowcount == 0:
            raise TaskNotFoundError(task.task_id)

    def remove(self, owner_id: UserId, task_id: TaskId) -> None:
        stmt = db.delete(self.tasks).where(self._owned(owner_id, task_id))
        try:
            with self.engine.begin() as conn:
                result = conn.execute(stmt)
        except SQLAlchemyError as e:
            raise StorageError(str(e))
        if result.rowcount == 0:
            raise TaskNotFoundError(task_id)

    def list_for_owner(
        self,
        owner_id: UserId,
        *,
        status: Optional[TaskStatus] = None,
        priority: Optional[TaskPriority] = None,
        sort: SortField = SortField.CREATED_AT,
        order: SortOrder = SortOrder.DESC,
    ) -> list[Task]:
        c = self.tasks.c
        columns = {
            SortField.CREATED_AT: c.created_at,
            SortField.DUE_DATE: c.due_date,       # NULL: pierwszy przy ASC, ostatni przy DESC (SQLite)
            SortField.TITLE: c.title,
            SortField.PRIORITY: db.case(_PRIORITY_RANK, value=c.priority),
        }
        descending = SortOrder(order) == SortOrder.DESC
        ordering = [
            col.desc() if descending else col.asc()
            for col in (columns[SortField(sort)], c.created_at, c.task_id)
        ]

        stmt = db.select(self.tasks).where(c.owner_id == str(owner_id))
        if status is not None:
            stmt = stmt.where(c.status == TaskStatus(status).value)
        if priority is not None:
            stmt = stmt.where(c.priority == TaskPriority(priority).value)
        stmt = stmt.order_by(*ordering)

        try:
            with self.engine.connect() as conn:
                rows = conn.execute(stmt).mappings().all()
        except SQLAlchemyError as e:
            raise StorageError(str(e))
        return [self._from_row(r) for r in rows]

    def stats_for_owner(self, owner_id: UserId) -> TaskStats:
        c = self.tasks.c
        stmt = (
            db.select(c.status, c.priority, db.func.count())
            .where(c.owner_id == str(owner_id))
            .group_by(c.status, c.priority)
        )
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(stmt).all()
        except SQLAlchemyError as e:
            raise StorageError(str(e))
        return TaskStats.tally((status, priority, int(n)) for status, priority, n in rows)
