"""Składanie aplikacji: wybór adapterów z Settings i budowa serwisów."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from taskboard.adapters.memory.task_repo import InMemoryTaskRepository
from taskboard.adapters.memory.user_repo import InMemoryUserRepository
from taskboard.adapters.notifications import InProcessChangeHub
from taskboard.adapters.sql.engine import create_engine
from taskboard.adapters.sql.task_repo import SqlTaskRepository
from taskboard.adapters.sql.user_repo import SqlUserRepository
from taskboard.adapters.system import SystemClock, UuidIdProvider
from taskboard.config import Settings
from taskboard.services.auth_service import AuthService
from taskboard.services.task_service import TaskService

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Services:
    tasks: TaskService
    auth: AuthService
    hub: InProcessChangeHub


def build_services(settings: Settings) -> Services:
    """
    - `memory` -> repozytoria w pamięci (nic nie przetrwa restartu)
    - URL SQLAlchemy -> wspólny Engine dla zadań i kont
    """
    if settings.in_memory:
        task_repo, user_repo = InMemoryTaskRepository(), InMemoryUserRepository()
        logger.info("Using in-memory storage")
    else:
        engine = create_engine(settings.database_url)
        task_repo, user_repo = SqlTaskRepository(engine), SqlUserRepository(engine)
        logger.info("Using database %s", engine.url.render_as_string(hide_password=True))

    clock, ids, hub = SystemClock(), UuidIdProvider(), InProcessChangeHub()
    return Services(
        tasks=TaskService(task_repo, hub, ids, clock),
        auth=AuthService(user_repo, ids, clock),
        hub=hub,
    )
