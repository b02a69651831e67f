from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from taskboard.client.api_client import AuthApiClient, TaskApiClient
from taskboard.client.cache import TaskCache
from taskboard.domain.errors import AuthenticationError, DomainError
from taskboard.domain.task import UserId
from taskboard.ports.system import Clock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    user_id: UserId
    email: str
    name: str
    token: str


class TaskboardSession:
    """
    Tożsamość klienta podawana jawnie (zamiast globalnego providera).

    - Zdobycie tożsamości (`register`, `login`, `restore`) buduje NOWY `TaskCache`
      dla tego właściciela i od razu go odświeża.
    - `logout` lub 401 z dowolnego wywołania: cache czyszczony natychmiast i porzucany.
    """
    def __init__(self, http: httpx.Client, clock: Clock) -> None:
        self.http = http
        self.clock = clock
        self.auth = AuthApiClient(http)
        self.identity: Optional[Identity] = None
        self._cache: Optional[TaskCache] = None

    @property
    def is_authenticated(self) -> bool:
        return self.identity is not None

    @property
    def tasks(self) -> TaskCache:
        if self._cache is None:
            raise AuthenticationError("Not logged in")
        return self._cache

    def _adopt(self, token: str, user: dict) -> Identity:
        self._drop()
        identity = Identity(UserId(user["id"]), user["email"], user["name"], token)
        cache = TaskCache(TaskApiClient(self.http, token), identity.user_id, self.clock, self._drop)
        self.identity, self._cache = identity, cache
        cache.refresh()
        logger.info("Signed in as %s", identity.email)
        return identity

    def _drop(self) -> None:
        if self._cache is not None:
            self._cache.clear()
        self.identity, self._cache = None, None

    def register(self, name: str, email: str, password: str) -> Identity:
        token, user = self.auth.register(name, email, password)
        return self._adopt(token, user)

    def login(self, email: str, password: str) -> Identity:
        token, user = self.auth.login(email, password)
        return self._adopt(token, user)

    def restore(self, token: str) -> Identity:
        """Wznawia sesję z zapisanym tokenem (`/auth/me`). Zły token -> AuthenticationError i brak tożsamości."""
        try:
            user = self.auth.me(token)
        except AuthenticationError:
            self._drop()
            raise
        return self._adopt(token, user)

    def logout(self) -> None:
        """Czyści cache bezwarunkowo; unieważnienie tokenu na serwerze to best-effort."""
        identity = self.identity
        self._drop()
        if identity is None:
            return
        try:
            self.auth.logout(identity.token)
        except DomainError:
            logger.warning("Server-side logout failed for %s", identity.email, exc_info=True)
