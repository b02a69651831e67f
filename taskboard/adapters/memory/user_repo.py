from datetime import datetime
from threading import RLock
from typing import Optional

from taskboard.domain.errors import UserAlreadyExistsError
from taskboard.domain.task import UserId
from taskboard.domain.user import User


class InMemoryUserRepository:
    """Konta i sesje w pamięci (testy, tryb `memory`); bezpieczne dla wątków serwera."""

    def __init__(self) -> None:
        self._lock = RLock()
        self._users: dict[UserId, User] = {}
        self._sessions: dict[str, UserId] = {}

    def add(self, user: User) -> None:
        with self._lock:
            if self.get_by_email(user.email) is not None or user.user_id in self._users:
                raise UserAlreadyExistsError(user.email)
            self._users[user.user_id] = user

    def get(self, user_id: UserId) -> Optional[User]:
        with self._lock:
            return self._users.get(user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        email = email.lower()
        with self._lock:
            users = list(self._users.values())
        for user in users:
            if user.email == email:
                return user
        return None

    def add_session(self, token: str, user_id: UserId, created_at: datetime) -> None:
        with self._lock:
            self._sessions[token] = user_id

    def user_id_for_token(self, token: str) -> Optional[UserId]:
        with self._lock:
            return self._sessions.get(token)

    def remove_session(self, token: str) -> None:
        with self._lock:
            self._sessions.pop(token, None)
