from datetime import datetime
from typing import Protocol, Optional

from taskboard.domain.task import UserId
from taskboard.domain.user import User


class UserRepository(Protocol):
    """Konta użytkowników i ich sesje (token -> user_id).

    Jeden użytkownik może mieć wiele równoległych sesji.
    """

    def add(self, user: User) -> None:
        """:raises UserAlreadyExistsError: Gdy e-mail jest już zarejestrowany."""

    def get(self, user_id: UserId) -> Optional[User]:
        ...

    def get_by_email(self, email: str) -> Optional[User]:
        ...

    def add_session(self, token: str, user_id: UserId, created_at: datetime) -> None:
        ...

    def user_id_for_token(self, token: str) -> Optional[UserId]:
        ...

    def remove_session(self, token: str) -> None:
        """Usunięcie nieistniejącej sesji nie jest błędem."""
