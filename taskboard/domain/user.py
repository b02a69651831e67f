from dataclasses import dataclass
from datetime import datetime

from taskboard.domain.task import UserId


@dataclass(frozen=True)
class User():
    """Konto użytkownika. Dla zadań liczy się tylko `user_id` (właściciel)."""
    user_id: UserId
    email: str
    name: str
    password_hash: str
    created_at: datetime
