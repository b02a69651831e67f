from datetime import datetime, timezone
import uuid

from taskboard.ports.system import Clock, IdProvider


class SystemClock(Clock):
    """Adapter systemowy korzystający z bieżącego czasu UTC."""

    def now(self) -> datetime:
        """Zwraca aktualny czas w strefie UTC (aware)."""
        return datetime.now(timezone.utc)


class UuidIdProvider(IdProvider):

    def new_id(self) -> str:
        return str(uuid.uuid4())

    def is_valid(self, raw: str) -> bool:
        try:
            uuid.UUID(str(raw))
        except ValueError:
            return False
        return True
