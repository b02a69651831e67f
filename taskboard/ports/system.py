from typing import Protocol
from datetime import datetime


class Clock(Protocol):
    """Źródło czasu dla serwisów i cache klienta. Zwraca czas w strefie UTC (aware)."""
    def now(self) -> datetime:
        pass


class IdProvider(Protocol):
    """Generuje identyfikatory zadań/kont i rozpoznaje ich poprawny format."""
    def new_id(self) -> str:
        pass

    def is_valid(self, raw: str) -> bool:
        """False dla napisu, który nie może być identyfikatorem (HTTP 400, nie 404)."""
        pass
