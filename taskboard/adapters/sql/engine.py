from __future__ import annotations
from datetime import datetime, timezone
from pathlib import Path

import sqlalchemy as db
from sqlalchemy.engine import make_url
from sqlalchemy.pool import StaticPool


def create_engine(url: str | Path) -> db.Engine:
    """
    url: np. 'sqlite:///data/taskboard.db', 'sqlite://' (pamięć) lub Path do pliku.
    Dla pliku SQLite tworzy katalog nadrzędny.
    """
    if isinstance(url, Path):
        url.parent.mkdir(parents=True, exist_ok=True)
        return db.create_engine(f"sqlite:///{url}", future=True)

    parsed = make_url(url)
    if parsed.drivername.startswith("sqlite"):
        if parsed.database in (None, "", ":memory:"):
            # jedna współdzielona baza w pamięci dla wszystkich wątków
            return db.create_engine(
                url,
                future=True,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        Path(parsed.database).expanduser().parent.mkdir(parents=True, exist_ok=True)
    return db.create_engine(url, future=True)


def encode_dt(dt: datetime | None) -> str | None:
    # stała szerokość (rok 4 cyfry, mikrosekundy zawsze), żeby sortowanie tekstu = sortowanie czasu;
    # strftime("%Y") nie dopełnia zerami lat < 1000
    if dt is None:
        return None
    return dt.astimezone(timezone.utc).isoformat(timespec="microseconds").replace("+00:00", "Z")


def decode_dt(s: str | None) -> datetime | None:
    # '...Z' -> aware UTC
    if s is None:
        return None
    return datetime.fromisoformat(s.replace("Z", "+00:00")).astimezone(timezone.utc)
