# taskboard/config.py

"""Ustawienia ze zmiennych środowiskowych (+ lokalny .env).

Jeden obiekt Settings dla serwera i klienta CLI; opcje CLI nadpisują
pojedyncze pola.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

ENV_PREFIX = "TASKBOARD"

MEMORY_DATABASE = "memory"


def _k(suffix: str) -> str:
    """Nazwa zmiennej środowiskowej z prefiksem projektu."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None or v.strip() == "" else v.strip()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- Serwer ----
    database_url: str
    host: str
    port: int

    # ---- Logi ----
    log_level: str
    log_dir: Path

    # ---- Klient CLI ----
    api_url: str
    token: Optional[str]

    @property
    def in_memory(self) -> bool:
        return self.database_url == MEMORY_DATABASE


def load_settings(*, dotenv: bool = True) -> Settings:
    """Czyta ustawienia ze środowiska; lokalny .env nigdy nie nadpisuje prawdziwych zmiennych."""
    if dotenv:
        load_dotenv(override=False)

    port = _env_int(_k("PORT"), 5001)
    return Settings(
        database_url=_env(_k("DATABASE_URL"), "sqlite:///data/taskboard.db"),
        host=_env(_k("HOST"), "127.0.0.1"),
        port=port,
        log_level=_env(_k("LOG_LEVEL"), "INFO").upper(),
        log_dir=_env_path(_k("LOG_DIR"), Path(".local/taskboard")),
        api_url=_env(_k("API_URL"), f"http://localhost:{port}/api"),
        token=_env(_k("TOKEN")) or None,
    )
