import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

LOG_FILE_NAME = "taskboard.log"

_FILE_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def _console_filter(record: logging.LogRecord) -> bool:
    # własne logi zawsze, start/stop uvicorna od INFO, reszta bibliotek (w tym access log) od WARNING
    if record.name.startswith("taskboard."):
        return True
    if record.name == "uvicorn.error":
        return record.levelno >= logging.INFO
    return record.levelno >= logging.WARNING


def setup_logging(*, log_dir: str | Path, console_level: int | str = logging.INFO) -> Path:
    """
        Konfiguruje root logger raz na proces (callback CLI, przed `serve`).

        - konsola: RichHandler na stderr, filtrowany pod pracę interaktywną,
        - plik `<log_dir>/taskboard.log`: wszystko od DEBUG.

        :return: Ścieżka pliku logu.
    """
    log_file = Path(log_dir) / LOG_FILE_NAME
    log_file.parent.mkdir(parents=True, exist_ok=True)

    console = RichHandler(console=Console(stderr=True), show_path=False)
    console.setLevel(console_level)
    console.addFilter(_console_filter)

    to_file = logging.FileHandler(log_file, encoding="utf-8")
    to_file.setLevel(logging.DEBUG)
    to_file.setFormatter(logging.Formatter(_FILE_FORMAT))

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(logging.DEBUG)
    root.addHandler(console)
    root.addHandler(to_file)

    logging.captureWarnings(True)
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
    return log_file
