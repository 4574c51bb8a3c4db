"""
Logging setup for warehouse runs.

One console handler (stdout) plus an optional per-run file. Library loggers
that are chatty at INFO (SQLAlchemy engine echo) are held at WARNING unless
the run itself is at DEBUG.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Iterable, Optional

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NOISY_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool")


def configure_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    log_format: str = DEFAULT_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
    noisy_loggers: Iterable[str] = NOISY_LOGGERS,
) -> None:
    """
    Configure the root logger for a warehouse run.

    Args:
        level: Level for the root logger and every handler
        log_file: Optional path of a UTF-8 log file; parent dirs are created
        log_format: Record format
        date_format: Timestamp format
        noisy_loggers: Loggers kept at WARNING unless ``level`` is DEBUG
    """
    formatter = logging.Formatter(log_format, date_format)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(formatter)
    handlers = [console]

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers, force=True)

    library_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in noisy_loggers:
        logging.getLogger(name).setLevel(library_level)

    if log_file:
        logging.getLogger(__name__).info(f"Writing run log to {log_file}")


def create_run_log_file(base_dir: str = "logs", prefix: str = "silver_load") -> str:
    """
    Path of a new timestamped log file, e.g. ``logs/silver_load_20250101_120000.log``.

    The directory is created; the file itself is opened by configure_logging.
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_dir = Path(base_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    return str(log_dir / f"{prefix}_{timestamp}.log")


def event_log_sink(name: str = "warehouse.events", level: int = logging.INFO) -> Callable[[Any], None]:
    """
    Callback that writes each orchestrator event as one log line.

    Works with any event object exposing ``event``, ``batch_id`` and
    optional ``table_name``, ``row_count``, ``duration_seconds``,
    ``error_kind`` and ``message`` attributes.
    """
    event_logger = logging.getLogger(name)

    def sink(event: Any) -> None:
        parts = [f"[{event.batch_id}] {event.event}"]
        if getattr(event, "table_name", None):
            parts.append(f"table={event.table_name}")
        if getattr(event, "row_count", None) is not None:
            parts.append(f"rows={event.row_count}")
        if getattr(event, "duration_seconds", None) is not None:
            parts.append(f"duration={event.duration_seconds:.3f}s")
        if getattr(event, "error_kind", None):
            parts.append(f"kind={event.error_kind}")
        if getattr(event, "message", None):
            parts.append(f"message={event.message}")
        event_logger.log(level, " ".join(parts))

    return sink
