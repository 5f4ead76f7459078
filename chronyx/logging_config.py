"""Logging setup for chronyx.

Two outputs live under ``<data dir>/logs``:

- ``local-YYYY-MM-DD.log``: regular log records from the ``chronyx`` logger.
- ``queue-events-YYYY-MM-DD.log``: one line per queue lifecycle event
  (enqueue, replay pass, dropped mutation). Dropped mutations are not kept
  anywhere else, so this file is the record of writes that never reached
  the remote store.
"""

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from chronyx.config import get_settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LOGGER_NAME = "chronyx"


def _log_dir() -> Path:
    log_dir = get_settings().resolved_data_dir / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def _today() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


def setup_chronyx_logging(level: str = "INFO") -> logging.Logger:
    """Configure the ``chronyx`` logger with a dated file handler.

    Args:
        level: Level name, case-insensitive. Unknown names fall back to INFO.
            DEBUG also echoes records to stderr.

    Returns:
        The configured ``chronyx`` logger. Calling this again reuses the
        existing handlers.
    """
    logger = logging.getLogger(LOGGER_NAME)

    numeric_level = getattr(logging, str(level).upper(), None)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO
    logger.setLevel(numeric_level)

    formatter = logging.Formatter(LOG_FORMAT)

    if not any(isinstance(h, logging.FileHandler) for h in logger.handlers):
        log_file = _log_dir() / f"local-{_today()}.log"
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    has_console = any(
        isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        for h in logger.handlers
    )
    if numeric_level <= logging.DEBUG and not has_console:
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        logger.addHandler(console)

    return logger


def log_queue_event(event_type: str, details: str) -> None:
    """Append one line to today's queue event log.

    Write failures are logged and otherwise ignored; the event log must
    never break a queue operation.
    """
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        event_file = _log_dir() / f"queue-events-{_today()}.log"
        with open(event_file, "a", encoding="utf-8") as f:
            f.write(f"{timestamp} | {event_type} | {details}\n")
        os.chmod(event_file, 0o600)
    except OSError as e:
        logging.getLogger(__name__).warning(f"Failed to write queue event log: {e}")


def log_enqueue(table: str, operation: str, mutation_id: str) -> None:
    log_queue_event("enqueue", f"table={table}, op={operation}, id={mutation_id[:8]}...")


def log_replay(succeeded: int, permanently_failed: int, still_pending: int) -> None:
    log_queue_event(
        "replay",
        f"succeeded={succeeded}, permanently_failed={permanently_failed}, "
        f"still_pending={still_pending}",
    )


def log_dropped(
    table: str, operation: str, mutation_id: str, attempts: int, error: Optional[str] = None
) -> None:
    """Record a mutation dropped after reaching the retry ceiling."""
    details = f"table={table}, op={operation}, id={mutation_id}, attempts={attempts}"
    if error:
        details += f", last_error={error[:200]}"
    log_queue_event("dropped", details)
