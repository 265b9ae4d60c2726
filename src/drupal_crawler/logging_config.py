"""Logging for a multi-worker crawl.

Every record carries a ``worker`` field so interleaved lines from the pool
can be told apart: ``worker-3`` inside a bound worker thread, ``main`` for the
coordinator and CLI.
"""

import logging
import sys
import threading
from pathlib import Path
from typing import List, Optional

DEFAULT_FORMAT = '%(asctime)s - [%(worker)s] %(name)s - %(levelname)s - %(message)s'

# requests pulls these in; their DEBUG output drowns per-page lines
QUIET_LOGGERS = ('urllib3', 'charset_normalizer')

_context = threading.local()


def bind_worker(worker_id: Optional[int]) -> None:
    """Tag log records from the current thread with a worker id (None to clear)."""
    _context.worker_id = worker_id


def current_worker_label() -> str:
    worker_id = getattr(_context, 'worker_id', None)
    return 'main' if worker_id is None else f'worker-{worker_id}'


class WorkerContextFilter(logging.Filter):
    """Adds the ``worker`` attribute used by DEFAULT_FORMAT."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.worker = current_worker_label()
        return True


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    format_string: Optional[str] = None
) -> None:
    """Configure root logging for a crawl run.

    Args:
        level: Log level name; unknown names fall back to INFO
        log_file: Optional log file path, parent directories are created
        format_string: Optional custom format; may use ``%(worker)s``
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    # Filters sit on handlers so records propagated from module loggers get them too
    context_filter = WorkerContextFilter()
    for handler in handlers:
        handler.addFilter(context_filter)

    logging.basicConfig(
        level=numeric_level,
        format=format_string or DEFAULT_FORMAT,
        handlers=handlers,
        force=True
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
