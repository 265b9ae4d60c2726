"""Output manager for per-worker crawl result files."""

import csv
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import asdict
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional

from drupal_crawler.constants import RESULT_COLUMNS, RESULT_FILE_TEMPLATE
from drupal_crawler.exceptions import SinkError
from drupal_crawler.models import CrawlSummary, PageOutcome

logger = logging.getLogger(__name__)


class DateTimeEncoder(json.JSONEncoder):
    """JSON encoder that handles datetime and enum values."""

    def default(self, obj):
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        return super().default(obj)


class ResultWriter(ABC):
    """Append-only sink receiving one row per processed URL."""

    @abstractmethod
    def write(self, outcome: PageOutcome) -> None:
        """Append one row and make it durable before returning."""

    @abstractmethod
    def close(self) -> None:
        """Release the sink."""

    def __enter__(self) -> "ResultWriter":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class CsvResultWriter(ResultWriter):
    """Writes outcomes to a CSV file owned by a single worker.

    Text columns are always quoted with embedded quotes doubled; the status
    code is written unquoted. Every row is flushed as soon as it is written,
    so a crash loses nothing already recorded.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        try:
            self._file = open(self.path, "w", newline="", encoding="utf-8")
            # Header uses minimal quoting, data rows quote every non-numeric field
            csv.writer(self._file, lineterminator="\n").writerow(RESULT_COLUMNS)
            self._file.flush()
        except OSError as e:
            raise SinkError(f"Cannot open result file {self.path}: {e}") from e

        self._writer = csv.writer(self._file, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
        self.rows_written = 0

    def write(self, outcome: PageOutcome) -> None:
        try:
            self._writer.writerow(outcome.to_row())
            self._file.flush()
        except (OSError, ValueError) as e:
            raise SinkError(f"Cannot write to result file {self.path}: {e}") from e
        self.rows_written += 1

    def close(self) -> None:
        if not self._file.closed:
            self._file.close()


class OutputManager:
    """Decides where crawl output goes and opens the per-worker sinks."""

    def __init__(self, base_output_dir: str = "."):
        """Initialize output manager.

        Args:
            base_output_dir: Directory receiving all result files
        """
        self.base_output_dir = Path(base_output_dir)

    def result_path(self, worker_id: int) -> Path:
        return self.base_output_dir / RESULT_FILE_TEMPLATE.format(worker_id=worker_id)

    def open_writer(self, worker_id: int) -> CsvResultWriter:
        """Create (truncating) the result file of one worker.

        Raises:
            SinkError: If the directory or file cannot be created
        """
        try:
            self.base_output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SinkError(f"Cannot create output directory {self.base_output_dir}: {e}") from e

        path = self.result_path(worker_id)
        logger.debug(f"Opening result file {path}")
        return CsvResultWriter(path)

    def save_summary(self, summary: CrawlSummary, filename: str = "crawl_summary.json") -> Optional[Path]:
        """Write the run summary next to the result files.

        Returns:
            Path of the summary file, or None if it could not be written
        """
        filepath = self.base_output_dir / filename
        data = asdict(summary)
        data["elapsed_ms"] = summary.elapsed_ms
        try:
            self.base_output_dir.mkdir(parents=True, exist_ok=True)
            with open(filepath, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, cls=DateTimeEncoder)
        except OSError as e:
            logger.error(f"Failed to save summary {filepath}: {e}")
            return None
        return filepath
