"""Data models for the Drupal crawler."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class Severity(str, Enum):
    """Severity label assigned to an extracted page message."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    ALERT = "alert"


class CrawlState(str, Enum):
    """Lifecycle of a crawl run."""

    CONFIGURED = "configured"
    RUNNING = "running"
    DRAINING = "draining"
    DONE = "done"


class FormStatus:
    """Values recorded in the Form Submission column."""

    NOT_APPLICABLE = "N/A"
    SKIPPED_DELETE = "SKIPPED (Delete Action)"
    SKIPPED_FILE_UPLOAD = "SKIPPED (Requires File Upload)"
    NO_SUBMIT_BUTTON = "FAILED (No Submit Button Found)"
    ALL_CLICKS_FAILED = "FAILED (All Click Methods Failed)"
    VALIDATION_FAILED = "FAILED (Validation Errors)"

    @staticmethod
    def skipped_media(label: str) -> str:
        return f"SKIPPED (Requires Media: {label})"

    @staticmethod
    def success(url: str) -> str:
        return f"SUCCESS (Redirected to: {url})"

    @staticmethod
    def validation_failed(details: str = "") -> str:
        if not details:
            return FormStatus.VALIDATION_FAILED
        return f"FAILED (Validation Errors: {details})"

    @staticmethod
    def submitted(status_code: int) -> str:
        return f"SUBMITTED (Status: {status_code})"

    @staticmethod
    def failed_after(attempts: int) -> str:
        return f"FAILED (After {attempts} Attempts)"

    @staticmethod
    def failed_error(message: str) -> str:
        return f"FAILED (Error: {message})"

    @staticmethod
    def error(message: str) -> str:
        return f"ERROR: {message}"


@dataclass(frozen=True)
class CrawlTask:
    """A discovered URL waiting in the frontier."""

    url: str
    referrer: str


@dataclass(frozen=True)
class Message:
    """A user-visible banner extracted from a page."""

    severity: Severity
    text: str

    def __str__(self) -> str:
        return f"[{self.severity.value}] {self.text}"


@dataclass(frozen=True)
class PageOutcome:
    """One result row per processed URL."""

    url: str
    status_code: int
    referrer: str
    form_submission_status: str = FormStatus.NOT_APPLICABLE
    issue_types: tuple[str, ...] = ()
    issue_snippets: tuple[str, ...] = ()

    @property
    def issue_types_field(self) -> str:
        """Severities joined the way they appear in the CSV row."""
        return ";".join(self.issue_types)

    @property
    def issue_snippets_field(self) -> str:
        """Truncated message texts joined the way they appear in the CSV row."""
        return "; ".join(self.issue_snippets)

    def to_row(self) -> list:
        """Column values in output order."""
        return [
            self.url,
            self.status_code,
            self.referrer,
            self.form_submission_status,
            self.issue_types_field,
            self.issue_snippets_field,
        ]


@dataclass
class CrawlSummary:
    """Aggregate result of a crawl run."""

    max_pages: int
    pages_visited: int = 0
    pages_processed: int = 0
    elapsed_seconds: float = 0.0
    state: CrawlState = CrawlState.CONFIGURED
    abandoned_workers: int = 0
    pending_tasks: int = 0
    started_at: datetime = field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None

    @property
    def elapsed_ms(self) -> int:
        return int(self.elapsed_seconds * 1000)
