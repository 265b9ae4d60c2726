"""Concurrent Drupal site crawler with message classification and form auto-submission."""

__version__ = "0.1.0"

from drupal_crawler.config import BackendKind, CrawlConfig, settings
from drupal_crawler.browser_config import BrowserConfig
from drupal_crawler.document import Document
from drupal_crawler.fetcher import Fetcher, FetchResult
from drupal_crawler.form_handler import FormHandler
from drupal_crawler.frontier import Frontier
from drupal_crawler.messages import extract_messages, classify_severity
from drupal_crawler.models import (
    CrawlState,
    CrawlSummary,
    CrawlTask,
    FormStatus,
    Message,
    PageOutcome,
    Severity,
)
from drupal_crawler.output_manager import CsvResultWriter, OutputManager, ResultWriter
from drupal_crawler.site_crawler import SiteCrawler, make_fetcher
from drupal_crawler.worker import CrawlWorker
from drupal_crawler.exceptions import CrawlerError, ConfigError, SinkError

__all__ = [
    "BackendKind",
    "BrowserConfig",
    "ConfigError",
    "CrawlConfig",
    "CrawlerError",
    "CrawlState",
    "CrawlSummary",
    "CrawlTask",
    "CrawlWorker",
    "CsvResultWriter",
    "Document",
    "Fetcher",
    "FetchResult",
    "FormHandler",
    "FormStatus",
    "Frontier",
    "Message",
    "OutputManager",
    "PageOutcome",
    "ResultWriter",
    "Severity",
    "SinkError",
    "SiteCrawler",
    "classify_severity",
    "extract_messages",
    "make_fetcher",
    "settings",
]
