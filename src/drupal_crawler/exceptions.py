"""Exceptions raised by the Drupal crawler."""


class CrawlerError(Exception):
    """Base class for crawler errors."""


class ConfigError(CrawlerError, ValueError):
    """Invalid crawl configuration."""


class SinkError(CrawlerError):
    """A worker's result file could not be opened or written."""


class BrowserNotRunningError(CrawlerError, RuntimeError):
    """The scripted backend was used after it was closed."""
