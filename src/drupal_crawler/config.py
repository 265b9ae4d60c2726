from dotenv import load_dotenv
from enum import Enum
from typing import Dict, Optional
import os

from pydantic import BaseModel, Field, field_validator

from drupal_crawler.constants import (
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_USER_AGENT,
    MAX_RUN_SECONDS,
    MAX_THREADS,
    MIN_THREADS,
)
from drupal_crawler.exceptions import ConfigError

load_dotenv()  # Loads variables from .env file


def default_thread_count() -> int:
    """Default worker count: at least 2, otherwise one per CPU (capped at MAX_THREADS)."""
    return min(MAX_THREADS, max(2, os.cpu_count() or 1))


class Settings:
    """
    Manages application settings loaded from environment variables.
    """
    BASE_URL = os.getenv("CRAWLER_BASE_URL")
    START_PATH = os.getenv("CRAWLER_START_PATH", "")
    COOKIE = os.getenv("CRAWLER_COOKIE", "")
    BACKEND = os.getenv("CRAWLER_BACKEND", "static")  # 'static' or 'scripted'
    # Numeric values stay raw strings; CrawlConfig validation converts and reports them
    MAX_PAGES = os.getenv("CRAWLER_MAX_PAGES")
    THREADS = os.getenv("CRAWLER_THREADS")
    OUTPUT_DIR = os.getenv("CRAWLER_OUTPUT_DIR", ".")
    TIMEOUT = os.getenv("CRAWLER_TIMEOUT")
    USER_AGENT = os.getenv("CRAWLER_USER_AGENT", DEFAULT_USER_AGENT)
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()


class BackendKind(str, Enum):
    """Which fetch backend the workers use."""

    STATIC = "static"
    SCRIPTED = "scripted"


def parse_cookie_string(cookie_string: str) -> Dict[str, str]:
    """Split a ``name=value; name2=value2`` header into an ordered dict.

    Pieces without ``=`` or with an empty name are ignored.
    """
    cookies: Dict[str, str] = {}
    for piece in (cookie_string or "").split(";"):
        piece = piece.strip()
        if not piece:
            continue
        name, sep, value = piece.partition("=")
        name = name.strip()
        if not sep or not name:
            continue
        cookies[name] = value.strip()
    return cookies


class CrawlConfig(BaseModel):
    """
    Immutable crawl configuration shared read-only by every worker.

    Validation normalizes the base domain (absolute, trailing slash) and the
    start path (no leading slash), so ``start_url`` is a plain concatenation.
    """

    base_domain: str = Field(description="Absolute base URL; links outside it are ignored")
    start_path: str = Field(default="", description="Path below the base domain to seed the crawl")
    cookie_string: str = Field(default="", description="Session cookies as name=value pairs separated by ';'")
    backend: BackendKind = Field(default=BackendKind.STATIC, description="Fetch backend")
    max_pages: int = Field(default=100, description="Page budget for the whole crawl")
    thread_count: int = Field(default_factory=default_thread_count, description="Number of workers")

    # Ambient settings, not part of crawl semantics
    request_timeout: int = Field(default=DEFAULT_REQUEST_TIMEOUT, description="Per-request timeout in seconds", gt=0)
    user_agent: str = Field(default=DEFAULT_USER_AGENT, description="User agent for the static backend")
    output_dir: str = Field(default=".", description="Directory receiving the per-worker CSV files")
    run_timeout: float = Field(default=MAX_RUN_SECONDS, description="Bounded wait for the whole run in seconds", gt=0)

    class Config:
        """Pydantic model configuration."""
        frozen = True

    @field_validator("base_domain")
    @classmethod
    def _check_base_domain(cls, value: str) -> str:
        value = (value or "").strip()
        if not value:
            raise ConfigError("Base domain URL cannot be empty")
        if not value.endswith("/"):
            value = value + "/"
        if not (value.startswith("http://") or value.startswith("https://")):
            raise ConfigError(f"Invalid base domain {value!r}: must start with http:// or https://")
        return value

    @field_validator("start_path")
    @classmethod
    def _strip_start_path(cls, value: str) -> str:
        value = (value or "").strip()
        if value.startswith("/"):
            value = value[1:]
        return value

    @field_validator("cookie_string")
    @classmethod
    def _strip_cookie(cls, value: str) -> str:
        return (value or "").strip()

    @field_validator("max_pages")
    @classmethod
    def _check_max_pages(cls, value: int) -> int:
        if value <= 0:
            raise ConfigError(f"max_pages must be greater than 0, got {value}")
        return value

    @field_validator("thread_count")
    @classmethod
    def _check_thread_count(cls, value: int) -> int:
        if not MIN_THREADS <= value <= MAX_THREADS:
            raise ConfigError(f"thread_count must be between {MIN_THREADS} and {MAX_THREADS}, got {value}")
        return value

    @property
    def start_url(self) -> str:
        return self.base_domain + self.start_path

    @property
    def cookies(self) -> Dict[str, str]:
        return parse_cookie_string(self.cookie_string)

    @classmethod
    def from_env(cls, **overrides) -> "CrawlConfig":
        """Build a configuration from environment settings.

        Unset environment values and keyword overrides that are None are
        ignored, so CLI arguments can be passed straight through. Malformed
        numbers surface as a pydantic ValidationError.

        Returns:
            CrawlConfig with values from environment and overrides
        """
        values = {
            "base_domain": settings.BASE_URL,
            "start_path": settings.START_PATH,
            "cookie_string": settings.COOKIE,
            "backend": settings.BACKEND,
            "max_pages": settings.MAX_PAGES,
            "thread_count": settings.THREADS,
            "request_timeout": settings.TIMEOUT,
            "user_agent": settings.USER_AGENT,
            "output_dir": settings.OUTPUT_DIR,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        values = {k: v for k, v in values.items() if v is not None}
        if not values.get("base_domain"):
            raise ConfigError("Base domain URL is required (argument or CRAWLER_BASE_URL)")
        return cls(**values)

    def describe(self) -> Dict[str, str]:
        """Human-readable summary with the cookie value masked."""
        cookie: Optional[str] = None
        if self.cookie_string:
            cookie = self.cookie_string[:50] + "..."
        return {
            "Base Domain": self.base_domain,
            "Start Path": self.start_path or "(root)",
            "Full URL": self.start_url,
            "Cookie": cookie or "(none)",
            "Mode": "Scripted (browser)" if self.backend == BackendKind.SCRIPTED else "Static (HTTP)",
            "Max Pages": str(self.max_pages),
            "Threads": str(self.thread_count),
        }
