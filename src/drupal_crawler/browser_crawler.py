"""
Scripted fetch backend using Playwright.

Each worker owns one browser, one context and one page. They are created
lazily in the worker thread on the first fetch, because Playwright's sync
API objects must stay on the thread that created them:

    with BrowserFetcher(config) as fetcher:
        fetcher.inject_session("SESS123=abc")
        result = fetcher.fetch("https://example.com/node/1")
"""

import logging
from typing import Dict, List, Optional

from playwright.sync_api import sync_playwright

from drupal_crawler.browser_config import DEFAULT_BROWSER_CONFIG, BrowserConfig
from drupal_crawler.config import parse_cookie_string
from drupal_crawler.constants import BROWSER_STATUS_CODE
from drupal_crawler.document import Document
from drupal_crawler.exceptions import BrowserNotRunningError
from drupal_crawler.fetcher import Fetcher, FetchResult
from drupal_crawler.form_handler import FormHandler

logger = logging.getLogger(__name__)


class BrowserFetcher(Fetcher):
    """
    Playwright-based fetcher for JavaScript-rendered Drupal pages.

    The browser cannot observe the HTTP status of the main document reliably
    across redirects, so every successful navigation is reported as 200.
    """

    def __init__(
        self,
        config: BrowserConfig = DEFAULT_BROWSER_CONFIG,
        form_handler: Optional[FormHandler] = None,
        playwright_factory=sync_playwright,
    ):
        """
        Initialize the browser fetcher.

        Args:
            config: BrowserConfig instance with browser settings
            form_handler: Form engine used by submit_form
            playwright_factory: Callable returning a Playwright context manager
        """
        self._config = config
        self._playwright_factory = playwright_factory
        self.form_handler = form_handler or FormHandler()

        self._playwright = None
        self._browser = None
        self._context = None
        self._page = None
        self._closed = False

        self._cookies: Dict[str, str] = {}
        self._cookies_applied = False

        logger.debug(f"BrowserFetcher initialized with config: {config}")

    @property
    def page(self):
        return self._page

    def _ensure_started(self) -> None:
        """Launch the browser on first use."""
        if self._closed:
            raise BrowserNotRunningError("BrowserFetcher used after close()")
        if self._page is not None:
            return

        logger.info(f"Launching {self._config.browser_type} browser (headless={self._config.headless})")

        self._playwright = self._playwright_factory().start()
        browser_launcher = getattr(self._playwright, self._config.browser_type)

        launch_options = {"headless": self._config.headless}
        if self._config.launch_args:
            launch_options["args"] = self._config.launch_args

        self._browser = browser_launcher.launch(**launch_options)
        self._context = self._browser.new_context(ignore_https_errors=self._config.ignore_https_errors)
        self._page = self._context.new_page()
        self._page.set_default_timeout(self._config.timeout)

        logger.info("Browser launched successfully")

    def inject_session(self, cookie_string: str) -> None:
        """Remember the cookies; they are added after the first navigation."""
        self._cookies = parse_cookie_string(cookie_string)
        self._cookies_applied = False

    def _cookie_entries(self, url: str) -> List[dict]:
        return [{"name": name, "value": value, "url": url} for name, value in self._cookies.items()]

    def _goto(self, url: str) -> None:
        self._page.goto(url, wait_until=self._config.wait_until, timeout=self._config.timeout)

    def fetch(self, url: str) -> FetchResult:
        """Navigate to a page and snapshot its rendered markup.

        On the first fetch the page is loaded once to establish the origin,
        the session cookies are added, and the page is loaded again.
        """
        self._ensure_started()

        self._goto(url)

        if not self._cookies_applied:
            if self._cookies:
                self._context.add_cookies(self._cookie_entries(url))
                logger.debug(f"Added {len(self._cookies)} session cookie(s)")
                self._goto(url)
            self._cookies_applied = True

        document = Document(self._page.url or url, self._page.content())

        return FetchResult(
            url=url,
            status_code=BROWSER_STATUS_CODE,
            document=document,
        )

    def submit_form(self, result: FetchResult, form_index: int) -> str:
        self._ensure_started()
        return self.form_handler.submit_scripted(self._page, form_index)

    def close(self) -> None:
        """Close the browser and stop Playwright. Safe to call repeatedly."""
        if self._closed:
            return
        self._closed = True

        try:
            if self._browser:
                logger.info("Closing browser")
                self._browser.close()
        except Exception as e:
            logger.warning(f"Error closing browser: {e}")
        finally:
            self._browser = None
            self._context = None
            self._page = None

        if self._playwright:
            self._playwright.stop()
            self._playwright = None
