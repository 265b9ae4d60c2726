"""
Capability interface shared by the fetch backends.

The crawl loop depends only on this interface, never on which backend is
behind it. Two implementations ship with the package:

- StaticFetcher (crawler.py): requests + BeautifulSoup, real status codes
- BrowserFetcher (browser_crawler.py): Playwright, rendered markup
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List

from drupal_crawler.document import Document


@dataclass
class FetchResult:
    """A fetched page: its document and the status code the backend observed."""

    url: str
    status_code: int
    document: Document

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def links(self) -> List[str]:
        return self.document.links


class Fetcher(ABC):
    """A per-worker page fetching session.

    Instances are owned by exactly one worker and are never shared between
    threads. Use as a context manager, or call close() when done.
    """

    @abstractmethod
    def inject_session(self, cookie_string: str) -> None:
        """Attach session cookies (``name=value; ...``) to every later request."""

    @abstractmethod
    def fetch(self, url: str) -> FetchResult:
        """Retrieve a page.

        Raises:
            Exception: any network, timeout or parse failure. The caller maps
                it to a status code of -1.
        """

    @abstractmethod
    def submit_form(self, result: FetchResult, form_index: int) -> str:
        """Fill and submit the form at form_index of a fetched page.

        Returns:
            Descriptive status for the Form Submission column. Never raises
            for submission failures.
        """

    def close(self) -> None:
        """Release the session (browser, connection pool)."""

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
