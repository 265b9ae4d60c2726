"""Static fetch backend: plain HTTP requests parsed with BeautifulSoup."""

import logging
from typing import Optional

import requests

from drupal_crawler.config import parse_cookie_string
from drupal_crawler.constants import DEFAULT_REQUEST_TIMEOUT, DEFAULT_USER_AGENT
from drupal_crawler.document import Document
from drupal_crawler.fetcher import Fetcher, FetchResult
from drupal_crawler.form_handler import FormHandler
from drupal_crawler.models import FormStatus

logger = logging.getLogger(__name__)


class StaticFetcher(Fetcher):
    """Fetches pages with one requests session per worker.

    The real HTTP status code is reported and non-2xx responses are returned
    like any other page. Network errors propagate to the caller.
    """

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: int = DEFAULT_REQUEST_TIMEOUT,
        form_handler: Optional[FormHandler] = None,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the static fetcher.

        Args:
            user_agent: User agent string sent with every request
            timeout: Request timeout in seconds
            form_handler: Form engine used by submit_form
            session: Optional pre-built session (mainly for tests)
        """
        self.user_agent = user_agent
        self.timeout = timeout
        self.form_handler = form_handler or FormHandler()

        self.session = session or requests.Session()
        self.session.headers.update({
            "User-Agent": self.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        })

    def inject_session(self, cookie_string: str) -> None:
        """Load session cookies into the jar so redirects and form posts keep them."""
        cookies = parse_cookie_string(cookie_string)
        if cookies:
            requests.utils.add_dict_to_cookiejar(self.session.cookies, cookies)
            logger.debug(f"Injected {len(cookies)} session cookie(s)")

    def fetch(self, url: str) -> FetchResult:
        """GET a page, following redirects.

        Args:
            url: The URL to fetch

        Returns:
            FetchResult whose document is resolved against the final URL
        """
        response = self.session.get(url, timeout=self.timeout, allow_redirects=True)

        document = Document(response.url or url, response.text)
        return FetchResult(
            url=url,
            status_code=response.status_code,
            document=document,
        )

    def submit_form(self, result: FetchResult, form_index: int) -> str:
        forms = result.document.forms()
        if not 0 <= form_index < len(forms):
            return FormStatus.error(f"no form at index {form_index}")
        return self.form_handler.submit_static(
            self.session, result.document, forms[form_index], self.timeout
        )

    def close(self) -> None:
        self.session.close()
