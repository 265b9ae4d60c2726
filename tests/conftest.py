"""Shared fixtures for crawler tests."""

import pytest

from drupal_crawler.config import CrawlConfig
from drupal_crawler.document import Document
from drupal_crawler.fetcher import Fetcher, FetchResult

BASE_URL = "https://example.com/"


class FakeFetcher(Fetcher):
    """In-memory fetcher serving canned pages.

    pages maps URL to (status_code, html) or to an exception instance to raise.
    Unknown URLs raise ConnectionError.
    """

    def __init__(self, pages, form_status="SUCCESS (Redirected to: https://example.com/node/1)"):
        self.pages = pages
        self.form_status = form_status
        self.fetched = []
        self.submitted = []
        self.cookie_string = None
        self.closed = False

    def inject_session(self, cookie_string):
        self.cookie_string = cookie_string

    def fetch(self, url):
        self.fetched.append(url)
        page = self.pages.get(url)
        if page is None:
            raise ConnectionError(f"no route to {url}")
        if isinstance(page, Exception):
            raise page
        status_code, html = page
        return FetchResult(url=url, status_code=status_code, document=Document(url, html))

    def submit_form(self, result, form_index):
        self.submitted.append((result.url, form_index))
        return self.form_status

    def close(self):
        self.closed = True


class MemoryWriter:
    """Result sink collecting outcomes in a list."""

    def __init__(self):
        self.rows = []
        self.closed = False

    def write(self, outcome):
        self.rows.append(outcome)

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


@pytest.fixture
def base_url():
    return BASE_URL


@pytest.fixture
def fake_fetcher_cls():
    return FakeFetcher


@pytest.fixture
def memory_writer_cls():
    return MemoryWriter


@pytest.fixture
def make_config(tmp_path):
    """Factory for CrawlConfig with test-friendly defaults."""

    def _make(**overrides):
        values = {
            "base_domain": BASE_URL,
            "thread_count": 1,
            "max_pages": 10,
            "output_dir": str(tmp_path),
        }
        values.update(overrides)
        return CrawlConfig(**values)

    return _make


def page(*hrefs, body=""):
    """Tiny HTML page linking to hrefs."""
    links = "".join(f'<a href="{h}">{h}</a>' for h in hrefs)
    return f"<html><body>{body}{links}</body></html>"


@pytest.fixture
def make_page():
    return page
