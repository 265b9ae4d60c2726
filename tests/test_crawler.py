"""Tests for the static fetch backend."""

from unittest.mock import MagicMock
from urllib.parse import urlparse

import pytest
import requests
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict

from drupal_crawler.crawler import StaticFetcher


def make_response(status_code=200, url="https://example.com/", text="<html></html>"):
    response = MagicMock()
    response.status_code = status_code
    response.url = url
    response.text = text
    return response


class RecordingAdapter(BaseAdapter):
    """Transport adapter that answers from a route table and records Cookie headers."""

    def __init__(self, routes):
        super().__init__()
        self.routes = routes
        self.seen = {}

    def send(self, request, **kwargs):
        path = urlparse(request.url).path
        self.seen[f"{request.method} {path}"] = request.headers.get("Cookie")
        status, location = self.routes.get((request.method, path), (200, None))

        response = requests.Response()
        response.status_code = status
        response.url = request.url
        response.request = request
        response.encoding = "utf-8"
        response._content = b"<html><body>ok</body></html>"
        response._content_consumed = True
        response.headers = CaseInsensitiveDict({"Location": location} if location else {})
        return response

    def close(self):
        pass


def session_with(adapter):
    session = requests.Session()
    session.mount("https://", adapter)
    return session


class TestStaticFetcher:
    """Test cases for StaticFetcher."""

    def test_initialization(self):
        """User agent and timeout are applied to the session."""
        session = MagicMock()
        session.headers = {}
        fetcher = StaticFetcher(user_agent="TestAgent/1.0", timeout=15, session=session)

        assert fetcher.timeout == 15
        assert session.headers["User-Agent"] == "TestAgent/1.0"

    def test_session_cookie_survives_redirects(self):
        """Injected cookies reach redirect targets, including the page after a form post."""
        adapter = RecordingAdapter({
            ("GET", "/user"): (302, "https://example.com/user/1"),
            ("POST", "/node/1/edit"): (303, "https://example.com/node/1"),
        })
        session = session_with(adapter)
        fetcher = StaticFetcher(session=session)

        fetcher.inject_session("SESSabc=123")
        result = fetcher.fetch("https://example.com/user")
        session.post("https://example.com/node/1/edit", data={"op": "Save"}, allow_redirects=True)

        assert result.status_code == 200
        assert result.document.url == "https://example.com/user/1"
        assert adapter.seen == {
            "GET /user": "SESSabc=123",
            "GET /user/1": "SESSabc=123",
            "POST /node/1/edit": "SESSabc=123",
            "GET /node/1": "SESSabc=123",
        }

    def test_inject_multiple_cookies(self):
        session = requests.Session()
        StaticFetcher(session=session).inject_session("SESSabc=123; other=x")

        assert session.cookies.get("SESSabc") == "123"
        assert session.cookies.get("other") == "x"
        assert "Cookie" not in session.headers

    def test_inject_empty_cookie(self):
        session = requests.Session()
        StaticFetcher(session=session).inject_session("")
        assert len(session.cookies) == 0
        assert "Cookie" not in session.headers

    def test_fetch_returns_document_and_links(self):
        """Links are resolved against the final URL after redirects."""
        session = MagicMock()
        session.headers = {}
        session.get.return_value = make_response(
            200,
            "https://example.com/node/1",
            '<a href="/node/2">Two</a><a href="edit">Edit</a>',
        )
        fetcher = StaticFetcher(timeout=20, session=session)

        result = fetcher.fetch("https://example.com/n1")

        assert result.status_code == 200
        assert result.ok
        assert result.links == ["https://example.com/node/2", "https://example.com/node/edit"]
        session.get.assert_called_once_with("https://example.com/n1", timeout=20, allow_redirects=True)

    def test_non_2xx_is_returned(self):
        """Error pages are still results, not exceptions."""
        session = MagicMock()
        session.headers = {}
        session.get.return_value = make_response(404, "https://example.com/missing", "Not found")

        result = StaticFetcher(session=session).fetch("https://example.com/missing")

        assert result.status_code == 404
        assert not result.ok

    def test_network_error_propagates(self):
        session = MagicMock()
        session.headers = {}
        session.get.side_effect = requests.ConnectionError("refused")

        with pytest.raises(requests.ConnectionError):
            StaticFetcher(session=session).fetch("https://example.com/")

    def test_submit_form_delegates_to_handler(self):
        session = MagicMock()
        session.headers = {}
        session.get.return_value = make_response(
            200, "https://example.com/node/1/edit", "<form><input type='submit' value='Save'></form>"
        )
        handler = MagicMock()
        handler.submit_static.return_value = "SUCCESS (Redirected to: https://example.com/node/1)"
        fetcher = StaticFetcher(timeout=5, form_handler=handler, session=session)

        result = fetcher.fetch("https://example.com/node/1/edit")
        status = fetcher.submit_form(result, 0)

        assert status.startswith("SUCCESS")
        args = handler.submit_static.call_args[0]
        assert args[0] is session
        assert args[1] is result.document
        assert args[3] == 5

    def test_submit_form_bad_index(self):
        session = MagicMock()
        session.headers = {}
        session.get.return_value = make_response(200, "https://example.com/", "<p>no forms</p>")
        fetcher = StaticFetcher(session=session)

        result = fetcher.fetch("https://example.com/")
        assert fetcher.submit_form(result, 0).startswith("ERROR:")

    def test_close_closes_session(self):
        session = MagicMock()
        session.headers = {}
        with StaticFetcher(session=session):
            pass
        session.close.assert_called_once()
