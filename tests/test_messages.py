"""Tests for Drupal message extraction and severity classification."""

from bs4 import BeautifulSoup

from drupal_crawler.document import Document
from drupal_crawler.messages import (
    classify_severity,
    extract_messages,
    join_snippets,
    normalize_text,
    truncate,
)
from drupal_crawler.models import Message, Severity


def doc(body: str) -> Document:
    return Document("https://example.com/node/1", f"<html><body>{body}</body></html>")


class TestExtractMessages:
    """Test cases for extract_messages."""

    def test_error_message_with_content(self):
        """A Drupal error banner yields one error message with its content text."""
        messages = extract_messages(doc(
            '<div class="messages messages--error"><div class="messages__content">Bad input</div></div>'
        ))
        assert messages == [Message(severity=Severity.ERROR, text="Bad input")]

    def test_no_messages(self):
        """A page without banners yields nothing."""
        assert extract_messages(doc("<p>Hello</p>")) == []

    def test_dedup_keeps_first_occurrence(self):
        """Identical texts collapse to the first one, order preserved."""
        messages = extract_messages(doc(
            '<div class="messages messages--status">Saved</div>'
            '<div class="messages messages--warning">Check this</div>'
            '<div role="alert">Saved</div>'
        ))
        assert [m.text for m in messages] == ["Saved", "Check this"]
        assert messages[0].severity == Severity.INFO
        assert messages[1].severity == Severity.WARNING

    def test_whitespace_normalized_and_empty_skipped(self):
        """Runs of whitespace collapse; empty containers are ignored."""
        messages = extract_messages(doc(
            '<div class="messages">   </div>'
            '<div class="form-item--error-message">  Field\n   is   required </div>'
        ))
        assert [m.text for m in messages] == ["Field is required"]

    def test_details_summary_preferred(self):
        """PHP backtraces report only their summary line."""
        messages = extract_messages(doc(
            '<div class="messages messages--error">'
            '<details class="error-with-backtrace"><summary>TypeError: boom</summary>'
            '<pre class="backtrace">#0 stack frame</pre></details></div>'
        ))
        assert messages[0].text == "TypeError: boom"
        assert messages[0].severity == Severity.ERROR

    def test_accepts_soup(self):
        """A BeautifulSoup tree works as input too."""
        soup = BeautifulSoup('<div class="alert">Heads up</div>', "html.parser")
        assert extract_messages(soup) == [Message(severity=Severity.ALERT, text="Heads up")]


class TestClassifySeverity:
    """Test cases for classify_severity."""

    def _first(self, html: str, selector: str):
        return BeautifulSoup(html, "html.parser").select_one(selector)

    def test_error_outranks_warning(self):
        """Error markers win over warning markers in the lineage."""
        el = self._first(
            '<div class="messages--error"><div class="alert-warning"><span id="m">x</span></div></div>',
            "#m",
        )
        assert classify_severity(el) == Severity.ERROR

    def test_ancestor_depth_limited(self):
        """Markers more than four ancestors away are ignored."""
        el = self._first(
            '<div class="messages--error"><div><div><div><div><span id="m">x</span></div></div></div></div></div>',
            "#m",
        )
        assert classify_severity(el) == Severity.INFO

    def test_ancestor_within_depth(self):
        """A marker four ancestors up still counts."""
        el = self._first(
            '<div class="messages--warning"><div><div><div><span id="m">x</span></div></div></div></div>',
            "#m",
        )
        assert classify_severity(el) == Severity.WARNING

    def test_bare_word_needs_word_boundary(self):
        """A class merely containing 'error' is not an error marker."""
        el = self._first('<div class="terror-theme" id="m">x</div>', "#m")
        assert classify_severity(el) == Severity.INFO

        el = self._first('<div class="form-item error" id="m">x</div>', "#m")
        assert classify_severity(el) == Severity.ERROR

    def test_status_reported_as_info(self):
        """Status banners are info."""
        el = self._first('<div class="messages messages--status" id="m">ok</div>', "#m")
        assert classify_severity(el) == Severity.INFO

    def test_alert_fallback(self):
        """Generic alert marker when nothing stronger matches."""
        el = self._first('<div class="alert" id="m">x</div>', "#m")
        assert classify_severity(el) == Severity.ALERT


class TestFormatting:
    """Test cases for row formatting helpers."""

    def test_truncate(self):
        """Long text is cut to the limit, ending with an ellipsis."""
        text = "a" * 250
        result = truncate(text)
        assert len(result) == 200
        assert result.endswith("…")
        assert truncate("short") == "short"

    def test_normalize_text(self):
        assert normalize_text("  a \n\t b  ") == "a b"
        assert normalize_text("") == ""

    def test_join_snippets(self):
        messages = [
            Message(severity=Severity.ERROR, text="One"),
            Message(severity=Severity.WARNING, text="Two"),
        ]
        assert join_snippets(messages) == "One; Two"
