"""
Extraction and classification of Drupal status messages.

Pulls user-visible status, warning and error banners out of a parsed page,
deduplicates them by text and labels each with a severity taken from the
classes on the element and its nearest ancestors.
"""

import re
from typing import Iterable, List, Union

from bs4 import BeautifulSoup
from bs4.element import Tag

from drupal_crawler.constants import (
    ALERT_CLASS_MARKER,
    ERROR_CLASS_MARKERS,
    MAX_SNIPPET_LENGTH,
    MESSAGE_SELECTORS,
    SEVERITY_ANCESTOR_DEPTH,
    STATUS_CLASS_MARKERS,
    WARNING_CLASS_MARKERS,
)
from drupal_crawler.document import Document
from drupal_crawler.models import Message, Severity

_WHITESPACE = re.compile(r"\s+")

MESSAGE_SELECTOR = ", ".join(MESSAGE_SELECTORS)


def normalize_text(text: str) -> str:
    """Collapse runs of whitespace and trim."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip()


def truncate(text: str, max_length: int = MAX_SNIPPET_LENGTH) -> str:
    """Cut text to max_length characters, the last one being an ellipsis."""
    if not text:
        return ""
    if len(text) <= max_length:
        return text
    return text[:max(0, max_length - 1)] + "…"


def extract_message_text(element: Tag) -> str:
    """Text of a message container.

    Prefers a nested ``.messages__content`` element, then the summary of a
    collapsed ``details`` block (PHP backtraces), else the element's own text.
    """
    content = element.select_one(".messages__content")
    if content is not None:
        return content.get_text(" ")
    summary = element.select_one("details > summary")
    if summary is not None:
        return summary.get_text(" ")
    return element.get_text(" ")


def _class_string(element) -> str:
    classes = element.get("class") if isinstance(element, Tag) else None
    if not classes:
        return ""
    if isinstance(classes, str):
        return classes.lower()
    return " ".join(classes).lower()


def _has_word(class_string: str, word: str) -> bool:
    return word in class_string.split()


def classify_severity(element: Tag) -> Severity:
    """Severity of a message element.

    Looks at the element and up to SEVERITY_ANCESTOR_DEPTH ancestors.
    Error markers outrank warning markers, which outrank status markers,
    which outrank a generic alert marker. Default is info.
    """
    lineage = [element]
    for parent in element.parents:
        if len(lineage) > SEVERITY_ANCESTOR_DEPTH:
            break
        lineage.append(parent)

    has_error = has_warning = has_status = has_alert = False
    for node in lineage:
        cls = _class_string(node)
        if not cls:
            continue
        if any(m in cls for m in ERROR_CLASS_MARKERS) or _has_word(cls, "error"):
            has_error = True
        if any(m in cls for m in WARNING_CLASS_MARKERS) or _has_word(cls, "warning"):
            has_warning = True
        if any(m in cls for m in STATUS_CLASS_MARKERS) or _has_word(cls, "status"):
            has_status = True
        if ALERT_CLASS_MARKER in cls:
            has_alert = True

    if has_error:
        return Severity.ERROR
    if has_warning:
        return Severity.WARNING
    if has_status:
        return Severity.INFO
    if has_alert:
        return Severity.ALERT
    return Severity.INFO


def extract_messages(source: Union[Document, BeautifulSoup, Tag]) -> List[Message]:
    """Extract deduplicated messages from a page in document order.

    Args:
        source: Document, soup or element to search

    Returns:
        List of Message, first occurrence of each text wins
    """
    root = source.soup if isinstance(source, Document) else source

    unique = {}
    for element in root.select(MESSAGE_SELECTOR):
        text = normalize_text(extract_message_text(element))
        if not text or text in unique:
            continue
        unique[text] = Message(severity=classify_severity(element), text=text)

    return list(unique.values())


def join_snippets(messages: Iterable[Message], max_length: int = MAX_SNIPPET_LENGTH) -> str:
    """Truncated message texts joined with '; ' for the IssueSnippets column."""
    return "; ".join(truncate(m.text, max_length) for m in messages)
