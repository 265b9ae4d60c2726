"""Backend-independent view of a fetched page."""

from typing import List
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from bs4.element import Tag


class Document:
    """Parsed markup of one page plus the URL it was resolved against.

    Both fetch backends build one of these, the static backend from the HTTP
    response body and the browser backend from its rendered markup snapshot,
    so the message classifier and the form engine never see backend types.
    """

    def __init__(self, url: str, html: str):
        self.url = url
        self.html = html or ""
        self.soup = BeautifulSoup(self.html, "html.parser")

    def absolute(self, href: str) -> str:
        """Resolve an href against the page URL."""
        return urljoin(self.url, href.strip())

    @property
    def links(self) -> List[str]:
        """Absolute targets of every ``a[href]`` in document order."""
        return [self.absolute(a["href"]) for a in self.soup.select("a[href]")]

    def forms(self) -> List[Tag]:
        """Form elements in document order."""
        return self.soup.find_all("form")

    def form_action(self, form: Tag) -> str:
        """Absolute form action; the page URL when the attribute is missing or empty."""
        action = (form.get("action") or "").strip()
        if not action:
            return self.url
        return self.absolute(action)

    def __repr__(self) -> str:
        return f"Document(url={self.url!r}, length={len(self.html)})"
