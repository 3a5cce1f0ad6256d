"""
Document accessor capability.

The extraction core only ever asks three things of a page: the first
element matching a CSS selector, every element matching a selector (for
fallback scans), and the address it was loaded from. Absent elements are
returned as None, never raised; DocumentAccessError is reserved for a page
that cannot be read at all.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)

DEFAULT_PARSER = 'lxml'


class DocumentAccessError(Exception):
    """Raised when the underlying document is detached or unreadable."""
    pass


class DocumentAccessor(ABC):
    """Read-only query interface over a parsed page."""

    url: str = ""

    @abstractmethod
    def select_one(self, selector: str) -> Optional[Tag]:
        """Return the first element matching selector, or None."""

    @abstractmethod
    def select_all(self, selector: str) -> List[Tag]:
        """Return every element matching selector in document order."""

    def exists(self, selector: str) -> bool:
        return self.select_one(selector) is not None

    def text_of(self, selector: str) -> Optional[str]:
        """Trimmed text of the first match, None when absent or blank."""
        element = self.select_one(selector)
        if element is None:
            return None
        text = element.get_text().strip()
        return text or None


class HTMLDocument(DocumentAccessor):
    """DocumentAccessor backed by a BeautifulSoup tree."""

    def __init__(self, html: Optional[str] = None, url: str = "",
                 soup: Optional[BeautifulSoup] = None, parser: str = DEFAULT_PARSER):
        if soup is None:
            if html is None:
                raise DocumentAccessError("No HTML content to parse")
            soup = BeautifulSoup(html, parser)
        self.soup = soup
        self.url = url
        self._closed = False

    def close(self):
        """Detach the tree; later queries raise DocumentAccessError."""
        self._closed = True

    def _check_open(self):
        if self._closed:
            raise DocumentAccessError(f"Document for {self.url or '<unknown>'} is detached")

    def select_one(self, selector: str) -> Optional[Tag]:
        self._check_open()
        return self.soup.select_one(selector)

    def select_all(self, selector: str) -> List[Tag]:
        self._check_open()
        return self.soup.select(selector)

    def __repr__(self):
        return f"<HTMLDocument(url={self.url!r})>"


class DocumentSource(ABC):
    """
    Supplies snapshots of a possibly still-rendering page.

    Static pages return the same parsed document every time; live browser
    pages re-read the DOM on each call so the readiness waiter sees
    markup produced after load.
    """

    url: str = ""
    # False when every snapshot is the same document, so polling cannot help
    live: bool = True

    @abstractmethod
    async def snapshot(self) -> DocumentAccessor:
        """Return the current state of the page."""


class StaticDocumentSource(DocumentSource):
    """Source for server-rendered HTML that is already fully available."""

    live = False

    def __init__(self, html: str, url: str, parser: str = DEFAULT_PARSER):
        self.html = html
        self.url = url
        self.parser = parser
        self._document: Optional[HTMLDocument] = None

    async def snapshot(self) -> DocumentAccessor:
        if self._document is None:
            self._document = HTMLDocument(self.html, url=self.url, parser=self.parser)
        return self._document
