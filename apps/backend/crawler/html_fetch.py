"""
Static page fetcher for server-rendered job boards (Greenhouse, Lever).
"""
import logging
from pathlib import Path
from typing import Optional

import httpx
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from pipeline.document import DocumentAccessError, StaticDocumentSource

logger = logging.getLogger(__name__)

DEFAULT_UA = (
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'
)
DEFAULT_TIMEOUT = 30.0
MAX_RETRIES = 2


class HTMLFetcher:
    """Fetches a page over HTTP and wraps it as a StaticDocumentSource."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, user_agent: Optional[str] = None):
        self.timeout = httpx.Timeout(timeout)
        self.user_agent = user_agent or DEFAULT_UA

    @retry(
        stop=stop_after_attempt(MAX_RETRIES + 1),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.ConnectError)),
        reraise=True
    )
    async def fetch_html(self, url: str) -> str:
        """
        Fetch HTML for url.

        Raises:
            DocumentAccessError: non-2xx response
        """
        headers = {
            'User-Agent': self.user_agent,
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
            'Accept-Language': 'en-US,en;q=0.9',
        }
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            response = await client.get(url, headers=headers)

        if response.status_code >= 400:
            raise DocumentAccessError(f"HTTP {response.status_code} fetching {url}")

        logger.debug(f"[html_fetch] Fetched {url} ({len(response.content)} bytes)")
        return response.text

    async def fetch(self, url: str) -> StaticDocumentSource:
        html = await self.fetch_html(url)
        return StaticDocumentSource(html, url)


def load_html_file(path: str, url: str) -> StaticDocumentSource:
    """Wrap a saved HTML file as if it had been loaded from url."""
    html = Path(path).read_text(encoding='utf-8', errors='ignore')
    return StaticDocumentSource(html, url)
