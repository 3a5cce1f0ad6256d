"""
Browser-backed document source using Playwright for client-side rendered
job pages (LinkedIn).
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, async_playwright

from pipeline.document import DocumentAccessError, DocumentAccessor, DocumentSource, HTMLDocument

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    'User-Agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36',
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
    'Accept-Language': 'en-US,en;q=0.9'
}


class PageDocumentSource(DocumentSource):
    """
    Live page source.

    Every snapshot re-reads the rendered DOM, so a readiness probe that
    failed on one tick can pass on the next once scripts have run.
    """

    def __init__(self, page: Page, url: Optional[str] = None):
        self.page = page
        self.url = url or page.url

    async def snapshot(self) -> DocumentAccessor:
        if self.page.is_closed():
            raise DocumentAccessError(f"Page for {self.url} is closed")
        try:
            html = await self.page.content()
        except PlaywrightError as e:
            raise DocumentAccessError(f"Could not read page content: {e}") from e
        return HTMLDocument(html, url=self.url)


class BrowserCrawler:
    """Opens pages in headless Chromium."""

    def __init__(self, headless: bool = True, timeout: int = 30000):
        self.headless = headless
        self.timeout = timeout

    @asynccontextmanager
    async def open(self, url: str) -> AsyncIterator[PageDocumentSource]:
        """
        Navigate to url and yield a live source for it.

        Navigation only waits for DOMContentLoaded; waiting for the posting
        markup itself is the readiness waiter's job.
        """
        async with async_playwright() as p:
            browser = await p.chromium.launch(headless=self.headless)
            try:
                page = await browser.new_page()
                await page.set_extra_http_headers(DEFAULT_HEADERS)
                try:
                    await page.goto(url, wait_until='domcontentloaded', timeout=self.timeout)
                except PlaywrightError as e:
                    raise DocumentAccessError(f"Browser navigation failed for {url}: {e}") from e
                yield PageDocumentSource(page, url=url)
            finally:
                await browser.close()
