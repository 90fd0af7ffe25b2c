from __future__ import annotations

import logging
from typing import Optional, Protocol

from playwright.async_api import Browser, BrowserContext, Page
from playwright.async_api import Error as PWError

from .errors import FetchError
from .models import PageSnapshot


logger = logging.getLogger(__name__)

DEFAULT_UA = "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"

JOB_LINK_SELECTOR = 'a[href*="lnkJobTitle"]'


class PageFetcher(Protocol):
    async def fetch(self, url: str, *, timeout_ms: int, wait_until: str = "domcontentloaded") -> PageSnapshot:
        ...

    async def open_first_listing(self, search_url: str, *, timeout_ms: int, settle_ms: int) -> Optional[str]:
        ...


class PlaywrightFetcher:
    """PageFetcher backed by a Playwright browser.

    `fetch` opens a fresh browser context per call so concurrent fetches never
    share cookies, page or DOM state. The bootstrap navigation reuses one
    shared page, since it runs sequentially.
    """

    def __init__(self, browser: Browser, *, user_agent: str = DEFAULT_UA):
        self.browser = browser
        self.user_agent = user_agent
        self._shared_ctx: Optional[BrowserContext] = None
        self._shared_page: Optional[Page] = None

    async def fetch(self, url: str, *, timeout_ms: int, wait_until: str = "domcontentloaded") -> PageSnapshot:
        try:
            ctx = await self.browser.new_context(user_agent=self.user_agent)
        except PWError as e:
            raise FetchError(url, f"cannot open context: {e}") from e

        try:
            page = await ctx.new_page()
            page.set_default_timeout(timeout_ms)
            await page.goto(url, wait_until=wait_until, timeout=timeout_ms)
            html = await page.content()
            try:
                text = await page.inner_text("body")
            except PWError:
                text = ""
            return PageSnapshot(url=page.url, html=html or "", text=text or "")
        except PWError as e:
            raise FetchError(url, str(e).splitlines()[0] if str(e) else type(e).__name__) from e
        finally:
            try:
                await ctx.close()
            except Exception as e:
                logger.debug("context close failed for %s: %s", url, e)

    async def _bootstrap_page(self, timeout_ms: int) -> Page:
        if self._shared_page is None or self._shared_page.is_closed():
            if self._shared_ctx is None:
                self._shared_ctx = await self.browser.new_context(user_agent=self.user_agent)
            self._shared_page = await self._shared_ctx.new_page()
        self._shared_page.set_default_timeout(timeout_ms)
        return self._shared_page

    async def open_first_listing(self, search_url: str, *, timeout_ms: int, settle_ms: int) -> Optional[str]:
        """Search with an empty query and follow the first job-title link.

        Returns the address reached, or None if the result list had no links yet.
        """

        page = await self._bootstrap_page(timeout_ms)

        logger.debug("opening search page %s", search_url)
        await page.goto(search_url, wait_until="networkidle", timeout=timeout_ms)

        await page.get_by_role("button", name="Search").click()
        await page.wait_for_load_state("networkidle", timeout=timeout_ms)
        await page.wait_for_timeout(settle_ms)

        link = page.locator(JOB_LINK_SELECTOR).first
        if await link.count() == 0:
            logger.debug("no job links on the result list yet")
            return None

        await link.click(timeout=timeout_ms)
        await page.wait_for_load_state("networkidle", timeout=timeout_ms)
        return page.url

    async def close(self) -> None:
        if self._shared_ctx is not None:
            try:
                await self._shared_ctx.close()
            except Exception as e:
                logger.debug("shared context close failed: %s", e)
        self._shared_ctx = None
        self._shared_page = None
