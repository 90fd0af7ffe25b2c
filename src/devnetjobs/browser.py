from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from playwright.async_api import Browser, async_playwright

from .config import AppConfig


logger = logging.getLogger(__name__)


async def _connect_cdp(playwright, cdp_url: str, *, timeout_ms: int, retries: int, backoff_s: float) -> Browser:
    last_err: Exception | None = None
    for attempt in range(retries):
        try:
            return await playwright.chromium.connect_over_cdp(cdp_url, timeout=timeout_ms)
        except Exception as e:
            last_err = e
            logger.debug("CDP connect attempt %d to %s failed: %s", attempt + 1, cdp_url, e)
            await asyncio.sleep(backoff_s * (2**attempt))

    msg = (
        f"Failed to connect to CDP at {cdp_url} after {retries} attempts. "
        "Try restarting Chrome with --remote-debugging-port and ensure /json/version is reachable."
    )
    raise RuntimeError(msg) from last_err


@asynccontextmanager
async def open_browser(
    cfg: AppConfig,
    *,
    timeout_ms: int = 45_000,
    retries: int = 3,
    backoff_s: float = 0.8,
) -> AsyncIterator[Browser]:
    """Yield a Chromium browser for one scrape run.

    With `cfg.cdp_url` set, attach to an existing Chrome session; otherwise
    launch a local Chromium. The browser is closed on every exit path.
    """

    async with async_playwright() as p:
        if cfg.cdp_url:
            browser = await _connect_cdp(p, cfg.cdp_url, timeout_ms=timeout_ms, retries=retries, backoff_s=backoff_s)
        else:
            browser = await p.chromium.launch(headless=cfg.headless)
        try:
            yield browser
        finally:
            try:
                await browser.close()
            except Exception as e:
                logger.debug("browser close failed: %s", e)
