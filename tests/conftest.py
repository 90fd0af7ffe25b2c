"""Shared fixtures: an in-memory page fetcher and sample detail pages."""

import asyncio
from typing import Dict, List, Optional, Union

import pytest

from devnetjobs.config import AppConfig
from devnetjobs.errors import FetchError
from devnetjobs.models import PageSnapshot
from devnetjobs.urls import job_url


BASE_URL = "https://devnetjobsindia.org"


def job_page(
    title: Optional[str] = "Programme Officer - Livelihoods",
    organization: Optional[str] = "Pradan",
    location: Optional[str] = "Ranchi, Jharkhand",
    deadline: Optional[str] = "30 Nov 2026",
    sectors: Optional[List[str]] = None,
    body: Optional[List[str]] = None,
    url: str = "",
) -> PageSnapshot:
    """Build a detail page snapshot shaped like the live site."""
    sectors = ["Livelihoods", "Rural Development"] if sectors is None else sectors
    body = ["Responsibilities include field visits.", "Graduate degree required."] if body is None else body

    parts = ["<html><body>", "<div class='menu'><a href='/'>Home</a></div>"]
    text = ["Home", "Search Jobs"]
    if title is not None:
        parts.append(f"<h1>{title}</h1>")
        text.append(title)
    if organization is not None:
        parts.append(f"<h5>{organization}</h5>")
        text.append(organization)
    if location is not None:
        parts.append(f"<p><b>Location:</b> {location}</p>")
        text.append(f"Location: {location}")
    if deadline is not None:
        parts.append(f"<p>Apply by: {deadline}</p>")
        text.append(f"Apply by: {deadline}")
    if sectors:
        parts.append("<p class='lbl'>Relevant Sectors</p>")
        parts.extend(f"<p class='val'>{s}</p>" for s in sectors)
        text.append("Relevant Sectors")
        text.extend(sectors)
    parts.extend(f"<p>{line}</p>" for line in body)
    text.extend(body)
    parts.append("<div>View Similar Jobs: Livelihoods</div><div>Subscribe to Value Membership</div>")
    parts.append("</body></html>")
    text.extend(["", "View Similar Jobs: Livelihoods", "Subscribe to Value Membership", "Footer"])

    return PageSnapshot(url=url, html="\n".join(parts), text="\n".join(text))


def error_page() -> PageSnapshot:
    return PageSnapshot(url="", html="<html><body><h1>Error</h1></body></html>", text="Error")


class FakeFetcher:
    """PageFetcher over a dict of url -> snapshot (or exception to raise)."""

    def __init__(
        self,
        pages: Optional[Dict[str, Union[PageSnapshot, Exception]]] = None,
        listing: Optional[List[Union[str, None, Exception]]] = None,
        delay: float = 0.0,
    ):
        self.pages = pages or {}
        self.listing = list(listing or [])
        self.delay = delay
        self.fetched: List[str] = []
        self.listing_calls = 0
        self.in_flight = 0
        self.max_in_flight = 0

    async def fetch(self, url, *, timeout_ms, wait_until="domcontentloaded"):
        self.fetched.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            page = self.pages.get(url)
            if page is None:
                raise FetchError(url, "Timeout 10000ms exceeded")
            if isinstance(page, Exception):
                raise page
            return page
        finally:
            self.in_flight -= 1

    async def open_first_listing(self, search_url, *, timeout_ms, settle_ms):
        self.listing_calls += 1
        if not self.listing:
            return None
        step = self.listing.pop(0)
        if isinstance(step, Exception):
            raise step
        return step


@pytest.fixture
def cfg() -> AppConfig:
    return AppConfig(
        base_url=BASE_URL,
        fallback_job_id=4242,
        bootstrap_retry_delay_s=0,
        bootstrap_settle_ms=0,
    )


@pytest.fixture
def detail_url():
    def _url(job_id):
        return job_url(BASE_URL, job_id)

    return _url
