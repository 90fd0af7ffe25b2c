from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence

from .config import AppConfig
from .models import Job, ScrapeOutput, utc_timestamp
from .page_fetch import PageFetcher
from .parsing import DescriptionExtractor, extract_job, window_description
from .urls import job_url


logger = logging.getLogger(__name__)

FetchJob = Callable[[str], Awaitable[Optional[Job]]]


@dataclass(frozen=True)
class HarvestConfig:
    batch_size: int = 10

    @classmethod
    def from_app(cls, cfg: AppConfig) -> "HarvestConfig":
        return cls(batch_size=cfg.harvest_batch_size)


async def fetch_job_details(
    fetcher: PageFetcher,
    job_id: str,
    cfg: AppConfig,
    *,
    describe: DescriptionExtractor = window_description,
) -> Optional[Job]:
    url = job_url(cfg.base_url, job_id)
    snapshot = await fetcher.fetch(url, timeout_ms=cfg.detail_timeout_ms, wait_until="networkidle")
    return extract_job(snapshot, job_id, url, describe=describe)


async def _harvest_one(fetch_job: FetchJob, job_id: str) -> Optional[Job]:
    try:
        return await fetch_job(job_id)
    except Exception as e:
        logger.error("Failed to scrape job %s: %s", job_id, e)
        return None


async def harvest_jobs(
    job_ids: Sequence[str],
    fetch_job: FetchJob,
    cfg: Optional[HarvestConfig] = None,
) -> ScrapeOutput:
    """Fetch details for every id, `batch_size` at a time.

    A failing item yields no record and never affects its siblings. Jobs keep
    the order of `job_ids`.
    """

    cfg = cfg or HarvestConfig()
    batch_size = max(1, cfg.batch_size)
    total = len(job_ids)

    jobs: List[Job] = []
    for start in range(0, total, batch_size):
        batch = list(job_ids[start:start + batch_size])
        logger.info(
            "Scraping jobs %d-%d/%d: %s",
            start + 1,
            start + len(batch),
            total,
            ", ".join(batch),
        )

        results = await asyncio.gather(*(_harvest_one(fetch_job, jid) for jid in batch))
        survivors = [job for job in results if job is not None]
        jobs.extend(survivors)

        skipped = len(batch) - len(survivors)
        if skipped:
            logger.info("  %d of %d jobs skipped in this batch", skipped, len(batch))

    return ScrapeOutput(scraped_at=utc_timestamp(), jobs=jobs)
