from __future__ import annotations

import logging
from typing import Optional

from .browser import open_browser
from .config import AppConfig
from .errors import NoJobsFoundError
from .harvest import HarvestConfig, fetch_job_details, harvest_jobs
from .models import ScrapeOutput
from .page_fetch import PageFetcher, PlaywrightFetcher
from .scanner import ScanConfig, find_most_recent_job_id, probe_job_id, scan_job_ids


logger = logging.getLogger(__name__)


async def run_pipeline(fetcher: PageFetcher, cfg: AppConfig, limit: Optional[int] = None) -> ScrapeOutput:
    """Bootstrap, scan and harvest with an already opened fetcher."""

    start_id = await find_most_recent_job_id(fetcher, cfg)
    logger.info("Most recent job ID: %d", start_id)

    async def probe(job_id: int) -> bool:
        return await probe_job_id(fetcher, job_id, cfg)

    job_ids = await scan_job_ids(probe, start_id, limit=limit, cfg=ScanConfig.from_app(cfg))
    logger.info("Found %d valid job IDs", len(job_ids))
    if not job_ids:
        raise NoJobsFoundError(f"no valid job ids found scanning down from {start_id}")

    async def fetch_job(job_id: str):
        return await fetch_job_details(fetcher, job_id, cfg)

    output = await harvest_jobs(job_ids, fetch_job, HarvestConfig.from_app(cfg))
    logger.info("Harvested %d/%d jobs", output.total_jobs, len(job_ids))
    return output


async def scrape_jobs(cfg: AppConfig, limit: Optional[int] = None) -> ScrapeOutput:
    async with open_browser(cfg) as browser:
        fetcher = PlaywrightFetcher(browser)
        try:
            return await run_pipeline(fetcher, cfg, limit=limit)
        finally:
            await fetcher.close()
