from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional

from .config import AppConfig
from .page_fetch import PageFetcher
from .parsing import is_valid_job_page
from .urls import job_url, parse_job_id


logger = logging.getLogger(__name__)

Probe = Callable[[int], Awaitable[bool]]


@dataclass(frozen=True)
class ScanConfig:
    batch_size: int = 10
    max_consecutive_invalid: int = 100
    progress_every: int = 10

    @classmethod
    def from_app(cls, cfg: AppConfig) -> "ScanConfig":
        return cls(batch_size=cfg.scan_batch_size, max_consecutive_invalid=cfg.max_consecutive_invalid)


async def find_most_recent_job_id(fetcher: PageFetcher, cfg: AppConfig) -> int:
    """Newest job id, read from the first search result; falls back to cfg.fallback_job_id.

    Never raises: navigation failures are logged and retried.
    """

    for attempt in range(cfg.bootstrap_attempts):
        try:
            logger.info("Looking up most recent job id (attempt %d/%d)", attempt + 1, cfg.bootstrap_attempts)
            url = await fetcher.open_first_listing(
                cfg.search_url,
                timeout_ms=cfg.bootstrap_timeout_ms,
                settle_ms=cfg.bootstrap_settle_ms,
            )
            if url:
                logger.debug("landed on %s", url)
                job_id = parse_job_id(url)
                if job_id is not None:
                    return job_id
        except Exception as e:
            logger.info("Attempt %d failed: %s", attempt + 1, e)

        if attempt < cfg.bootstrap_attempts - 1 and cfg.bootstrap_retry_delay_s > 0:
            await asyncio.sleep(cfg.bootstrap_retry_delay_s)

    logger.warning("Could not discover the newest job id, using fallback %d", cfg.fallback_job_id)
    return cfg.fallback_job_id


async def probe_job_id(fetcher: PageFetcher, job_id: int, cfg: AppConfig) -> bool:
    try:
        snapshot = await fetcher.fetch(
            job_url(cfg.base_url, job_id),
            timeout_ms=cfg.probe_timeout_ms,
            wait_until="domcontentloaded",
        )
    except Exception as e:
        logger.debug("probe %d failed: %s", job_id, e)
        return False
    return is_valid_job_page(snapshot)


async def _safe_probe(probe: Probe, job_id: int) -> bool:
    try:
        return bool(await probe(job_id))
    except Exception as e:
        logger.debug("probe %d raised: %s", job_id, e)
        return False


async def scan_job_ids(
    probe: Probe,
    start_id: int,
    limit: Optional[int] = None,
    cfg: Optional[ScanConfig] = None,
) -> List[str]:
    """Walk ids downward from start_id and return the valid ones, newest first.

    Ids are probed `batch_size` at a time; a batch starts only once the
    previous one has fully resolved. The scan ends after
    `max_consecutive_invalid` invalid ids in a row, once `limit` ids were
    found, or at id 0.
    """

    cfg = cfg or ScanConfig()
    batch_size = max(1, cfg.batch_size)

    found: List[str] = []
    consecutive_invalid = 0
    cursor = start_id

    logger.info("Scanning job ids starting from %d...", start_id)

    while cursor >= 0:
        if limit is not None and len(found) >= limit:
            break

        batch = list(range(cursor, max(cursor - batch_size, -1), -1))
        cursor -= batch_size

        results = await asyncio.gather(*(_safe_probe(probe, jid) for jid in batch))

        for jid, ok in sorted(zip(batch, results), key=lambda r: r[0], reverse=True):
            if ok:
                found.append(str(jid))
                consecutive_invalid = 0
                if cfg.progress_every and len(found) % cfg.progress_every == 0:
                    logger.info("  Found %d jobs so far (current ID: %d)", len(found), jid)
                if limit is not None and len(found) >= limit:
                    logger.info("Reached limit of %d jobs", limit)
                    return found
            else:
                consecutive_invalid += 1
                if consecutive_invalid >= cfg.max_consecutive_invalid:
                    logger.info(
                        "Stopping after %d consecutive invalid ids (at ID %d)",
                        consecutive_invalid,
                        jid,
                    )
                    return found

    return found
