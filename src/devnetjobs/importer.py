from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .config import normalize_database_url
from .db import JobStore
from .errors import ConfigError, StoreError
from .models import ScrapeOutput, load_output


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportSummary:
    inserted: int = 0
    updated: int = 0
    errors: int = 0
    total: int = 0


def _short(title: str, n: int = 50) -> str:
    return title if len(title) <= n else title[:n] + "..."


def import_jobs(store: JobStore, output: ScrapeOutput) -> ImportSummary:
    """Upsert every job of a scrape artifact.

    Schema failures propagate; a failing record is logged, counted and skipped.
    """

    logger.info("Found %d jobs to import (scraped at %s)", len(output.jobs), output.scraped_at or "?")

    store.ensure_schema()

    inserted = updated = errors = 0
    for job in output.jobs:
        try:
            was_insert = store.upsert(job)
        except StoreError as e:
            errors += 1
            logger.error("  [ERROR] %s: %s", job.external_id, e)
            continue

        if was_insert:
            inserted += 1
            logger.info("  [INSERT] %s: %s", job.external_id, _short(job.title))
        else:
            updated += 1
            logger.info("  [UPDATE] %s: %s", job.external_id, _short(job.title))

    return ImportSummary(inserted=inserted, updated=updated, errors=errors, total=len(output.jobs))


def import_file(path: str | Path, database_url: Optional[str]) -> ImportSummary:
    database_url = normalize_database_url(database_url or "")
    if not database_url:
        raise ConfigError("DATABASE_URL is required (set it in the environment or data/config.env)")

    logger.info("Reading jobs from %s...", path)
    output = load_output(path)

    store = JobStore(database_url)
    try:
        return import_jobs(store, output)
    finally:
        store.close()
