from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Tuple


DEFAULT_TITLE = "Unknown Title"
DEFAULT_ORGANIZATION = "Unknown Organization"
DEFAULT_LOCATION = "India"
DEFAULT_DEADLINE = "Unknown"
DEFAULT_SECTORS = ("General",)


@dataclass(frozen=True)
class Job:
    external_id: str
    title: str = DEFAULT_TITLE
    organization: str = DEFAULT_ORGANIZATION
    location: str = DEFAULT_LOCATION
    deadline: str = DEFAULT_DEADLINE
    sectors: Tuple[str, ...] = DEFAULT_SECTORS
    description: str = ""
    original_url: str = ""

    def to_dict(self) -> dict:
        return {
            "externalId": self.external_id,
            "title": self.title,
            "organization": self.organization,
            "location": self.location,
            "deadline": self.deadline,
            "sectors": list(self.sectors),
            "description": self.description,
            "originalUrl": self.original_url,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Job":
        # Older artifacts may miss fields; fall back to the same defaults the parser uses.
        return cls(
            external_id=str(data["externalId"]),
            title=data.get("title") or DEFAULT_TITLE,
            organization=data.get("organization") or DEFAULT_ORGANIZATION,
            location=data.get("location") or DEFAULT_LOCATION,
            deadline=data.get("deadline") or DEFAULT_DEADLINE,
            sectors=tuple(data.get("sectors") or DEFAULT_SECTORS),
            description=data.get("description") or "",
            original_url=data.get("originalUrl") or "",
        )


def utc_timestamp(now: datetime | None = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class ScrapeOutput:
    scraped_at: str
    jobs: List[Job]

    @property
    def total_jobs(self) -> int:
        return len(self.jobs)

    def to_dict(self) -> dict:
        return {
            "scrapedAt": self.scraped_at,
            "totalJobs": self.total_jobs,
            "jobs": [j.to_dict() for j in self.jobs],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ScrapeOutput":
        return cls(
            scraped_at=data.get("scrapedAt") or "",
            jobs=[Job.from_dict(j) for j in data.get("jobs") or []],
        )


def write_output(output: ScrapeOutput, path: str | Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(output.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
    return path


def load_output(path: str | Path) -> ScrapeOutput:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return ScrapeOutput.from_dict(data)


@dataclass(frozen=True)
class PageSnapshot:
    """What a fetcher hands to the parser: final address, markup and linearized body text."""

    url: str
    html: str
    text: str = ""
