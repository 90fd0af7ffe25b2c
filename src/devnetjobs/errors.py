from __future__ import annotations


class DevnetJobsError(Exception):
    """Base class for errors raised by the scraper and importer."""


class FetchError(DevnetJobsError):
    """A page could not be fetched (timeout, navigation or network error)."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class StoreError(DevnetJobsError):
    """A single write against the job store failed."""


class ConfigError(DevnetJobsError):
    pass


class NoJobsFoundError(DevnetJobsError):
    """The scan finished without a single valid job id."""
