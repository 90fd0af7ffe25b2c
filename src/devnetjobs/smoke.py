from __future__ import annotations

from dataclasses import dataclass

import requests

from .config import AppConfig
from .db import JobStore
from .page_fetch import DEFAULT_UA


@dataclass(frozen=True)
class CheckResult:
    name: str
    ok: bool
    detail: str = ""


def smoke_checks(cfg: AppConfig) -> list[CheckResult]:
    results: list[CheckResult] = []

    # Source site
    try:
        r = requests.get(cfg.search_url, headers={"User-Agent": DEFAULT_UA}, timeout=10)
        r.raise_for_status()
        results.append(CheckResult("site", True, f"http {r.status_code}"))
    except Exception as e:
        results.append(CheckResult("site", False, f"{e}"))

    # Database
    if not cfg.database_url:
        results.append(CheckResult("database", False, "missing DATABASE_URL"))
    else:
        try:
            store = JobStore(cfg.database_url)
            try:
                store.ping()
            finally:
                store.close()
            results.append(CheckResult("database", True, "ok"))
        except Exception as e:
            results.append(CheckResult("database", False, f"error: {e}"))

    # CDP (optional)
    if cfg.cdp_url:
        try:
            r = requests.get(f"{cfg.cdp_url.rstrip('/')}/json/version", timeout=3)
            r.raise_for_status()
            j = r.json()
            results.append(CheckResult("cdp", True, j.get("Browser", "ok")))
        except Exception as e:
            results.append(CheckResult("cdp", False, f"{e}"))

    return results
