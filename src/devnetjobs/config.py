from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


def _default_env_paths() -> list[Path]:
    """Search order for config.env.

    Supports running `devnetjobs` from anywhere by using a stable user
    directory, while keeping repo-local config working. DEVNETJOBS_CONFIG,
    when set, replaces the whole search.
    """

    # Repo-local (when running inside the repo)
    local = Path.cwd() / "data" / "config.env"

    # User-local (global install)
    home = Path.home() / ".devnetjobs" / "config.env"
    xdg = Path(os.getenv("XDG_CONFIG_HOME") or (Path.home() / ".config")) / "devnetjobs" / "config.env"

    return [local, home, xdg]


def find_config_env() -> Path:
    override = (os.getenv("DEVNETJOBS_CONFIG") or "").strip()
    if override:
        return Path(override)
    for p in _default_env_paths():
        if p.exists():
            return p
    return Path.home() / ".devnetjobs" / "config.env"


@dataclass(frozen=True)
class AppConfig:
    base_url: str = "https://devnetjobsindia.org"

    # Destination store. Only the import phase needs it.
    database_url: str = ""

    # Optional: reuse an already running Chrome (--remote-debugging-port)
    # instead of launching a local headless Chromium.
    cdp_url: str = ""
    headless: bool = True

    # Last known good job id, used when the newest id cannot be discovered.
    fallback_job_id: int = 285453

    scan_batch_size: int = 10
    max_consecutive_invalid: int = 100
    harvest_batch_size: int = 10

    probe_timeout_ms: int = 10_000
    detail_timeout_ms: int = 15_000
    bootstrap_timeout_ms: int = 20_000
    bootstrap_attempts: int = 3
    bootstrap_settle_ms: int = 2_000
    bootstrap_retry_delay_s: float = 2.0

    @property
    def search_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/search_jobs.aspx"


def _load_envfile(path: Path) -> None:
    if not path.exists():
        return
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        k, v = line.split("=", 1)
        os.environ.setdefault(k.strip(), v.strip().strip('"').strip("'"))


def normalize_database_url(url: str) -> str:
    # Hosted Postgres providers hand out postgres:// URLs; SQLAlchemy only accepts postgresql://.
    url = (url or "").strip()
    if url.startswith("postgres://"):
        return "postgresql://" + url[len("postgres://"):]
    return url


def load_config(env_path: Optional[Path] = None) -> AppConfig:
    env_path = env_path or find_config_env()
    _load_envfile(env_path)

    def geti(name: str, default: int) -> int:
        v = (os.getenv(name) or "").strip()
        if not v:
            return default
        try:
            return int(v)
        except ValueError:
            return default

    def getf(name: str, default: float) -> float:
        v = (os.getenv(name) or "").strip()
        if not v:
            return default
        try:
            return float(v)
        except ValueError:
            return default

    def getb(name: str, default: bool) -> bool:
        v = (os.getenv(name) or "").strip().lower()
        if not v:
            return default
        return v in {"1", "true", "yes", "on"}

    return AppConfig(
        base_url=(os.getenv("BASE_URL") or AppConfig.base_url).strip(),
        database_url=normalize_database_url(os.getenv("DATABASE_URL") or ""),
        cdp_url=(os.getenv("CDP_URL") or "").strip(),
        headless=getb("HEADLESS", AppConfig.headless),
        fallback_job_id=geti("FALLBACK_JOB_ID", AppConfig.fallback_job_id),
        scan_batch_size=max(1, geti("SCAN_BATCH_SIZE", AppConfig.scan_batch_size)),
        max_consecutive_invalid=max(1, geti("MAX_CONSECUTIVE_INVALID", AppConfig.max_consecutive_invalid)),
        harvest_batch_size=max(1, geti("HARVEST_BATCH_SIZE", AppConfig.harvest_batch_size)),
        probe_timeout_ms=geti("PROBE_TIMEOUT_MS", AppConfig.probe_timeout_ms),
        detail_timeout_ms=geti("DETAIL_TIMEOUT_MS", AppConfig.detail_timeout_ms),
        bootstrap_timeout_ms=geti("BOOTSTRAP_TIMEOUT_MS", AppConfig.bootstrap_timeout_ms),
        bootstrap_attempts=max(1, geti("BOOTSTRAP_ATTEMPTS", AppConfig.bootstrap_attempts)),
        bootstrap_settle_ms=max(0, geti("BOOTSTRAP_SETTLE_MS", AppConfig.bootstrap_settle_ms)),
        bootstrap_retry_delay_s=max(0.0, getf("BOOTSTRAP_RETRY_DELAY_S", AppConfig.bootstrap_retry_delay_s)),
    )
