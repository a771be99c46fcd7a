import os
from dataclasses import dataclass
from typing import Optional

from wastage_tracker.db import DBConfig, load_db_config

SOURCE_HTTP = "http"
SOURCE_DB = "db"


class ConfigurationError(Exception):
    def __init__(self, setting: str, problem: str = "is required"):
        super().__init__(f"{setting} {problem}")
        self.setting = setting


@dataclass(frozen=True)
class FetchConfig:
    max_attempts: int = 5
    initial_delay_ms: int = 2000
    max_total_wait_ms: int = 300_000
    prewarm_seconds: int = 0


@dataclass(frozen=True)
class ReportConfig:
    source: str
    output_dir: str
    fetch: FetchConfig
    app_url: Optional[str] = None
    export_token: Optional[str] = None
    db: Optional[DBConfig] = None


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(name, f"must be an integer, got {raw!r}") from exc
    if value < 0:
        raise ConfigurationError(name, f"must not be negative, got {value}")
    return value


def load_report_config() -> ReportConfig:
    """Read report settings from the environment, failing before any fetch."""
    source = os.environ.get("REPORT_SOURCE", SOURCE_HTTP).strip().lower()
    if source not in (SOURCE_HTTP, SOURCE_DB):
        raise ConfigurationError("REPORT_SOURCE", f"must be {SOURCE_HTTP!r} or {SOURCE_DB!r}, got {source!r}")

    fetch = FetchConfig(
        max_attempts=max(1, _int_env("FETCH_MAX_ATTEMPTS", 5)),
        initial_delay_ms=_int_env("FETCH_INITIAL_DELAY_MS", 2000),
        max_total_wait_ms=_int_env("FETCH_MAX_TOTAL_WAIT_MS", 300_000),
        prewarm_seconds=_int_env("PREWARM_SECONDS", 0),
    )
    output_dir = os.environ.get("REPORT_OUTPUT_DIR", "./reports")

    if source == SOURCE_DB:
        return ReportConfig(source=source, output_dir=output_dir, fetch=fetch, db=load_db_config())

    app_url = (os.environ.get("APP_URL") or "").strip().rstrip("/")
    if not app_url:
        raise ConfigurationError("APP_URL")
    export_token = (os.environ.get("EXPORT_TOKEN") or "").strip()
    if not export_token:
        raise ConfigurationError("EXPORT_TOKEN")

    return ReportConfig(
        source=source,
        output_dir=output_dir,
        fetch=fetch,
        app_url=app_url,
        export_token=export_token,
    )
