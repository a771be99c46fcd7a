from __future__ import annotations

import argparse
import logging
import os
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Optional, Sequence

import requests

from wastage_tracker.config import SOURCE_DB, ConfigurationError, ReportConfig, load_report_config
from wastage_tracker.db import build_engine, build_session_factory
from wastage_tracker.diagnostics import DiagnosticLog
from wastage_tracker.fetch_client import FetchExhausted
from wastage_tracker.orchestration import ReportArtifacts, ReportOrchestrator
from wastage_tracker.registry import ReportRegistry
from wastage_tracker.reports.daily import DailyReport
from wastage_tracker.reports.monthly import MonthlyReport
from wastage_tracker.reports.weekly import WeeklyReport
from wastage_tracker.sources import DatabaseEntrySource, EntrySource, HttpEntrySource, InvalidResponseError

logger = logging.getLogger(__name__)


def build_registry() -> ReportRegistry:
    registry = ReportRegistry()
    registry.register(DailyReport)
    registry.register(WeeklyReport)
    registry.register(MonthlyReport)
    return registry


def build_source(config: ReportConfig) -> EntrySource:
    if config.source == SOURCE_DB:
        engine = build_engine(config.db)
        return DatabaseEntrySource(build_session_factory(engine))
    return HttpEntrySource(config.app_url, config.export_token, config.fetch)


def write_artifacts(artifacts: ReportArtifacts, output_dir: str | Path) -> dict[str, Path]:
    """Write the CSV attachment and the summary JSON for the transport step."""
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    csv_path = out / artifacts.csv_filename
    csv_path.write_text(artifacts.csv_text, encoding="utf-8")

    summary_path = out / f"{csv_path.stem}.summary.json"
    summary_path.write_text(artifacts.summary.model_dump_json(indent=2), encoding="utf-8")
    return {"csv": csv_path, "summary": summary_path}


def _parse_date(s: str) -> date:
    try:
        return date.fromisoformat(s.strip())
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {s!r}") from exc


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Build a wastage report for a completed period.")
    p.add_argument("--kind", choices=build_registry().keys(), default="daily")
    p.add_argument("--date", type=_parse_date, default=None,
                   help="Report on this business day / week / month instead of the last completed one.")
    p.add_argument("--weeks-back", type=int, default=1,
                   help="Weekly only: 1 = last week, 2 = the week before, ...")
    p.add_argument("--output-dir", default=None, help="Overrides REPORT_OUTPUT_DIR.")
    return p.parse_args(argv)


def run(
    args: argparse.Namespace,
    config: ReportConfig,
    source: EntrySource,
    now: Optional[datetime] = None,
) -> dict:
    reference = now or datetime.now(timezone.utc)
    if args.kind == "weekly" and args.weeks_back > 1:
        reference -= timedelta(weeks=args.weeks_back - 1)

    orchestrator = ReportOrchestrator(build_registry(), source)
    artifacts = orchestrator.run(args.kind, reference=reference, override=args.date, diagnostics=DiagnosticLog())
    paths = write_artifacts(artifacts, args.output_dir or config.output_dir)

    logger.info("\n%s", artifacts.text)
    return {
        "kind": artifacts.kind,
        "window_start": artifacts.window.start.isoformat(),
        "window_end": artifacts.window.end.isoformat(),
        "entries": artifacts.summary.entry_count,
        "rejected": len(artifacts.rejected),
        "total_cost": artifacts.summary.total_cost,
        "csv": str(paths["csv"]),
        "summary": str(paths["summary"]),
    }


def main(argv: Optional[Sequence[str]] = None) -> None:
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args = parse_args(argv)

    try:
        config = load_report_config()
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        raise SystemExit(1) from exc

    try:
        summary = run(args, config, build_source(config))
    except (FetchExhausted, InvalidResponseError, requests.RequestException) as exc:
        logger.error("Could not fetch wastage entries, no report written: %s", exc)
        raise SystemExit(1) from exc

    logger.info("REPORT SUMMARY: %s", summary)


if __name__ == "__main__":
    main()
