import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional

from wastage_tracker.aggregation import Aggregate, aggregate
from wastage_tracker.contracts import SummaryView, WastageEvent
from wastage_tracker.diagnostics import DiagnosticLog
from wastage_tracker.filtering import RejectedEvent, filter_to_window
from wastage_tracker.registry import ReportRegistry
from wastage_tracker.renderers import to_delimited_table, to_summary, to_text
from wastage_tracker.sources import EntrySource
from wastage_tracker.window import BusinessWindow, ensure_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportArtifacts:
    kind: str
    window: BusinessWindow
    events: list[WastageEvent]
    rejected: list[RejectedEvent]
    aggregate: Aggregate
    summary: SummaryView
    csv_text: str
    csv_filename: str
    text: str


class ReportOrchestrator:
    def __init__(self, registry: ReportRegistry, source: EntrySource):
        self._registry = registry
        self._source = source

    def run(
        self,
        kind_name: str,
        reference: Optional[datetime] = None,
        override: Optional[date] = None,
        diagnostics: Optional[DiagnosticLog] = None,
    ) -> ReportArtifacts:
        kind = self._registry.resolve(kind_name)
        reference = ensure_utc(reference) if reference is not None else datetime.now(timezone.utc)
        diagnostics = diagnostics if diagnostics is not None else DiagnosticLog()

        window = kind.window(reference, override)
        logger.info(
            "Building %s report for [%s, %s) UTC",
            kind.name,
            window.start.strftime("%Y-%m-%d %H:%M"),
            window.end.strftime("%Y-%m-%d %H:%M"),
        )

        self._source.prepare()
        raw_events = self._source.get_events(window.start, window.end)

        valid, rejected = filter_to_window(raw_events, window, diagnostics)
        events = sorted(valid, key=lambda e: e.timestamp)
        if not events:
            logger.info("No wastage entries in this period")

        totals = aggregate(events, item_order=kind.item_order, daily_breakdown=window.spans_multiple_days)
        for item in totals.item_summary:
            if item.conflicting_units:
                diagnostics.record(
                    "unit_conflict",
                    f"{item.item_name} logged in {item.unit} and {', '.join(item.conflicting_units)}; "
                    f"only {item.unit} quantities are summed",
                    item_name=item.item_name,
                    unit=item.unit,
                    conflicting_units=list(item.conflicting_units),
                )

        # records carried over from earlier periods expire before they reach a report
        diagnostics.prune()
        notices = [record.message for record in diagnostics.drain()]
        summary = to_summary(totals, window, title=kind.title, notices=notices)

        return ReportArtifacts(
            kind=kind.name,
            window=window,
            events=events,
            rejected=rejected,
            aggregate=totals,
            summary=summary,
            csv_text=to_delimited_table(events, kind.headers, kind.row),
            csv_filename=kind.filename(window),
            text=to_text(summary),
        )
