from datetime import date, datetime
from typing import Optional

from wastage_tracker.aggregation import ItemOrder
from wastage_tracker.reports.base import ReportKind
from wastage_tracker.renderers import WEEKLY_HEADERS, report_filename, weekly_row
from wastage_tracker.window import (
    CUTOVER_HOUR,
    BusinessWindow,
    iso_week_window,
    previous_week_window,
)


class WeeklyReport(ReportKind):
    item_order = ItemOrder.COST_DESC

    @property
    def name(self) -> str:
        return "weekly"

    @property
    def title(self) -> str:
        return "Weekly Wastage Report"

    @property
    def headers(self) -> list[str]:
        return WEEKLY_HEADERS

    def row(self, event) -> list[str]:
        return weekly_row(event)

    def window(self, reference: datetime, override: Optional[date] = None) -> BusinessWindow:
        if override is not None:
            iso_year, iso_week, _ = override.isocalendar()
            return iso_week_window(iso_year, iso_week, CUTOVER_HOUR)
        return previous_week_window(reference, CUTOVER_HOUR, weeks_back=1)

    def filename(self, window: BusinessWindow) -> str:
        return report_filename(window, prefix="weekly-wastage-report")
