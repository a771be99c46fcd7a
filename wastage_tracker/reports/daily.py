from datetime import date, datetime
from typing import Optional

from wastage_tracker.reports.base import ReportKind
from wastage_tracker.renderers import DAILY_HEADERS, daily_row, report_filename
from wastage_tracker.window import (
    CUTOVER_HOUR,
    BusinessWindow,
    business_day_window,
    compute_business_window,
)


class DailyReport(ReportKind):
    @property
    def name(self) -> str:
        return "daily"

    @property
    def title(self) -> str:
        return "Daily Wastage Report"

    @property
    def headers(self) -> list[str]:
        return DAILY_HEADERS

    def row(self, event) -> list[str]:
        return daily_row(event)

    def window(self, reference: datetime, override: Optional[date] = None) -> BusinessWindow:
        # Always the last fully elapsed business day, never the one in progress.
        if override is not None:
            return business_day_window(override, CUTOVER_HOUR)
        return compute_business_window(reference, CUTOVER_HOUR, offset_days=1)

    def filename(self, window: BusinessWindow) -> str:
        return report_filename(window)
