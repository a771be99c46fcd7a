from datetime import date, datetime
from typing import Optional

from wastage_tracker.aggregation import ItemOrder
from wastage_tracker.reports.base import ReportKind
from wastage_tracker.renderers import DAILY_HEADERS, daily_row
from wastage_tracker.window import BusinessWindow, calendar_month_window, previous_month_window


class MonthlyReport(ReportKind):
    item_order = ItemOrder.COST_DESC

    @property
    def name(self) -> str:
        return "monthly"

    @property
    def title(self) -> str:
        return "Monthly Wastage Report"

    @property
    def headers(self) -> list[str]:
        return DAILY_HEADERS

    def row(self, event) -> list[str]:
        return daily_row(event)

    def window(self, reference: datetime, override: Optional[date] = None) -> BusinessWindow:
        # Calendar months start at midnight; the business-day cutover is not used.
        if override is not None:
            return calendar_month_window(override.year, override.month)
        return previous_month_window(reference)

    def filename(self, window: BusinessWindow) -> str:
        return f"monthly-wastage-report-{window.start.strftime('%Y-%m')}.csv"
