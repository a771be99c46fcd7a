"""Pure renderers turning aggregates into report artifacts.

Formatting is fixed because downstream consumers parse the attachments:

* money: exactly two decimals, rounded half-up on the shortest decimal
  representation of the float (``2.345`` -> ``2.35``); missing -> ``0.00``
* timestamps: UTC, ``DD.MM.YYYY HH:mm:ss`` in tables, ``DD.MM.YYYY HH:mm``
  for period bounds
* table fields are joined with ``;`` and rows with ``\\n``. Separators inside
  fields are not escaped.
"""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Iterable, Optional, Sequence

from wastage_tracker.aggregation import Aggregate
from wastage_tracker.contracts import DaySummaryRow, ItemSummaryRow, SummaryView, WastageEvent
from wastage_tracker.window import BusinessWindow, ensure_utc

SEPARATOR = ";"
CURRENCY = "€"

DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

DAILY_HEADERS = ["Employee", "Item", "Qty", "Unit", "Reason", "Time", f"Cost ({CURRENCY})"]
WEEKLY_HEADERS = ["Day", "Date", "Time", "Employee", "Item", "Qty", "Unit", "Reason", f"Cost ({CURRENCY})"]

_CENT = Decimal("0.01")


def format_money(value: Optional[float]) -> str:
    if value is None:
        return "0.00"
    amount = Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP)
    if amount == 0:
        amount = abs(amount)
    return f"{amount:.2f}"


def format_currency(value: Optional[float]) -> str:
    return f"{CURRENCY}{format_money(value)}"


def format_quantity(value: float) -> str:
    """Plain number without float noise: ``1.0`` -> ``1``, ``0.30000000000000004`` -> ``0.3``.

    Small quantities keep their digits (``0.0004`` stays ``0.0004``).
    """
    amount = Decimal(repr(round(value, 9))).normalize()
    return format(amount, "f") if amount else "0"


def format_date(value: date) -> str:
    return value.strftime("%d.%m.%Y")


def format_timestamp(value: datetime, seconds: bool = True) -> str:
    pattern = "%d.%m.%Y %H:%M:%S" if seconds else "%d.%m.%Y %H:%M"
    return ensure_utc(value).strftime(pattern)


def day_name(value: date) -> str:
    return DAY_NAMES[value.weekday()]


def daily_row(event: WastageEvent) -> list[str]:
    return [
        event.employee_name,
        event.item_name,
        format_quantity(event.quantity),
        event.unit,
        event.reason or "",
        format_timestamp(event.timestamp),
        format_money(event.total_cost),
    ]


def weekly_row(event: WastageEvent) -> list[str]:
    ts = ensure_utc(event.timestamp)
    return [
        day_name(ts.date()),
        format_date(ts.date()),
        ts.strftime("%H:%M"),
        event.employee_name,
        event.item_name,
        format_quantity(event.quantity),
        event.unit,
        event.reason or "",
        format_money(event.total_cost),
    ]


def to_delimited_table(
    events: Iterable[WastageEvent],
    headers: Sequence[str],
    column_extractor: Callable[[WastageEvent], Sequence[str]],
    separator: str = SEPARATOR,
) -> str:
    lines = [separator.join(headers)]
    for event in events:
        fields = column_extractor(event)
        if len(fields) != len(headers):
            raise ValueError(f"extractor returned {len(fields)} fields for {len(headers)} headers")
        lines.append(separator.join(fields))
    return "\n".join(lines)


def report_filename(window: BusinessWindow, prefix: str = "wastage-report") -> str:
    """Attachment name keyed by the reported business day, not the run date."""
    return f"{prefix}-{window.start.date().isoformat()}.csv"


def period_label(window: BusinessWindow) -> str:
    dates = window.business_dates()
    if len(dates) == 1:
        return format_date(dates[0])
    return f"{dates[0].strftime('%d.%m')} - {format_date(dates[-1])}"


def _item_rows(aggregate: Aggregate) -> list[ItemSummaryRow]:
    return [
        ItemSummaryRow(
            item=item.item_name,
            quantity=f"{format_quantity(item.total_quantity)} {item.unit}",
            unit=item.unit,
            cost=format_money(item.total_cost),
            occurrences=item.occurrence_count,
            conflicting_units=list(item.conflicting_units),
        )
        for item in aggregate.item_summary
    ]


def _day_rows(aggregate: Aggregate, window: BusinessWindow) -> list[DaySummaryRow]:
    # Every day of the window is listed, including days without entries.
    # Dates only present in the breakdown (after-midnight entries of the
    # closing business day) are appended so the days add up to the total.
    days = set(window.business_dates()) | set(aggregate.daily_breakdown)
    rows = []
    for day in sorted(days):
        totals = aggregate.daily_breakdown.get(day)
        rows.append(
            DaySummaryRow(
                date=format_date(day),
                day_name=day_name(day),
                total_cost=format_money(totals.total_cost if totals else 0.0),
                entry_count=totals.count if totals else 0,
            )
        )
    return rows


def to_summary(
    aggregate: Aggregate,
    window: BusinessWindow,
    title: str = "Wastage Report",
    notices: Iterable[str] = (),
) -> SummaryView:
    multi_day = window.spans_multiple_days
    days = _day_rows(aggregate, window) if multi_day else None
    daily_average = None
    if multi_day:
        daily_average = format_money(aggregate.total_cost / len(window.business_dates()))

    return SummaryView(
        title=title,
        period_start=format_timestamp(window.start, seconds=False),
        period_end=format_timestamp(window.end, seconds=False),
        period_label=period_label(window),
        entry_count=aggregate.entry_count,
        currency=CURRENCY,
        total_cost=format_money(aggregate.total_cost),
        total_cost_display=format_currency(aggregate.total_cost),
        items=_item_rows(aggregate),
        days=days,
        daily_average=daily_average,
        notices=list(notices),
    )


def to_text(summary: SummaryView) -> str:
    """Plain-text rendering of a summary for logs and console output."""
    lines = [
        f"=== {summary.title} ===",
        f"Period: {summary.period_start} - {summary.period_end} UTC",
        f"Total Entries: {summary.entry_count}",
        f"Total Cost: {summary.total_cost_display}",
    ]
    if summary.daily_average is not None:
        lines.append(f"Daily Average: {summary.currency}{summary.daily_average}")

    lines.append("")
    lines.append("Summary by Item:")
    if not summary.items:
        lines.append("  No wastage entries")
    for row in summary.items:
        flag = f" (also logged as {', '.join(row.conflicting_units)})" if row.conflicting_units else ""
        lines.append(f"  {row.item}: {row.quantity}{flag}, {summary.currency}{row.cost}, {row.occurrences}x")

    if summary.days is not None:
        lines.append("")
        lines.append("Daily Breakdown:")
        for day in summary.days:
            detail = f"{day.entry_count} entries" if day.entry_count else "No wastage entries"
            lines.append(f"  {day.day_name}, {day.date}: {summary.currency}{day.total_cost} ({detail})")

    if summary.notices:
        lines.append("")
        lines.append("Notices:")
        lines.extend(f"  - {notice}" for notice in summary.notices)

    return "\n".join(lines)
