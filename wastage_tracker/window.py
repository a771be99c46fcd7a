from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone

CUTOVER_HOUR = 6

_DAY = timedelta(hours=24)


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime. Naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _start_of_utc_day(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


@dataclass(frozen=True)
class BusinessWindow:
    """Half-open UTC interval ``[start, end)`` covered by one report run."""

    start: datetime
    end: datetime
    cutover_hour: int

    def __post_init__(self):
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise ValueError("window bounds must be timezone-aware")
        if self.end <= self.start:
            raise ValueError(f"window end {self.end} is not after start {self.start}")
        if self.start.astimezone(timezone.utc).hour != self.cutover_hour:
            raise ValueError(
                f"window start {self.start.isoformat()} is not aligned to hour {self.cutover_hour}"
            )

    def contains(self, instant: datetime) -> bool:
        return self.start <= ensure_utc(instant) < self.end

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def spans_multiple_days(self) -> bool:
        return self.duration > _DAY

    def business_dates(self) -> list[date]:
        """Calendar dates of each business day starting inside the window."""
        days = []
        cursor = self.start
        while cursor < self.end:
            days.append(cursor.date())
            cursor += _DAY
        return days


def compute_business_window(
    reference: datetime, cutover_hour: int = CUTOVER_HOUR, offset_days: int = 0
) -> BusinessWindow:
    """Business day containing ``reference``, shifted back by ``offset_days``.

    A business day starts at ``cutover_hour`` UTC. An instant exactly at the
    cutover belongs to the day that starts there. ``offset_days=1`` gives the
    most recent fully elapsed business day, which is what daily reports cover.
    """
    if not 0 <= cutover_hour <= 23:
        raise ValueError(f"cutover_hour must be within 0..23, got {cutover_hour}")

    reference = ensure_utc(reference)
    today_cutover = _start_of_utc_day(reference) + timedelta(hours=cutover_hour)
    if reference < today_cutover:
        current_start = today_cutover - _DAY
    else:
        current_start = today_cutover

    start = current_start - offset_days * _DAY
    return BusinessWindow(start=start, end=start + _DAY, cutover_hour=cutover_hour)


def business_day_window(day: date, cutover_hour: int = CUTOVER_HOUR) -> BusinessWindow:
    """Window of the business day that starts on ``day`` at the cutover hour."""
    start = datetime.combine(day, time(hour=cutover_hour), tzinfo=timezone.utc)
    return BusinessWindow(start=start, end=start + _DAY, cutover_hour=cutover_hour)


def _first_of_month(value: date) -> date:
    return value.replace(day=1)


def _add_months(value: date, months: int) -> date:
    year = value.year + (value.month - 1 + months) // 12
    month = (value.month - 1 + months) % 12 + 1
    return date(year, month, 1)


def calendar_month_window(year: int, month: int) -> BusinessWindow:
    """``[first instant of the month, first instant of the next month)`` in UTC."""
    first = date(year, month, 1)
    start = datetime.combine(first, time.min, tzinfo=timezone.utc)
    end = datetime.combine(_add_months(first, 1), time.min, tzinfo=timezone.utc)
    return BusinessWindow(start=start, end=end, cutover_hour=0)


def previous_month_window(reference: datetime) -> BusinessWindow:
    """Calendar month before the one containing ``reference``.

    Month windows are midnight-aligned; the business-day cutover does not apply.
    """
    reference = ensure_utc(reference)
    previous = _add_months(_first_of_month(reference.date()), -1)
    return calendar_month_window(previous.year, previous.month)


def iso_week_window(iso_year: int, iso_week: int, cutover_hour: int = CUTOVER_HOUR) -> BusinessWindow:
    """Seven business days starting on the Monday of the given ISO week."""
    monday = date.fromisocalendar(iso_year, iso_week, 1)
    start = datetime.combine(monday, time(hour=cutover_hour), tzinfo=timezone.utc)
    return BusinessWindow(start=start, end=start + 7 * _DAY, cutover_hour=cutover_hour)


def previous_week_window(
    reference: datetime, cutover_hour: int = CUTOVER_HOUR, weeks_back: int = 1
) -> BusinessWindow:
    """ISO week ``weeks_back`` weeks before the business week containing ``reference``.

    The week is taken from the business day, so before the Monday cutover the
    previous week is still in progress and is not reported.
    """
    business_day = compute_business_window(reference, cutover_hour).start.date()
    monday = business_day - timedelta(days=business_day.weekday())
    target = monday - timedelta(weeks=weeks_back)
    iso_year, iso_week, _ = target.isocalendar()
    return iso_week_window(iso_year, iso_week, cutover_hour)
