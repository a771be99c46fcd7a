from datetime import date, datetime, timedelta, timezone

import pytest

from conftest import utc
from wastage_tracker.window import (
    BusinessWindow,
    business_day_window,
    calendar_month_window,
    compute_business_window,
    iso_week_window,
    previous_month_window,
    previous_week_window,
)


def test_before_cutover_reports_day_before_yesterday():
    w = compute_business_window(utc(2025, 7, 28, 5, 30), 6, offset_days=1)
    assert w.start == utc(2025, 7, 26, 6)
    assert w.end == utc(2025, 7, 27, 6)


def test_after_cutover_reports_yesterday():
    w = compute_business_window(utc(2025, 7, 28, 6, 30), 6, offset_days=1)
    assert w.start == utc(2025, 7, 27, 6)
    assert w.end == utc(2025, 7, 28, 6)


def test_exactly_at_cutover_ends_at_today_cutover():
    ref = utc(2025, 7, 28, 6)
    w = compute_business_window(ref, 6, offset_days=1)
    assert w.end == utc(2025, 7, 28) + timedelta(hours=6)


def test_exactly_at_cutover_starts_current_day():
    w = compute_business_window(utc(2025, 7, 28, 6), 6)
    assert w.start == utc(2025, 7, 28, 6)


def test_one_minute_either_side_of_cutover_shifts_by_a_day():
    before = compute_business_window(utc(2025, 7, 28, 5, 59), 6, offset_days=1)
    after = compute_business_window(utc(2025, 7, 28, 6, 1), 6, offset_days=1)
    assert after.start - before.start == timedelta(hours=24)
    assert after.end - before.end == timedelta(hours=24)


@pytest.mark.parametrize("hour", [0, 5, 6, 12, 23])
def test_window_is_24h_and_aligned(hour):
    w = compute_business_window(utc(2025, 3, 1, hour, 15), 6, offset_days=1)
    assert w.end - w.start == timedelta(hours=24)
    assert w.start.hour == 6
    assert not w.spans_multiple_days


def test_naive_reference_is_treated_as_utc():
    naive = compute_business_window(datetime(2025, 7, 28, 6, 30), 6, offset_days=1)
    aware = compute_business_window(utc(2025, 7, 28, 6, 30), 6, offset_days=1)
    assert naive == aware


def test_non_utc_reference_is_converted():
    berlin_summer = timezone(timedelta(hours=2))
    # 07:30 in UTC+2 is 05:30 UTC, i.e. still before the cutover
    w = compute_business_window(datetime(2025, 7, 28, 7, 30, tzinfo=berlin_summer), 6, offset_days=1)
    assert w.start == utc(2025, 7, 26, 6)


def test_invalid_cutover_hour_raises():
    with pytest.raises(ValueError):
        compute_business_window(utc(2025, 7, 28), 24)


def test_misaligned_window_raises():
    with pytest.raises(ValueError):
        BusinessWindow(start=utc(2025, 7, 28, 7), end=utc(2025, 7, 29, 7), cutover_hour=6)


def test_contains_is_half_open():
    w = business_day_window(date(2025, 7, 27))
    assert w.contains(w.start)
    assert not w.contains(w.end)
    assert w.contains(w.end - timedelta(microseconds=1))


def test_previous_month_window():
    w = previous_month_window(utc(2025, 3, 15, 12))
    assert w.start == utc(2025, 2, 1)
    assert w.end == utc(2025, 3, 1)
    assert w.cutover_hour == 0
    assert len(w.business_dates()) == 28


def test_previous_month_window_across_new_year():
    w = previous_month_window(utc(2025, 1, 1, 0, 0))
    assert w.start == utc(2024, 12, 1)
    assert w.end == utc(2025, 1, 1)


def test_calendar_month_window_december():
    w = calendar_month_window(2024, 12)
    assert w.end == utc(2025, 1, 1)


def test_iso_week_window_starts_monday_at_cutover():
    w = iso_week_window(2025, 31)
    assert w.start == utc(2025, 7, 28, 6)
    assert w.end == utc(2025, 8, 4, 6)
    assert w.spans_multiple_days
    assert w.business_dates()[0] == date(2025, 7, 28)
    assert len(w.business_dates()) == 7


def test_previous_week_window_from_midweek():
    # Wednesday 30 July 2025 -> last week is Mon 21 July
    w = previous_week_window(utc(2025, 7, 30, 10))
    assert w.start == utc(2025, 7, 21, 6)
    assert w.end == utc(2025, 7, 28, 6)


def test_previous_week_window_two_weeks_back():
    w = previous_week_window(utc(2025, 7, 30, 10), weeks_back=2)
    assert w.start == utc(2025, 7, 14, 6)


def test_previous_week_window_before_monday_cutover():
    # Mon 28 July 03:00 is still in the business week that started 21 July
    reference = utc(2025, 7, 28, 3)
    w = previous_week_window(reference)
    assert w.start == utc(2025, 7, 14, 6)
    assert w.end == utc(2025, 7, 21, 6)
    assert w.end <= reference


def test_previous_week_window_at_monday_cutover():
    w = previous_week_window(utc(2025, 7, 28, 6))
    assert w.start == utc(2025, 7, 21, 6)
    assert w.end == utc(2025, 7, 28, 6)
