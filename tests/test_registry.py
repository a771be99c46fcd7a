import pytest

from wastage_tracker.crons.run_report import build_registry
from wastage_tracker.registry import ReportKindNotFoundError, ReportRegistry
from wastage_tracker.reports.daily import DailyReport
from wastage_tracker.reports.weekly import WeeklyReport


def test_registry_resolves_registered_kinds():
    registry = build_registry()
    assert registry.keys() == ["daily", "monthly", "weekly"]
    assert isinstance(registry.resolve("weekly"), WeeklyReport)
    assert isinstance(registry.resolve(" Daily "), DailyReport)
    assert "monthly" in registry


def test_unknown_kind_raises():
    with pytest.raises(ReportKindNotFoundError) as exc_info:
        build_registry().resolve("hourly")
    assert exc_info.value.name == "hourly"


def test_duplicate_name_is_rejected():
    registry = ReportRegistry()
    registry.register(DailyReport)
    with pytest.raises(ValueError):
        registry.register(DailyReport)
    assert registry.keys() == ["daily"]
