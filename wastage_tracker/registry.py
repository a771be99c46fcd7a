from typing import Type

from wastage_tracker.reports.base import ReportKind


class ReportKindNotFoundError(Exception):
    def __init__(self, name: str):
        super().__init__(f"No report registered under name: {name!r}")
        self.name = name


class ReportRegistry:
    """Report kinds by name; the cron's ``--kind`` choices come from here."""

    def __init__(self):
        self._kinds: dict[str, ReportKind] = {}

    def register(self, kind_cls: Type[ReportKind]) -> ReportKind:
        kind = kind_cls()
        if kind.name in self._kinds:
            raise ValueError(
                f"Report name {kind.name!r} already taken by {type(self._kinds[kind.name]).__name__}"
            )
        self._kinds[kind.name] = kind
        return kind

    def resolve(self, name: str) -> ReportKind:
        kind = self._kinds.get(name.strip().lower())
        if kind is None:
            raise ReportKindNotFoundError(name)
        return kind

    def keys(self) -> list[str]:
        return sorted(self._kinds)

    def __contains__(self, name: str) -> bool:
        return name in self._kinds
