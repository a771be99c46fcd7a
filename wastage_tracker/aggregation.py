from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Iterable

from wastage_tracker.contracts import WastageEvent


class ItemOrder(str, Enum):
    INSERTION = "insertion"
    COST_DESC = "cost_desc"


@dataclass(frozen=True)
class ItemAggregate:
    item_name: str
    unit: str
    total_quantity: float
    total_cost: float
    occurrence_count: int
    # Units seen for this item besides ``unit``. Their quantities are left out
    # of ``total_quantity``; their costs are still counted.
    conflicting_units: tuple[str, ...] = ()


@dataclass(frozen=True)
class DayTotal:
    total_cost: float
    count: int


@dataclass(frozen=True)
class Aggregate:
    total_cost: float
    entry_count: int
    item_summary: list[ItemAggregate] = field(default_factory=list)
    daily_breakdown: dict[date, DayTotal] = field(default_factory=dict)


def event_cost(event: WastageEvent) -> float:
    """Cost of one event; an unpriced item counts as 0.0.

    This understates spend for items without a cost row. That is accepted.
    """
    return event.total_cost if event.total_cost is not None else 0.0


class _ItemAccumulator:
    __slots__ = ("item_name", "unit", "quantity", "cost", "count", "other_units")

    def __init__(self, item_name: str, unit: str):
        self.item_name = item_name
        self.unit = unit
        self.quantity = 0.0
        self.cost = 0.0
        self.count = 0
        self.other_units: list[str] = []

    def add(self, event: WastageEvent) -> None:
        self.count += 1
        self.cost += event_cost(event)
        if event.unit == self.unit:
            self.quantity += event.quantity
        elif event.unit not in self.other_units:
            self.other_units.append(event.unit)

    def freeze(self) -> ItemAggregate:
        return ItemAggregate(
            item_name=self.item_name,
            unit=self.unit,
            total_quantity=self.quantity,
            total_cost=self.cost,
            occurrence_count=self.count,
            conflicting_units=tuple(self.other_units),
        )


def aggregate(
    events: Iterable[WastageEvent],
    item_order: ItemOrder = ItemOrder.INSERTION,
    daily_breakdown: bool = False,
) -> Aggregate:
    """Fold validated events into totals, per-item rows and optional per-day totals.

    Items are grouped by exact ``item_name``. The per-day breakdown buckets by
    the UTC calendar date of each timestamp (midnight to midnight), not by
    business day.
    """
    total_cost = 0.0
    entry_count = 0
    items: dict[str, _ItemAccumulator] = {}
    days: dict[date, list[float]] = {}

    for event in events:
        cost = event_cost(event)
        total_cost += cost
        entry_count += 1

        acc = items.get(event.item_name)
        if acc is None:
            acc = items[event.item_name] = _ItemAccumulator(event.item_name, event.unit)
        acc.add(event)

        if daily_breakdown:
            bucket = days.setdefault(event.timestamp.date(), [0.0, 0])
            bucket[0] += cost
            bucket[1] += 1

    summary = [acc.freeze() for acc in items.values()]
    if item_order == ItemOrder.COST_DESC:
        # stable: equal costs keep first-seen order
        summary.sort(key=lambda a: a.total_cost, reverse=True)

    breakdown = {day: DayTotal(total_cost=v[0], count=int(v[1])) for day, v in sorted(days.items())}
    return Aggregate(
        total_cost=total_cost,
        entry_count=entry_count,
        item_summary=summary,
        daily_breakdown=breakdown,
    )
