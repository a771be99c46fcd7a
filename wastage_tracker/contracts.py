from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from wastage_tracker.window import ensure_utc


class WastageEntryIn(BaseModel):
    """Body of ``POST /api/entry`` as sent by the web form.

    ``quantity`` is taken as sent; the endpoint rejects anything but a JSON number.
    """

    employeeName: str | None = None
    itemName: str | None = None
    quantity: Any = None
    unit: str | None = None
    reason: str | None = None


class WastageEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int | str | None = None
    employee_name: str = Field(min_length=1)
    item_name: str = Field(min_length=1)
    quantity: float = Field(gt=0)
    unit: str
    reason: str | None = None
    timestamp: datetime
    unit_cost: float | None = Field(default=None, ge=0)
    total_cost: float | None = None

    @model_validator(mode="before")
    @classmethod
    def _derive_total_cost(cls, data):
        if isinstance(data, dict) and data.get("total_cost") is None:
            quantity = data.get("quantity")
            unit_cost = data.get("unit_cost")
            if quantity is not None and unit_cost is not None:
                try:
                    data = {**data, "total_cost": float(quantity) * float(unit_cost)}
                except (TypeError, ValueError):
                    # left for the field validators to report
                    pass
        return data

    @field_validator("timestamp")
    @classmethod
    def _utc_timestamp(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class EntriesResponse(BaseModel):
    entries: list[dict]


class ItemSummaryRow(BaseModel):
    item: str
    quantity: str
    unit: str
    cost: str
    occurrences: int
    conflicting_units: list[str] = Field(default_factory=list)


class DaySummaryRow(BaseModel):
    date: str
    day_name: str
    total_cost: str
    entry_count: int


class SummaryView(BaseModel):
    """Render-ready report summary handed to the templating step."""

    title: str
    period_start: str
    period_end: str
    period_label: str
    entry_count: int
    currency: str = "€"
    total_cost: str
    total_cost_display: str
    items: list[ItemSummaryRow] = Field(default_factory=list)
    days: list[DaySummaryRow] | None = None
    daily_average: str | None = None
    notices: list[str] = Field(default_factory=list)
