from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from wastage_tracker.models import ItemCost, WastageEntry
from wastage_tracker.window import ensure_utc


class UnknownItemError(Exception):
    def __init__(self, item_name: str):
        super().__init__(f"No cost row for item_name={item_name!r}")
        self.item_name = item_name


class EntryRepo:
    def __init__(self, session: Session):
        self._session = session

    def add_entry(
        self,
        employee_name: str,
        item_name: str,
        quantity: float,
        unit: str,
        reason: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> WastageEntry:
        if self._session.get(ItemCost, item_name) is None:
            raise UnknownItemError(item_name)

        entry = WastageEntry(
            employee_name=employee_name,
            item_name=item_name,
            quantity=quantity,
            unit=unit,
            reason=reason,
        )
        if timestamp is not None:
            entry.timestamp = ensure_utc(timestamp)
        self._session.add(entry)
        self._session.commit()
        return entry

    def list_items(self) -> list[dict]:
        rows = self._session.execute(select(ItemCost).order_by(ItemCost.item_name)).scalars().all()
        return [{"name": r.item_name, "defaultUnit": r.unit} for r in rows]

    def list_entries(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> list[dict]:
        """Entries with ``start <= timestamp < end``, newest first, joined with their unit cost.

        ``total_cost`` is ``None`` for items without a cost row.
        """
        stmt = select(WastageEntry, ItemCost.unit_cost).outerjoin(
            ItemCost, WastageEntry.item_name == ItemCost.item_name
        )
        if start is not None:
            stmt = stmt.where(WastageEntry.timestamp >= ensure_utc(start))
        if end is not None:
            stmt = stmt.where(WastageEntry.timestamp < ensure_utc(end))
        stmt = stmt.order_by(WastageEntry.timestamp.desc(), WastageEntry.id.desc())

        results = []
        for entry, unit_cost in self._session.execute(stmt).all():
            results.append(
                {
                    "id": entry.id,
                    "employee_name": entry.employee_name,
                    "item_name": entry.item_name,
                    "quantity": entry.quantity,
                    "unit": entry.unit,
                    "reason": entry.reason,
                    "timestamp": ensure_utc(entry.timestamp).isoformat(),
                    "unit_cost": unit_cost,
                    "total_cost": entry.quantity * unit_cost if unit_cost is not None else None,
                }
            )
        return results
