from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Optional

from wastage_tracker.aggregation import ItemOrder
from wastage_tracker.contracts import WastageEvent
from wastage_tracker.window import BusinessWindow


class ReportKind(ABC):
    item_order: ItemOrder = ItemOrder.INSERTION

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @property
    @abstractmethod
    def title(self) -> str:
        ...

    @property
    @abstractmethod
    def headers(self) -> list[str]:
        ...

    @abstractmethod
    def row(self, event: WastageEvent) -> list[str]:
        ...

    @abstractmethod
    def window(self, reference: datetime, override: Optional[date] = None) -> BusinessWindow:
        ...

    @abstractmethod
    def filename(self, window: BusinessWindow) -> str:
        ...
