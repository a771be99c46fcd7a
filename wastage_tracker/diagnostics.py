import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiagnosticRecord:
    kind: str
    message: str
    recorded_at: datetime
    details: dict[str, Any] = field(default_factory=dict)


class DiagnosticLog:
    """Append-only notices collected during one report period.

    The report driver owns the instance: it creates one per run, passes it
    into the pipeline and drains it when the report is emitted. Entries older
    than ``retention`` or beyond ``max_entries`` are dropped, oldest first.
    """

    def __init__(self, max_entries: int = 500, retention: timedelta = timedelta(days=7)):
        self._records: deque[DiagnosticRecord] = deque(maxlen=max_entries)
        self._retention = retention

    def record(self, kind: str, message: str, now: Optional[datetime] = None, **details: Any) -> DiagnosticRecord:
        entry = DiagnosticRecord(
            kind=kind,
            message=message,
            recorded_at=now or datetime.now(timezone.utc),
            details=details,
        )
        self._records.append(entry)
        return entry

    def entries(self, kind: Optional[str] = None) -> list[DiagnosticRecord]:
        if kind is None:
            return list(self._records)
        return [r for r in self._records if r.kind == kind]

    def prune(self, now: Optional[datetime] = None) -> int:
        cutoff = (now or datetime.now(timezone.utc)) - self._retention
        dropped = 0
        while self._records and self._records[0].recorded_at < cutoff:
            self._records.popleft()
            dropped += 1
        if dropped:
            logger.debug("Pruned %d diagnostic records older than %s", dropped, cutoff.isoformat())
        return dropped

    def drain(self) -> list[DiagnosticRecord]:
        drained = list(self._records)
        self._records.clear()
        return drained

    def __len__(self) -> int:
        return len(self._records)
