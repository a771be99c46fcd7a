import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, NamedTuple, Optional, Union

from pydantic import ValidationError

from wastage_tracker.contracts import WastageEvent
from wastage_tracker.diagnostics import DiagnosticLog
from wastage_tracker.window import BusinessWindow, ensure_utc

logger = logging.getLogger(__name__)

MISSING_TIMESTAMP = "missing_timestamp"
OUTSIDE_WINDOW = "outside_window"
MALFORMED_EVENT = "malformed_event"

RawEvent = Union[dict, WastageEvent]


class MalformedEventError(Exception):
    def __init__(self, reason: str, detail: str):
        super().__init__(f"{reason}: {detail}")
        self.reason = reason
        self.detail = detail


@dataclass(frozen=True)
class RejectedEvent:
    event: Any
    reason: str
    detail: str = ""
    timestamp: Optional[datetime] = None
    window: Optional[BusinessWindow] = None


class FilterResult(NamedTuple):
    valid: list[WastageEvent]
    rejected: list[RejectedEvent]


def parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return ensure_utc(value)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise MalformedEventError(MISSING_TIMESTAMP, "timestamp is missing")
    if not isinstance(value, str):
        raise MalformedEventError(MISSING_TIMESTAMP, f"unsupported timestamp type {type(value).__name__}")

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return ensure_utc(datetime.fromisoformat(text))
    except ValueError as exc:
        raise MalformedEventError(MISSING_TIMESTAMP, f"unparseable timestamp {value!r}") from exc


def parse_event(raw: RawEvent) -> WastageEvent:
    """Validate one storage record into a ``WastageEvent``.

    Raises ``MalformedEventError``; a record is never defaulted into shape.
    """
    if isinstance(raw, WastageEvent):
        return raw
    if not isinstance(raw, dict):
        raise MalformedEventError(MALFORMED_EVENT, f"expected an object, got {type(raw).__name__}")

    timestamp = parse_timestamp(raw.get("timestamp"))
    try:
        return WastageEvent.model_validate({**raw, "timestamp": timestamp})
    except ValidationError as exc:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in exc.errors()})
        raise MalformedEventError(MALFORMED_EVENT, f"invalid fields: {', '.join(fields)}") from exc


def _reject(
    rejected: list[RejectedEvent],
    diagnostics: Optional[DiagnosticLog],
    entry: RejectedEvent,
) -> None:
    rejected.append(entry)
    item = entry.event.get("item_name") if isinstance(entry.event, dict) else getattr(entry.event, "item_name", None)
    logger.warning("Dropped wastage event (%s) item=%r: %s", entry.reason, item, entry.detail)
    if diagnostics is not None:
        diagnostics.record(
            "rejected_event",
            f"Dropped event for {item!r}: {entry.reason}",
            reason=entry.reason,
            detail=entry.detail,
        )


def filter_to_window(
    events: Iterable[RawEvent],
    window: BusinessWindow,
    diagnostics: Optional[DiagnosticLog] = None,
) -> FilterResult:
    """Keep only well-formed events with ``window.start <= timestamp < window.end``.

    Storage may already have filtered by the same bounds; applying this again
    is harmless and applying it to its own ``valid`` output changes nothing.
    """
    valid: list[WastageEvent] = []
    rejected: list[RejectedEvent] = []

    for raw in events:
        try:
            event = parse_event(raw)
        except MalformedEventError as exc:
            _reject(rejected, diagnostics, RejectedEvent(event=raw, reason=exc.reason, detail=exc.detail))
            continue

        if not window.contains(event.timestamp):
            _reject(
                rejected,
                diagnostics,
                RejectedEvent(
                    event=raw,
                    reason=OUTSIDE_WINDOW,
                    detail=(
                        f"{event.timestamp.isoformat()} not in "
                        f"[{window.start.isoformat()}, {window.end.isoformat()})"
                    ),
                    timestamp=event.timestamp,
                    window=window,
                ),
            )
            continue

        valid.append(event)

    logger.info("Filtered %d events: %d in window, %d rejected", len(valid) + len(rejected), len(valid), len(rejected))
    return FilterResult(valid=valid, rejected=rejected)
