import logging
from datetime import datetime
from typing import Generator, Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from wastage_tracker.contracts import EntriesResponse, WastageEntryIn
from wastage_tracker.db import build_engine, build_session_factory, load_db_config
from wastage_tracker.entry_repo import EntryRepo, UnknownItemError
from wastage_tracker.models import Base
from wastage_tracker.window import ensure_utc

logger = logging.getLogger(__name__)

# --- DB setup ---
_config = load_db_config()
_engine = build_engine(_config)
_session_factory = build_session_factory(_engine)
Base.metadata.create_all(bind=_engine)

# --- FastAPI app ---
app = FastAPI(title="Wastage Tracker API")


def get_session() -> Generator[Session, None, None]:
    with _session_factory() as session:
        yield session


def _bad_request(error: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"success": False, "error": error})


@app.get("/health")
def health():
    return {"status": "healthy"}


@app.post("/api/entry", status_code=201)
def create_entry(payload: WastageEntryIn, session: Session = Depends(get_session)):
    employee = (payload.employeeName or "").strip()
    item = (payload.itemName or "").strip()
    unit = (payload.unit or "").strip()
    quantity = payload.quantity
    # 0 and empty values count as missing, as the web form sends them
    if not employee or not item or not unit or not quantity:
        return _bad_request("Missing required fields")
    if isinstance(quantity, bool) or not isinstance(quantity, (int, float)) or quantity <= 0:
        return _bad_request("Quantity must be a positive number")

    try:
        EntryRepo(session).add_entry(
            employee_name=employee,
            item_name=item,
            quantity=float(quantity),
            unit=unit,
            reason=payload.reason or None,
        )
    except UnknownItemError:
        return _bad_request("Invalid item name")
    return {"success": True}


@app.get("/api/items")
def list_items(session: Session = Depends(get_session)):
    return EntryRepo(session).list_items()


@app.get("/api/entries", response_model=EntriesResponse)
def list_entries(
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    session: Session = Depends(get_session),
):
    start = ensure_utc(start) if start is not None else None
    end = ensure_utc(end) if end is not None else None
    if start is not None and end is not None and end <= start:
        raise HTTPException(status_code=400, detail="end must be after start")
    entries = EntryRepo(session).list_entries(start=start, end=end)
    logger.info("Returning %d entries for [%s, %s)", len(entries), start, end)
    return EntriesResponse(entries=entries)
