import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient

from conftest import utc
from wastage_tracker.entry_repo import EntryRepo
from wastage_tracker.main import app, get_session
from wastage_tracker.models import WastageEntry


@pytest.fixture()
def client(seeded_session, session_factory):
    def _get_test_session():
        with session_factory() as s:
            yield s

    app.dependency_overrides[get_session] = _get_test_session
    yield TestClient(app)
    app.dependency_overrides.clear()


def _add(session, item, ts, quantity=1.0, unit="pcs", reason=None):
    session.add(
        WastageEntry(employee_name="Nora", item_name=item, quantity=quantity, unit=unit, reason=reason, timestamp=ts)
    )
    session.commit()


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "healthy"}


def test_items_for_autocomplete(client):
    r = client.get("/api/items")
    assert r.status_code == 200
    assert r.json() == [
        {"name": "Bread", "defaultUnit": "pcs"},
        {"name": "Lemons", "defaultUnit": "pcs"},
        {"name": "Milk", "defaultUnit": "l"},
    ]


def test_post_entry_persists(client, seeded_session):
    payload = {"employeeName": "Dean", "itemName": "Bread", "quantity": 2, "unit": "pcs", "reason": ""}
    r = client.post("/api/entry", json=payload)
    assert r.status_code == 201
    assert r.json() == {"success": True}

    stored = seeded_session.query(WastageEntry).all()
    assert len(stored) == 1
    assert stored[0].employee_name == "Dean"
    assert stored[0].reason is None


@pytest.mark.parametrize(
    "payload, error",
    [
        ({"employeeName": "Dean", "itemName": "Bread", "unit": "pcs"}, "Missing required fields"),
        ({"employeeName": " ", "itemName": "Bread", "quantity": 1, "unit": "pcs"}, "Missing required fields"),
        ({"employeeName": "Dean", "itemName": "Bread", "quantity": 0, "unit": "pcs"}, "Missing required fields"),
        ({"employeeName": "Dean", "itemName": "Bread", "quantity": -2, "unit": "pcs"}, "Quantity must be a positive number"),
        ({"employeeName": "Dean", "itemName": "Bread", "quantity": "5", "unit": "pcs"}, "Quantity must be a positive number"),
        ({"employeeName": "Dean", "itemName": "Bread", "quantity": True, "unit": "pcs"}, "Quantity must be a positive number"),
        ({"employeeName": "Dean", "itemName": "Caviar", "quantity": 1, "unit": "g"}, "Invalid item name"),
    ],
)
def test_post_entry_rejects_bad_input(client, payload, error):
    r = client.post("/api/entry", json=payload)
    assert r.status_code == 400
    assert r.json() == {"success": False, "error": error}


def test_entries_window_is_half_open_and_costed(client, seeded_session):
    _add(seeded_session, "Bread", utc(2025, 7, 27, 5, 59), quantity=9)
    _add(seeded_session, "Bread", utc(2025, 7, 27, 6, 0), quantity=2)
    _add(seeded_session, "Milk", utc(2025, 7, 27, 20, 0), quantity=3, unit="l")
    _add(seeded_session, "Bread", utc(2025, 7, 28, 6, 0), quantity=4)

    r = client.get(
        "/api/entries",
        params={"start": "2025-07-27T06:00:00Z", "end": "2025-07-28T06:00:00Z"},
    )
    assert r.status_code == 200
    entries = r.json()["entries"]
    assert [e["item_name"] for e in entries] == ["Milk", "Bread"]  # newest first
    milk, bread = entries
    assert bread["total_cost"] == pytest.approx(3.0)
    assert milk["total_cost"] == pytest.approx(3.3)
    assert bread["timestamp"] == "2025-07-27T06:00:00+00:00"


def test_entries_without_bounds_returns_everything(client, seeded_session):
    _add(seeded_session, "Bread", utc(2024, 1, 1, 12))
    _add(seeded_session, "Bread", utc(2025, 7, 27, 12))
    r = client.get("/api/entries")
    assert len(r.json()["entries"]) == 2


def test_entry_without_cost_row_has_no_total(seeded_session):
    _add(seeded_session, "Retired item", utc(2025, 7, 27, 12))
    entries = EntryRepo(seeded_session).list_entries()
    assert entries[0]["unit_cost"] is None
    assert entries[0]["total_cost"] is None


def test_entries_rejects_inverted_window(client):
    r = client.get("/api/entries", params={"start": "2025-07-28T06:00:00Z", "end": "2025-07-27T06:00:00Z"})
    assert r.status_code == 400
