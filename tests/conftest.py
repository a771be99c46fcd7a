from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from wastage_tracker.models import Base, ItemCost


@pytest.fixture(scope="function")
def engine():
    eng = create_engine(
        "sqlite:///:memory:", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(bind=engine)


@pytest.fixture(scope="function")
def session(session_factory):
    with session_factory() as sess:
        yield sess


@pytest.fixture(scope="function")
def seeded_session(session):
    session.add_all(
        [
            ItemCost(item_name="Bread", unit_cost=1.5, unit="pcs"),
            ItemCost(item_name="Milk", unit_cost=1.1, unit="l"),
            ItemCost(item_name="Lemons", unit_cost=0.0, unit="pcs"),
        ]
    )
    session.commit()
    yield session


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def make_event(**overrides) -> dict:
    event = {
        "id": 1,
        "employee_name": "Dean",
        "item_name": "Bread",
        "quantity": 2,
        "unit": "pcs",
        "reason": None,
        "timestamp": "2025-07-27T07:00:00Z",
        "unit_cost": 1.5,
        "total_cost": None,
    }
    event.update(overrides)
    return event
