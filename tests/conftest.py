# tests/conftest.py
import os
import tempfile
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from parkwise.auth import create_access_token
from parkwise.db import Base, get_db
from parkwise.models import ParkingLot, Booking
from parkwise.main import app


@pytest.fixture(scope="function")
def session_factory():
    os.environ["SKIP_DB_INIT"] = "1"

    # temp DB; a file so several connections can share it
    tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
    tmp.close()
    db_url = f"sqlite:///{tmp.name}"

    # test engine / Session
    engine = create_engine(db_url, connect_args={"check_same_thread": False})
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    try:
        yield TestingSessionLocal
    finally:
        engine.dispose()
        os.unlink(tmp.name)


@pytest.fixture(scope="function")
def test_db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(test_db_session):
    def override_get_db():
        try:
            yield test_db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


# —— Auth ——
@pytest.fixture
def auth_headers():
    def _auth_headers(user_id="u-1", role="user"):
        token = create_access_token({"user_id": user_id, "role": role})
        return {"Authorization": f"Bearer {token}"}
    return _auth_headers


# —— Factories ——
@pytest.fixture
def make_lot(test_db_session):
    def _make_lot(lot_id="lot-1", name="Lot 1", location="1 Test St", total_slots=10,
                  available_slots=None, price_per_hour=2.5, owner_id="owner-1",
                  latitude=None, longitude=None):
        lot = ParkingLot(
            id=lot_id,
            name=name,
            location=location,
            total_slots=total_slots,
            available_slots=total_slots if available_slots is None else available_slots,
            price_per_hour=price_per_hour,
            operating_hours="24/7",
            owner_id=owner_id,
            latitude=latitude,
            longitude=longitude,
        )
        test_db_session.add(lot)
        test_db_session.commit()
        return lot
    return _make_lot


@pytest.fixture
def book(client, auth_headers):
    """Create a booking through the API and return the response."""
    def _book(lot_id="lot-1", user_id="u-1", **fields):
        body = {"lotId": lot_id, "date": "2025-06-01", "time": "10:00", **fields}
        return client.post("/bookings", json=body, headers=auth_headers(user_id))
    return _book


@pytest.fixture
def lot_state(test_db_session):
    """(available, total, confirmed bookings) of a lot, read fresh from the DB."""
    def _lot_state(lot_id="lot-1"):
        test_db_session.expire_all()
        lot = test_db_session.get(ParkingLot, lot_id)
        confirmed = (
            test_db_session.query(Booking)
            .filter(Booking.lot_id == lot_id, Booking.status == "Confirmed")
            .count()
        )
        return lot.available_slots, lot.total_slots, confirmed
    return _lot_state
