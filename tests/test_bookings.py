"""
Tests for karaoke bookings
"""
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from thamel_loyalty.db import Booking
from thamel_loyalty.exceptions import ConflictError, ValidationError
from thamel_loyalty.services.account_registry import AccountRegistry
from thamel_loyalty.services.reservation_ledger import (
    ReservationLedger,
    SLOTS,
    slot_key_for,
    validate_contact_number,
    validate_date,
)

ALL_LABELS = ["6:00 PM", "7:30 PM", "9:00 PM", "10:30 PM", "12:00 AM"]


def booking_body(**overrides):
    body = {"room": "K1", "date": "2026-11-20", "slot": "9:00 PM", "contactNumber": "416-555-0199"}
    body.update(overrides)
    return body


class TestSlots:

    def test_all_slots_free_in_evening_order(self, client):
        response = client.get("/bookings/slots", params={"room": "K2", "date": "2026-11-20"})
        assert response.status_code == 200
        assert response.json()["slots"] == ALL_LABELS

    def test_booked_slot_disappears(self, client, auth_headers):
        client.post("/bookings", json=booking_body(room="K2", slot="7:30 PM"), headers=auth_headers)

        response = client.get("/bookings/slots", params={"room": "K2", "date": "2026-11-20"})
        assert "7:30 PM" not in response.json()["slots"]
        assert len(response.json()["slots"]) == 4

        other_room = client.get("/bookings/slots", params={"room": "K3", "date": "2026-11-20"})
        assert other_room.json()["slots"] == ALL_LABELS

    def test_unknown_room(self, client):
        response = client.get("/bookings/slots", params={"room": "K9", "date": "2026-11-20"})
        assert response.status_code == 400

    def test_missing_query_parameters(self, client):
        assert client.get("/bookings/slots").status_code == 400


class TestCreateBooking:

    def test_create_booking(self, client, auth_headers):
        response = client.post("/bookings", json=booking_body(), headers=auth_headers)
        assert response.status_code == 201
        booking = response.json()["booking"]
        assert booking["room"] == "K1"
        assert booking["date"] == "2026-11-20"
        assert booking["slot"] == "9:00 PM"
        assert booking["contact_number"] == "416-555-0199"

    def test_slot_can_be_given_as_24h_key(self, client, auth_headers, db_session):
        response = client.post("/bookings", json=booking_body(slot="00:00"), headers=auth_headers)
        assert response.status_code == 201
        assert response.json()["booking"]["slot"] == "12:00 AM"
        assert db_session.query(Booking.slot).scalar() == "00:00"

    def test_double_booking_conflicts(self, client, auth_headers, db_session):
        assert client.post("/bookings", json=booking_body(), headers=auth_headers).status_code == 201

        other = AccountRegistry(db_session).create_local("other@example.com", "Other", "secret123")
        from thamel_loyalty.auth import create_access_token
        other_headers = {"Authorization": f"Bearer {create_access_token(other.id)}"}

        response = client.post("/bookings", json=booking_body(), headers=other_headers)
        assert response.status_code == 409
        assert response.json()["message"] == "This slot is no longer available"
        assert db_session.query(Booking).count() == 1

    def test_label_and_key_refer_to_the_same_cell(self, client, auth_headers):
        assert client.post("/bookings", json=booking_body(slot="9:00 PM"), headers=auth_headers).status_code == 201
        assert client.post("/bookings", json=booking_body(slot="21:00"), headers=auth_headers).status_code == 409

    def test_requires_authentication(self, client):
        assert client.post("/bookings", json=booking_body()).status_code == 401

    @pytest.mark.parametrize("overrides", [
        {"room": "K4"},
        {"date": "20-11-2026"},
        {"date": "2026-02-30"},
        {"slot": "8:00 PM"},
        {"contactNumber": "555-0199"},
    ])
    def test_invalid_input(self, client, auth_headers, overrides):
        response = client.post("/bookings", json=booking_body(**overrides), headers=auth_headers)
        assert response.status_code == 400


class TestMyBookings:

    def test_bookings_sorted_by_date_then_slot_key(self, client, auth_headers):
        client.post("/bookings", json=booking_body(date="2026-11-21", slot="6:00 PM"), headers=auth_headers)
        client.post("/bookings", json=booking_body(date="2026-11-20", slot="12:00 AM"), headers=auth_headers)
        client.post("/bookings", json=booking_body(date="2026-11-20", slot="6:00 PM"), headers=auth_headers)

        response = client.get("/bookings/mine", headers=auth_headers)
        assert response.status_code == 200
        assert [(b["date"], b["slot"]) for b in response.json()["bookings"]] == [
            ("2026-11-20", "12:00 AM"),
            ("2026-11-20", "6:00 PM"),
            ("2026-11-21", "6:00 PM"),
        ]

    def test_only_own_bookings(self, client, auth_headers, db_session):
        other = AccountRegistry(db_session).create_local("other@example.com", "Other", "secret123")
        ReservationLedger(db_session).create_booking(other.id, "K3", "2026-11-20", "6:00 PM", "4165550100")

        response = client.get("/bookings/mine", headers=auth_headers)
        assert response.json()["bookings"] == []


class TestValidators:

    def test_slot_key_for(self):
        assert slot_key_for("10:30 PM") == "22:30"
        assert slot_key_for("18:00") == "18:00"
        with pytest.raises(ValidationError):
            slot_key_for("noon")

    def test_slot_table(self):
        assert list(SLOTS.values()) == ALL_LABELS

    def test_contact_number_counts_digits(self):
        assert validate_contact_number("+1 (416) 555-0199") == "+1 (416) 555-0199"
        with pytest.raises(ValidationError):
            validate_contact_number("phone me")

    def test_date_format(self):
        assert validate_date("2026-01-05") == "2026-01-05"
        with pytest.raises(ValidationError):
            validate_date("2026-1-5")


def test_concurrent_booking_has_one_winner(file_session_factory):
    setup = file_session_factory()
    registry = AccountRegistry(setup)
    account_ids = [
        registry.create_local(f"singer{i}@example.com", f"Singer {i}", "secret123").id
        for i in range(8)
    ]
    setup.close()

    barrier = threading.Barrier(len(account_ids))

    def book(account_id):
        db = file_session_factory()
        try:
            barrier.wait()
            ReservationLedger(db).create_booking(account_id, "K1", "2026-12-31", "10:30 PM", "4165550100")
            return True
        except ConflictError:
            return False
        finally:
            db.close()

    with ThreadPoolExecutor(max_workers=len(account_ids)) as pool:
        results = list(pool.map(book, account_ids))

    assert results.count(True) == 1

    check = file_session_factory()
    try:
        assert check.query(Booking).count() == 1
    finally:
        check.close()


def test_booking_scenario(client, auth_headers):
    created = client.post(
        "/bookings",
        json={"room": "K1", "date": "2025-06-01", "slot": "6:00 PM", "contact_number": "6475550123"},
        headers=auth_headers,
    )
    assert created.status_code == 201

    slots = client.get("/bookings/slots", params={"room": "K1", "date": "2025-06-01"}).json()["slots"]
    assert slots == ["7:30 PM", "9:00 PM", "10:30 PM", "12:00 AM"]

    mine = client.get("/bookings/mine", headers=auth_headers).json()["bookings"]
    assert mine == [created.json()["booking"]]
