"""
Reservation Ledger
Karaoke room bookings, at most one per (room, date, slot).

Uniqueness is enforced by the database unique constraint alone: the insert
either succeeds or fails atomically, so concurrent requests for the same cell
produce exactly one booking and conflicts for everyone else.
"""
import logging
import re
from collections import OrderedDict
from datetime import date as date_type
from typing import List, Dict, Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from ..db.models import Booking
from ..exceptions import ConflictError, ValidationError

logger = logging.getLogger(__name__)

ROOMS = ("K1", "K2", "K3")

# 24h key -> display label, in the order the evening runs
SLOTS = OrderedDict([
    ("18:00", "6:00 PM"),
    ("19:30", "7:30 PM"),
    ("21:00", "9:00 PM"),
    ("22:30", "10:30 PM"),
    ("00:00", "12:00 AM"),
])
LABEL_TO_SLOT = {label: key for key, label in SLOTS.items()}

CONTACT_MIN_DIGITS = 10
SLOT_TAKEN_MESSAGE = "This slot is no longer available"

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def validate_room(room: Optional[str]) -> str:
    room = (room or "").strip()
    if room not in ROOMS:
        raise ValidationError(f"room must be {', '.join(ROOMS[:-1])}, or {ROOMS[-1]}")
    return room


def validate_date(value: Optional[str]) -> str:
    value = (value or "").strip()
    if not _ISO_DATE.match(value):
        raise ValidationError("date must be in YYYY-MM-DD format")
    try:
        date_type.fromisoformat(value)
    except ValueError:
        raise ValidationError("date must be a valid calendar date")
    return value


def slot_key_for(label: Optional[str]) -> str:
    """Accept the display label ("6:00 PM") or the 24h key ("18:00")"""
    label = (label or "").strip()
    if label in LABEL_TO_SLOT:
        return LABEL_TO_SLOT[label]
    if label in SLOTS:
        return label
    raise ValidationError("Invalid slot")


def validate_contact_number(contact_number: Optional[str]) -> str:
    contact_number = str(contact_number or "").strip()
    digits = sum(ch.isdigit() for ch in contact_number)
    if digits < CONTACT_MIN_DIGITS:
        raise ValidationError(f"Valid contact number is required (at least {CONTACT_MIN_DIGITS} digits)")
    return contact_number


def booking_to_dict(booking: Booking) -> Dict[str, Any]:
    return {
        "id": booking.id,
        "room": booking.room,
        "date": booking.date,
        "slot": SLOTS.get(booking.slot, booking.slot),
        "contact_number": booking.contact_number,
    }


class ReservationLedger:
    """Creates and lists karaoke bookings"""

    def __init__(self, db: Session):
        self.db = db

    def list_available_slots(self, room: str, date: str) -> List[str]:
        room = validate_room(room)
        date = validate_date(date)
        booked = {
            slot for (slot,) in self.db.query(Booking.slot)
            .filter(Booking.room == room, Booking.date == date)
            .all()
        }
        return [label for key, label in SLOTS.items() if key not in booked]

    def create_booking(
        self,
        account_id: int,
        room: str,
        date: str,
        slot: str,
        contact_number: str,
    ) -> Dict[str, Any]:
        room = validate_room(room)
        date = validate_date(date)
        slot_key = slot_key_for(slot)
        contact_number = validate_contact_number(contact_number)

        booking = Booking(
            room=room,
            date=date,
            slot=slot_key,
            contact_number=contact_number,
            account_id=account_id,
        )
        self.db.add(booking)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.info(f"Booking conflict for {room} {date} {slot_key}")
            raise ConflictError(SLOT_TAKEN_MESSAGE)

        self.db.refresh(booking)
        logger.info(f"Booking {booking.id} created for account {account_id}: {room} {date} {slot_key}")
        return booking_to_dict(booking)

    def list_bookings_for(self, account_id: int) -> List[Dict[str, Any]]:
        bookings = (
            self.db.query(Booking)
            .filter(Booking.account_id == account_id)
            .order_by(*self._date_then_slot())
            .all()
        )
        return [booking_to_dict(b) for b in bookings]

    def list_all_bookings(self) -> List[Dict[str, Any]]:
        bookings = (
            self.db.query(Booking)
            .options(joinedload(Booking.account))
            .order_by(*self._date_then_slot())
            .all()
        )
        result = []
        for booking in bookings:
            item = booking_to_dict(booking)
            item["account"] = (
                {"name": booking.account.name, "email": booking.account.email}
                if booking.account else None
            )
            result.append(item)
        return result

    def count_bookings(self) -> int:
        return self.db.query(Booking).count()

    @staticmethod
    def _date_then_slot():
        # Slots sort on the 24h key, so "00:00" leads its date
        return (Booking.date.asc(), Booking.slot.asc(), Booking.id.asc())
