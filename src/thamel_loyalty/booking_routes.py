"""
Karaoke booking API routes
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .auth import get_current_account
from .db import get_db, Account
from .schemas import BookingListResponse, BookingResponse, CreateBookingRequest, SlotsResponse
from .services.reservation_ledger import ReservationLedger

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.get("/slots", response_model=SlotsResponse)
def list_available_slots(
    room: str = Query(...),
    date: str = Query(...),
    db: Session = Depends(get_db),
):
    """Slot labels still free for a room on a date, in evening order"""
    return {"slots": ReservationLedger(db).list_available_slots(room, date)}


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    body: CreateBookingRequest,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    booking = ReservationLedger(db).create_booking(
        account.id,
        body.room,
        body.date,
        body.slot,
        body.contact_number,
    )
    return {"booking": booking}


@router.get("/mine", response_model=BookingListResponse)
def list_my_bookings(account: Account = Depends(get_current_account), db: Session = Depends(get_db)):
    return {"bookings": ReservationLedger(db).list_bookings_for(account.id)}
