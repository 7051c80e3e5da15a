"""
Staff API routes
All endpoints require the X-Admin-Secret header.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .auth import require_staff
from .db import get_db
from .dependencies import get_email_provider, get_push_provider
from .schemas import (
    AdminAccountListResponse,
    AdminBookingListResponse,
    NotifyRequest,
    NotifyResponse,
    StatsResponse,
)
from .services.account_registry import AccountRegistry
from .services.email_provider import EmailProvider
from .services.notification_dispatcher import NotificationDispatcher
from .services.points_ledger import PointsLedger
from .services.push_provider import PushProvider
from .services.reservation_ledger import ReservationLedger

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_staff)])


@router.get("/stats", response_model=StatsResponse)
def get_stats(db: Session = Depends(get_db)):
    return {
        "total_accounts": AccountRegistry(db).count(),
        "total_amount_transacted": float(PointsLedger(db).total_earned_amount()),
        "total_karaoke_bookings": ReservationLedger(db).count_bookings(),
    }


@router.get("/accounts", response_model=AdminAccountListResponse)
def list_accounts(db: Session = Depends(get_db)):
    accounts = []
    for account in AccountRegistry(db).list_accounts():
        item = AccountRegistry.summary(account)
        item["created_at"] = account.created_at.isoformat() if account.created_at else None
        accounts.append(item)
    return {"accounts": accounts}


@router.get("/bookings", response_model=AdminBookingListResponse)
def list_bookings(db: Session = Depends(get_db)):
    return {"bookings": ReservationLedger(db).list_all_bookings()}


@router.post("/notify", response_model=NotifyResponse)
def notify_members(
    body: NotifyRequest,
    db: Session = Depends(get_db),
    email_provider: EmailProvider = Depends(get_email_provider),
    push_provider: PushProvider = Depends(get_push_provider),
):
    """Broadcast a message to all members, or to the listed emails"""
    dispatcher = NotificationDispatcher(db, email_provider, push_provider)
    return dispatcher.broadcast(
        body.title,
        body.body,
        send_email=body.send_email,
        send_push=body.send_push,
        emails=body.emails,
    )
