"""
Database module for Thamel Loyalty
"""
from .engine import engine, SessionLocal, get_db, init_db
from .base import Base, utcnow
from .models import (
    Account,
    AuthProvider,
    VerificationCode,
    HandoffCode,
    Booking,
    PointTransaction,
    TransactionKind,
)

__all__ = [
    "engine",
    "SessionLocal",
    "get_db",
    "init_db",
    "Base",
    "utcnow",
    "Account",
    "AuthProvider",
    "VerificationCode",
    "HandoffCode",
    "Booking",
    "PointTransaction",
    "TransactionKind",
]
