"""
Database models for Thamel Loyalty
"""
from .account import Account, AuthProvider
from .credential import VerificationCode, HandoffCode
from .booking import Booking
from .points import PointTransaction, TransactionKind

__all__ = [
    "Account",
    "AuthProvider",
    "VerificationCode",
    "HandoffCode",
    "Booking",
    "PointTransaction",
    "TransactionKind",
]
