"""
Short-lived single-use credentials: email verification codes and mobile hand-off codes
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from ..base import Base, utcnow


class VerificationCode(Base):
    """Six-digit code proving control of an email address

    The unique email column keeps at most one code per address, so issuing
    a new code always invalidates the previous one.
    """
    __tablename__ = "verification_codes"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    code = Column(String(6), nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)
    used = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class HandoffCode(Base):
    """One-time code bridging a web federated login to the mobile app"""
    __tablename__ = "handoff_codes"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String, unique=True, index=True, nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    account = relationship("Account")
