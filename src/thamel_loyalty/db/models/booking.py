"""
Karaoke room booking model
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship

from ..base import Base, utcnow


class Booking(Base):
    """One room, one date, one slot"""
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    room = Column(String, nullable=False)  # 'K1', 'K2', 'K3'
    date = Column(String(10), nullable=False)  # YYYY-MM-DD, no timezone
    slot = Column(String(5), nullable=False)  # 24h key, e.g. '18:00'
    contact_number = Column(String, nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    account = relationship("Account", back_populates="bookings")

    __table_args__ = (
        UniqueConstraint("room", "date", "slot", name="uq_bookings_room_date_slot"),
        Index("idx_bookings_account_date", "account_id", "date"),
    )
