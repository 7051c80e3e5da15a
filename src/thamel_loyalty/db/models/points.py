"""
Points ledger model - append-only, reconciled against Account.points
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Numeric, Index
from sqlalchemy.orm import relationship
import enum

from ..base import Base, utcnow


class TransactionKind(str, enum.Enum):
    """Ledger entry kind"""
    EARN = "earn"
    REDEEM = "redeem"  # Readable only; nothing writes it yet


class PointTransaction(Base):
    """Immutable points ledger entry"""
    __tablename__ = "point_transactions"

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    kind = Column(String, nullable=False, default=TransactionKind.EARN.value)
    amount = Column(Numeric(10, 2), nullable=False)  # Bill amount for 'earn'
    points = Column(Integer, nullable=False)  # Signed effect on the balance
    created_at = Column(DateTime, default=utcnow, nullable=False)

    account = relationship("Account", back_populates="transactions")

    __table_args__ = (
        Index("idx_point_transactions_account_created", "account_id", "created_at"),
    )
