"""
Account model - one canonical record per member
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, CheckConstraint
from sqlalchemy.orm import relationship
import enum

from ..base import Base, utcnow


class AuthProvider(str, enum.Enum):
    """How the account proves identity"""
    LOCAL = "local"
    FEDERATED = "federated"


class Account(Base):
    """Member account model"""
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)  # Always stored lowercase
    name = Column(String, nullable=False)
    hashed_password = Column(String, nullable=True)  # Null for federated-only accounts
    provider_uid = Column(String, unique=True, index=True, nullable=True)  # Federated subject id
    auth_provider = Column(String, nullable=False, default=AuthProvider.LOCAL.value)
    verified = Column(Boolean, nullable=False, default=False)
    points = Column(Integer, nullable=False, default=0)
    push_token = Column(String, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    bookings = relationship("Booking", back_populates="account")
    transactions = relationship("PointTransaction", back_populates="account")

    __table_args__ = (
        CheckConstraint("points >= 0", name="ck_accounts_points_non_negative"),
    )

    @property
    def is_federated(self) -> bool:
        return self.auth_provider == AuthProvider.FEDERATED.value

    def __repr__(self) -> str:
        return f"<Account id={self.id} provider={self.auth_provider}>"
