"""
Booking model: a paid hotel stay materialised from a checkout session.

Key design decisions:
- Unique constraint on payment_id makes the payment provider's id the
  idempotency key; concurrent reconciles of one session cannot both insert
- Status field allows cancellation without deleting records
- user_id is the identity provider's id, there is no local users table
"""

import enum

from sqlalchemy import Column, Integer, String, Date, UniqueConstraint, CheckConstraint

from stayquest.db.base import Base, TimestampMixin


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    hotel_name = Column(String(255), nullable=False)
    check_in = Column(Date, nullable=False)
    check_out = Column(Date, nullable=False)
    user_id = Column(String(64), nullable=False, index=True)
    payment_id = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False, default=BookingStatus.CONFIRMED.value)

    __table_args__ = (
        UniqueConstraint("payment_id", name="uq_bookings_payment_id"),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'cancelled')",
            name="check_booking_status",
        ),
    )

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, user={self.user_id}, payment={self.payment_id}, status={self.status})>"
