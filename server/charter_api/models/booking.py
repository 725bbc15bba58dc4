"""Booking model definition."""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base

if TYPE_CHECKING:
    from .scheduled_tour import ScheduledTour


class Booking(Base):
    """Booking entity: an immutable reservation of N seats on a departure."""

    __tablename__ = "bookings"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Foreign key to scheduled tour
    scheduled_tour_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("scheduled_tours.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Booking details
    passenger_count: Mapped[int] = mapped_column(Integer, nullable=False)
    customer_name: Mapped[str] = mapped_column(String(200), nullable=False)
    customer_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=func.now()
    )

    # Constraints
    __table_args__ = (
        CheckConstraint("passenger_count > 0", name="ck_booking_passenger_count_positive"),
        CheckConstraint("length(customer_name) > 0", name="ck_booking_customer_name_not_empty"),
        CheckConstraint("length(customer_email) > 0", name="ck_booking_customer_email_not_empty"),
    )

    # Relationships
    scheduled_tour: Mapped["ScheduledTour"] = relationship("ScheduledTour", back_populates="bookings")

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, scheduled_tour_id={self.scheduled_tour_id}, "
            f"passenger_count={self.passenger_count})>"
        )
