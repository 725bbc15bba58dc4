"""Scheduled tour (departure) model definition."""

from datetime import datetime, timedelta
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import DateTime, ForeignKey, Index, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.clock import ensure_utc
from ..core.database import Base

if TYPE_CHECKING:
    from .booking import Booking
    from .tour import Tour
    from .vessel import Vessel


class ScheduledTour(Base):
    """ScheduledTour entity: one concrete departure of a tour on a vessel."""

    __tablename__ = "scheduled_tours"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Foreign keys
    tour_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("tours.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    vessel_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("vessels.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Departure details
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=func.now(),
        onupdate=func.now()
    )

    __table_args__ = (
        Index("ix_scheduled_tours_vessel_start", "vessel_id", "start_time"),
    )

    # Relationships
    tour: Mapped["Tour"] = relationship("Tour", back_populates="scheduled_tours")
    vessel: Mapped["Vessel"] = relationship("Vessel", back_populates="scheduled_tours")
    bookings: Mapped[list["Booking"]] = relationship(
        "Booking",
        back_populates="scheduled_tour",
        cascade="all, delete-orphan"
    )

    @property
    def starts_at(self) -> datetime:
        """Start time as aware UTC regardless of backend."""
        return ensure_utc(self.start_time)

    @property
    def ends_at(self) -> datetime:
        """Effective end time; requires the tour to be loaded."""
        return self.starts_at + timedelta(minutes=self.tour.duration_in_minutes)

    def __repr__(self) -> str:
        return (
            f"<ScheduledTour(id={self.id}, tour_id={self.tour_id}, "
            f"vessel_id={self.vessel_id}, start_time={self.start_time})>"
        )
