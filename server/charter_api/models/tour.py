"""Tour model definition."""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base

if TYPE_CHECKING:
    from .operator import Operator
    from .scheduled_tour import ScheduledTour

MIN_DURATION_MINUTES = 30
MAX_DURATION_MINUTES = 1440


class Tour(Base):
    """Tour entity: a bookable product template, not tied to a date."""

    __tablename__ = "tours"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Foreign key to operator
    operator_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("operators.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Tour information
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    duration_in_minutes: Mapped[int] = mapped_column(Integer, nullable=False)

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

    # Constraints
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_tour_price_non_negative"),
        CheckConstraint(
            f"duration_in_minutes >= {MIN_DURATION_MINUTES} AND duration_in_minutes <= {MAX_DURATION_MINUTES}",
            name="ck_tour_duration_range"
        ),
        CheckConstraint("length(title) > 0", name="ck_tour_title_not_empty"),
        UniqueConstraint("operator_id", "title", name="uq_tour_operator_title"),
    )

    # Relationships
    operator: Mapped["Operator"] = relationship("Operator", back_populates="tours")
    scheduled_tours: Mapped[list["ScheduledTour"]] = relationship(
        "ScheduledTour",
        back_populates="tour",
        cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Tour(id={self.id}, title='{self.title}', duration={self.duration_in_minutes}m)>"
