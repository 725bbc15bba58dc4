"""Vessel model definition."""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Enum as SAEnum, ForeignKey, Integer, String, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base

if TYPE_CHECKING:
    from .operator import Operator
    from .scheduled_tour import ScheduledTour


class VesselType(str, Enum):
    """Vessel class enumeration."""
    FISHING_BOAT = "FISHING_BOAT"
    ZODIAC = "ZODIAC"
    COVERED_VESSEL = "COVERED_VESSEL"


class Vessel(Base):
    """Vessel entity: a physical craft with a passenger ceiling."""

    __tablename__ = "vessels"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Foreign key to operator
    operator_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("operators.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Vessel details
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    vessel_type: Mapped[VesselType] = mapped_column(
        SAEnum(VesselType, name="vessel_type", native_enum=False, length=20),
        nullable=False,
        default=VesselType.FISHING_BOAT
    )
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)

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
        CheckConstraint("capacity >= 1", name="ck_vessel_capacity_positive"),
        CheckConstraint("length(name) > 0", name="ck_vessel_name_not_empty"),
        CheckConstraint(
            "vessel_type IN ('FISHING_BOAT', 'ZODIAC', 'COVERED_VESSEL')",
            name="ck_vessel_type_valid"
        ),
        UniqueConstraint("operator_id", "name", name="uq_vessel_operator_name"),
    )

    # Relationships
    operator: Mapped["Operator"] = relationship("Operator", back_populates="vessels")
    scheduled_tours: Mapped[list["ScheduledTour"]] = relationship(
        "ScheduledTour",
        back_populates="vessel",
        cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Vessel(id={self.id}, name='{self.name}', capacity={self.capacity})>"
