"""Operator model definition."""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base

if TYPE_CHECKING:
    from .tour import Tour
    from .vessel import Vessel


class Operator(Base):
    """Operator entity: the tenant that owns vessels, tours and their schedules."""

    __tablename__ = "operators"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Operator information
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(120), nullable=False, unique=True, index=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)

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
        CheckConstraint("length(name) > 0", name="ck_operator_name_not_empty"),
        CheckConstraint("length(slug) > 0", name="ck_operator_slug_not_empty"),
    )

    # Relationships
    vessels: Mapped[list["Vessel"]] = relationship(
        "Vessel",
        back_populates="operator",
        cascade="all, delete-orphan"
    )
    tours: Mapped[list["Tour"]] = relationship(
        "Tour",
        back_populates="operator",
        cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Operator(id={self.id}, name='{self.name}', slug='{self.slug}')>"
