"""Inventory ledger: booked seats and availability, always re-aggregated from bookings."""

import logging
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..core.clock import ensure_utc
from ..core.exceptions import DataIntegrityError, NotFoundError
from ..models.booking import Booking
from ..models.scheduled_tour import ScheduledTour
from ..models.tour import Tour

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SeatAvailability:
    """Seat counts of one departure at a point in time."""

    capacity: int
    booked: int

    @property
    def available(self) -> int:
        return self.capacity - self.booked

    @property
    def is_full(self) -> bool:
        return self.available <= 0

    @classmethod
    def compute(cls, capacity: int, booked: int, scheduled_tour_id: UUID | None = None) -> "SeatAvailability":
        """
        Build an availability snapshot, refusing to paper over an oversold departure.

        Raises:
            DataIntegrityError: If more seats are booked than the vessel carries
        """
        snapshot = cls(capacity=capacity, booked=booked)
        if snapshot.available < 0:
            logger.error(
                "Booked seats exceed vessel capacity",
                extra={
                    "scheduled_tour_id": str(scheduled_tour_id) if scheduled_tour_id else None,
                    "capacity": capacity,
                    "booked": booked,
                }
            )
            raise DataIntegrityError(
                f"Scheduled tour {scheduled_tour_id} has {booked} seats booked on a vessel of capacity {capacity}"
            )
        return snapshot


class InventoryService:
    """
    Read side of seat inventory.

    There is no stored counter: every figure is summed from Booking rows, so
    callers that need a consistent value read it inside their own unit of
    work after taking the relevant row locks.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def booked_seats(self, scheduled_tour_id: UUID) -> int:
        """Total passengers booked on a departure; 0 when it has no bookings."""
        stmt = (
            select(func.coalesce(func.sum(Booking.passenger_count), 0))
            .where(Booking.scheduled_tour_id == scheduled_tour_id)
        )
        result = await self.db.execute(stmt)
        return int(result.scalar_one())

    async def booked_seats_by_scheduled_tour(self, scheduled_tour_ids: list[UUID]) -> dict[UUID, int]:
        """Booked seat totals for several departures in one query; missing keys mean 0."""
        if not scheduled_tour_ids:
            return {}

        stmt = (
            select(Booking.scheduled_tour_id, func.sum(Booking.passenger_count))
            .where(Booking.scheduled_tour_id.in_(scheduled_tour_ids))
            .group_by(Booking.scheduled_tour_id)
        )
        result = await self.db.execute(stmt)
        return {row[0]: int(row[1]) for row in result.all()}

    async def availability(self, scheduled_tour_id: UUID, operator_id: UUID | None = None) -> SeatAvailability:
        """
        Current availability of a departure.

        Args:
            scheduled_tour_id: Departure to inspect
            operator_id: When given, the departure must belong to this operator

        Returns:
            SeatAvailability snapshot

        Raises:
            NotFoundError: If the departure does not exist for the operator
            DataIntegrityError: If stored bookings already exceed capacity
        """
        stmt = (
            select(ScheduledTour)
            .options(selectinload(ScheduledTour.vessel))
            .where(ScheduledTour.id == scheduled_tour_id)
        )
        if operator_id is not None:
            stmt = stmt.join(Tour, ScheduledTour.tour_id == Tour.id).where(Tour.operator_id == operator_id)

        result = await self.db.execute(stmt)
        scheduled_tour = result.scalar_one_or_none()
        if scheduled_tour is None:
            raise NotFoundError(resource_type="scheduled tour", resource_id=str(scheduled_tour_id))

        booked = await self.booked_seats(scheduled_tour_id)
        return SeatAvailability.compute(scheduled_tour.vessel.capacity, booked, scheduled_tour_id)

    async def max_future_booked_seats(self, vessel_id: UUID, now: datetime) -> int:
        """
        Largest booked-seat total among the vessel's departures starting at or after now.

        Departures without bookings count as 0; a vessel with no upcoming
        departures yields 0.
        """
        per_departure = (
            select(func.sum(Booking.passenger_count).label("booked"))
            .join(ScheduledTour, Booking.scheduled_tour_id == ScheduledTour.id)
            .where(
                ScheduledTour.vessel_id == vessel_id,
                ScheduledTour.start_time >= ensure_utc(now),
            )
            .group_by(Booking.scheduled_tour_id)
            .subquery()
        )
        stmt = select(func.coalesce(func.max(per_departure.c.booked), 0))
        result = await self.db.execute(stmt)
        return int(result.scalar_one())
