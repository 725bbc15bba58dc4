"""Capacity guard: admission control for seats on a vessel."""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.clock import utcnow
from ..core.exceptions import CapacityExceededError, ValidationError
from ..core.observability import metrics_collector
from ..models.vessel import Vessel
from .inventory_service import InventoryService

logger = logging.getLogger(__name__)


def remaining_seats(capacity: int, booked: int) -> int:
    """Seats a departure can still take."""
    return capacity - booked


def can_admit(requested: int, capacity: int, booked: int) -> bool:
    """True when requested seats fit in what is left; an exact fit is admitted."""
    return requested <= remaining_seats(capacity, booked)


def validate_passenger_count(requested) -> int:
    """
    Reject anything that is not a positive whole number of seats.

    Raises:
        ValidationError: If requested is not an int, or is below 1
    """
    if isinstance(requested, bool) or not isinstance(requested, int):
        raise ValidationError(
            detail="Passenger count must be a whole number",
            field="passenger_count",
        )
    if requested < 1:
        raise ValidationError(
            detail="Passenger count must be at least 1",
            field="passenger_count",
        )
    return requested


class CapacityGuard:
    """Decides whether seats, a vessel swap or a capacity cut can be admitted."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.inventory_service = InventoryService(db)

    def ensure_seats_available(
        self,
        requested: int,
        capacity: int,
        booked: int,
        scheduled_tour_id: UUID | None = None,
    ) -> int:
        """
        Admit a reservation of requested seats or refuse it outright.

        Args:
            requested: Seats asked for
            capacity: Vessel capacity
            booked: Seats already booked, read under the caller's lock
            scheduled_tour_id: Departure being booked, for error context

        Returns:
            Seats available before this reservation

        Raises:
            ValidationError: If requested is not a positive integer
            CapacityExceededError: If requested exceeds the remaining seats
        """
        validate_passenger_count(requested)
        available = remaining_seats(capacity, booked)

        if not can_admit(requested, capacity, booked):
            logger.warning(
                "Booking rejected - insufficient seats",
                extra={
                    "scheduled_tour_id": str(scheduled_tour_id) if scheduled_tour_id else None,
                    "requested": requested,
                    "available": available,
                    "capacity": capacity,
                }
            )
            metrics_collector.record_capacity_rejection("booking")
            raise CapacityExceededError(
                detail=f"Not enough seats available. Requested: {requested}, Available: {max(available, 0)}",
                requested=requested,
                available=max(available, 0),
                scheduled_tour_id=str(scheduled_tour_id) if scheduled_tour_id else None,
            )

        return available

    def ensure_vessel_can_carry(self, booked: int, vessel: Vessel) -> None:
        """
        Refuse moving a departure onto a vessel smaller than its bookings.

        Raises:
            CapacityExceededError: If booked exceeds the vessel's capacity
        """
        if booked <= vessel.capacity:
            return

        logger.warning(
            "Vessel change rejected - bookings exceed new vessel capacity",
            extra={
                "vessel_id": str(vessel.id),
                "booked": booked,
                "capacity": vessel.capacity,
            }
        )
        metrics_collector.record_capacity_rejection("vessel_change")
        raise CapacityExceededError(
            detail=(
                f"Cannot change vessel: {booked} seats already booked, "
                f'but new vessel "{vessel.name}" only has {vessel.capacity} seats'
            ),
            requested=booked,
            available=vessel.capacity,
            vessel_id=str(vessel.id),
        )

    async def ensure_capacity_reduction_allowed(
        self,
        vessel: Vessel,
        new_capacity: int,
        now: datetime | None = None,
    ) -> None:
        """
        Refuse shrinking a vessel below what any upcoming departure already holds.

        Only applies when capacity goes down; departures that have already
        started are not considered. The caller holds the vessel row lock.

        Raises:
            CapacityExceededError: If an upcoming departure has more bookings than new_capacity
        """
        if new_capacity >= vessel.capacity:
            return

        max_booked = await self.inventory_service.max_future_booked_seats(vessel.id, now or utcnow())
        if new_capacity >= max_booked:
            return

        logger.warning(
            "Capacity reduction rejected - upcoming bookings exceed new capacity",
            extra={
                "vessel_id": str(vessel.id),
                "current_capacity": vessel.capacity,
                "new_capacity": new_capacity,
                "max_booked": max_booked,
            }
        )
        metrics_collector.record_capacity_rejection("capacity_reduction")
        raise CapacityExceededError(
            detail=(
                f"Cannot reduce capacity to {new_capacity}: an upcoming scheduled tour "
                f"already has {max_booked} seats booked"
            ),
            requested=max_booked,
            available=new_capacity,
            vessel_id=str(vessel.id),
        )
