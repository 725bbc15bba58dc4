"""Booking service: seat reservations on scheduled tours."""

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import NotFoundError
from ..core.observability import metrics_collector
from ..core.unit_of_work import unit_of_work
from ..models.booking import Booking
from ..models.scheduled_tour import ScheduledTour
from ..models.tour import Tour
from ..schemas.booking import CreateBookingRequest
from .capacity_guard import CapacityGuard, validate_passenger_count
from .inventory_service import InventoryService
from .scheduling_service import SchedulingService
from .vessel_service import VesselService

logger = logging.getLogger(__name__)


@dataclass
class BookingReceipt:
    """A committed booking and the departure's inventory right after it."""

    booking: Booking
    seats_remaining: int
    total_capacity: int
    seats_booked: int


class BookingService:
    """Service for booking-related operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.scheduling_service = SchedulingService(db)
        self.vessel_service = VesselService(db)
        self.inventory_service = InventoryService(db)
        self.capacity_guard = CapacityGuard(db)

    async def create_booking(self, operator_id: UUID, request: CreateBookingRequest) -> BookingReceipt:
        """Reserve seats for a booking request."""
        return await self.reserve(
            operator_id,
            request.scheduled_tour_id,
            request.passenger_count,
            request.customer_name.strip(),
            str(request.customer_email).lower(),
        )

    async def reserve(
        self,
        operator_id: UUID,
        scheduled_tour_id: UUID,
        passenger_count: int,
        customer_name: str,
        customer_email: str,
    ) -> BookingReceipt:
        """
        Atomically reserve seats on a departure.

        The departure row is locked FOR UPDATE and its vessel FOR SHARE
        before booked seats are summed, so two concurrent reservations
        cannot both see the same free seats. Either the booking commits and
        the departure stays within capacity, or nothing is written.

        Args:
            operator_id: Owning operator
            scheduled_tour_id: Departure to book
            passenger_count: Seats to reserve, at least 1
            customer_name: Lead passenger name
            customer_email: Lead passenger email

        Returns:
            BookingReceipt with the booking and post-booking inventory

        Raises:
            ValidationError: If passenger_count is not a positive integer
            NotFoundError: If the departure does not exist for the operator
            CapacityExceededError: If fewer seats remain than requested
        """
        validate_passenger_count(passenger_count)

        async with unit_of_work(self.db):
            scheduled_tour = await self.scheduling_service.get_scheduled_tour_with_lock(
                scheduled_tour_id, operator_id
            )
            vessel = await self.vessel_service.get_vessel_with_lock(
                scheduled_tour.vessel_id, operator_id, shared=True
            )

            booked = await self.inventory_service.booked_seats(scheduled_tour.id)
            available = self.capacity_guard.ensure_seats_available(
                passenger_count,
                vessel.capacity,
                booked,
                scheduled_tour_id=scheduled_tour.id,
            )

            booking = Booking(
                scheduled_tour_id=scheduled_tour.id,
                passenger_count=passenger_count,
                customer_name=customer_name,
                customer_email=customer_email,
            )
            self.db.add(booking)
            await self.db.flush()

        await self.db.refresh(booking)

        receipt = BookingReceipt(
            booking=booking,
            seats_remaining=available - passenger_count,
            total_capacity=vessel.capacity,
            seats_booked=booked + passenger_count,
        )

        metrics_collector.record_booking_created(passenger_count)
        metrics_collector.set_capacity_utilization(
            str(scheduled_tour_id), receipt.seats_booked, receipt.total_capacity
        )
        logger.info(
            "Booking created successfully",
            extra={
                "booking_id": str(booking.id),
                "scheduled_tour_id": str(scheduled_tour_id),
                "passenger_count": passenger_count,
                "seats_remaining": receipt.seats_remaining,
            }
        )

        return receipt

    async def list_bookings(self, operator_id: UUID, scheduled_tour_id: UUID) -> list[Booking]:
        """
        Bookings of a departure, oldest first.

        Raises:
            NotFoundError: If the departure does not exist for the operator
        """
        await self.scheduling_service.get_scheduled_tour_by_id_or_raise(scheduled_tour_id, operator_id)
        stmt = (
            select(Booking)
            .where(Booking.scheduled_tour_id == scheduled_tour_id)
            .order_by(Booking.created_at, Booking.id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars())

    async def get_booking_by_id(self, booking_id: UUID, operator_id: UUID) -> Booking | None:
        """Get an operator's booking by ID."""
        stmt = (
            select(Booking)
            .join(ScheduledTour, Booking.scheduled_tour_id == ScheduledTour.id)
            .join(Tour, ScheduledTour.tour_id == Tour.id)
            .where(Booking.id == booking_id, Tour.operator_id == operator_id)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_booking_by_id_or_raise(self, booking_id: UUID, operator_id: UUID) -> Booking:
        """Get an operator's booking by ID or raise NotFoundError."""
        booking = await self.get_booking_by_id(booking_id, operator_id)
        if not booking:
            logger.warning(
                "Booking not found",
                extra={"booking_id": str(booking_id), "operator_id": str(operator_id)}
            )
            raise NotFoundError(
                resource_type="booking",
                resource_id=str(booking_id)
            )
        return booking
