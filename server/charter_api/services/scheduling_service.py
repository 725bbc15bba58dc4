"""Scheduling service: departures of tours on vessels."""

import logging
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..core.clock import ensure_utc, utcnow
from ..core.exceptions import CannotDeleteError, InvalidStartTimeError, NotFoundError, ProblemDetailsException
from ..core.observability import metrics_collector
from ..core.unit_of_work import unit_of_work
from ..models.booking import Booking
from ..models.scheduled_tour import ScheduledTour
from ..models.tour import Tour
from ..schemas.scheduled_tour import (
    CreateScheduledTourRequest,
    SearchScheduledToursRequest,
    UpdateScheduledTourRequest,
)
from .capacity_guard import CapacityGuard
from .inventory_service import InventoryService, SeatAvailability
from .overlap_detector import OverlapDetector
from .tour_service import TourService
from .vessel_service import VesselService

logger = logging.getLogger(__name__)


@dataclass
class ScheduledTourView:
    """A departure together with its seat availability and booking count."""

    scheduled_tour: ScheduledTour
    availability: SeatAvailability
    booking_count: int


@dataclass
class BulkCreateOutcome:
    """Result of one bulk-create entry: either a view or the problem that stopped it."""

    index: int
    view: ScheduledTourView | None = None
    error: ProblemDetailsException | None = None


@dataclass
class DeletedScheduledTour:
    id: UUID
    tour_title: str
    start_time: datetime


def _ensure_future(start_time: datetime, now: datetime) -> datetime:
    start_time = ensure_utc(start_time)
    if start_time <= now:
        logger.warning(
            "Rejected start time not in the future",
            extra={"start_time": start_time.isoformat(), "now": now.isoformat()}
        )
        raise InvalidStartTimeError(start_time, now)
    return start_time


class SchedulingService:
    """
    Service for scheduled tour operations.

    Every write runs in one unit of work: row locks are taken first, then
    the overlap and capacity checks read under those locks, and the change
    commits or the whole transaction rolls back.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.tour_service = TourService(db)
        self.vessel_service = VesselService(db)
        self.inventory_service = InventoryService(db)
        self.capacity_guard = CapacityGuard(db)
        self.overlap_detector = OverlapDetector(db)

    def _base_query(self, operator_id: UUID):
        return (
            select(ScheduledTour)
            .join(Tour, ScheduledTour.tour_id == Tour.id)
            .options(
                selectinload(ScheduledTour.tour),
                selectinload(ScheduledTour.vessel),
            )
            .where(Tour.operator_id == operator_id)
        )

    async def _view(self, scheduled_tour: ScheduledTour) -> ScheduledTourView:
        booked = await self.inventory_service.booked_seats(scheduled_tour.id)
        return ScheduledTourView(
            scheduled_tour=scheduled_tour,
            availability=SeatAvailability.compute(scheduled_tour.vessel.capacity, booked, scheduled_tour.id),
            booking_count=await self._count_bookings(scheduled_tour.id),
        )

    async def _count_bookings(self, scheduled_tour_id: UUID) -> int:
        stmt = select(func.count(Booking.id)).where(Booking.scheduled_tour_id == scheduled_tour_id)
        result = await self.db.execute(stmt)
        return int(result.scalar_one())

    async def _reload(self, scheduled_tour_id: UUID, operator_id: UUID) -> ScheduledTour:
        stmt = self._base_query(operator_id).where(ScheduledTour.id == scheduled_tour_id).execution_options(
            populate_existing=True
        )
        result = await self.db.execute(stmt)
        return result.scalar_one()

    async def create_scheduled_tour(
        self,
        operator_id: UUID,
        request: CreateScheduledTourRequest,
    ) -> ScheduledTourView:
        """
        Schedule a tour on a vessel.

        Args:
            operator_id: Owning operator
            request: Tour, vessel and start time

        Returns:
            The new departure with zero bookings and full availability

        Raises:
            InvalidStartTimeError: If the start time is not in the future
            NotFoundError: If the tour or vessel does not exist for the operator
            SchedulingConflictError: If the vessel is already scheduled in that window
        """
        start_time = _ensure_future(request.start_time, utcnow())

        async with unit_of_work(self.db):
            tour = await self.tour_service.get_tour_with_lock(request.tour_id, operator_id, shared=True)
            vessel = await self.vessel_service.get_vessel_with_lock(request.vessel_id, operator_id)

            await self.overlap_detector.ensure_no_conflict(
                vessel, start_time, tour.duration_in_minutes, operation="create"
            )

            scheduled_tour = ScheduledTour(tour_id=tour.id, vessel_id=vessel.id, start_time=start_time)
            self.db.add(scheduled_tour)
            await self.db.flush()
            scheduled_tour_id = scheduled_tour.id

        scheduled_tour = await self._reload(scheduled_tour_id, operator_id)

        metrics_collector.record_departure_scheduled()
        logger.info(
            "Scheduled tour created successfully",
            extra={
                "scheduled_tour_id": str(scheduled_tour_id),
                "tour_id": str(scheduled_tour.tour_id),
                "vessel_id": str(scheduled_tour.vessel_id),
                "start_time": start_time.isoformat(),
            }
        )

        return ScheduledTourView(
            scheduled_tour=scheduled_tour,
            availability=SeatAvailability.compute(scheduled_tour.vessel.capacity, 0, scheduled_tour_id),
            booking_count=0,
        )

    async def bulk_create_scheduled_tours(
        self,
        operator_id: UUID,
        entries: list[CreateScheduledTourRequest],
    ) -> list[BulkCreateOutcome]:
        """
        Schedule several departures, each in its own transaction.

        A failing entry is reported in its outcome and never undoes the
        entries that committed before or after it.
        """
        outcomes: list[BulkCreateOutcome] = []
        created_ids: dict[int, UUID] = {}
        for index, entry in enumerate(entries):
            try:
                view = await self.create_scheduled_tour(operator_id, entry)
                created_ids[index] = view.scheduled_tour.id
                outcomes.append(BulkCreateOutcome(index=index, view=view))
            except ProblemDetailsException as e:
                outcomes.append(BulkCreateOutcome(index=index, error=e))

        # A rolled-back entry expires everything in the session, including
        # departures committed earlier in the loop.
        for outcome in outcomes:
            if outcome.view is not None:
                outcome.view.scheduled_tour = await self._reload(created_ids[outcome.index], operator_id)

        logger.info(
            "Bulk scheduling completed",
            extra={
                "operator_id": str(operator_id),
                "requested": len(entries),
                "created_count": sum(1 for o in outcomes if o.view is not None),
            }
        )
        return outcomes

    async def update_scheduled_tour(
        self,
        operator_id: UUID,
        request: UpdateScheduledTourRequest,
    ) -> ScheduledTourView:
        """
        Change the tour, vessel or start time of a departure.

        Raises:
            NotFoundError: If the departure, new tour or new vessel does not exist
            CapacityExceededError: If the new vessel cannot carry the seats already booked
            InvalidStartTimeError: If a changed start time is not in the future
            SchedulingConflictError: If the effective window overlaps another departure
        """
        async with unit_of_work(self.db):
            scheduled_tour = await self.get_scheduled_tour_with_lock(request.scheduled_tour_id, operator_id)
            booked = await self.inventory_service.booked_seats(scheduled_tour.id)

            tour_changed = request.tour_id is not None and request.tour_id != scheduled_tour.tour_id
            tour = await self.tour_service.get_tour_with_lock(
                request.tour_id if tour_changed else scheduled_tour.tour_id, operator_id, shared=True
            )

            vessel_changed = request.vessel_id is not None and request.vessel_id != scheduled_tour.vessel_id
            if vessel_changed:
                vessel = await self.vessel_service.get_vessel_with_lock(request.vessel_id, operator_id)
                self.capacity_guard.ensure_vessel_can_carry(booked, vessel)
            else:
                vessel = await self.vessel_service.get_vessel_with_lock(scheduled_tour.vessel_id, operator_id)

            start_time = scheduled_tour.starts_at
            start_changed = False
            if request.start_time is not None:
                candidate = ensure_utc(request.start_time)
                if candidate != start_time:
                    start_time = _ensure_future(candidate, utcnow())
                    start_changed = True

            if tour_changed or vessel_changed or start_changed:
                await self.overlap_detector.ensure_no_conflict(
                    vessel,
                    start_time,
                    tour.duration_in_minutes,
                    exclude_scheduled_tour_id=scheduled_tour.id,
                    operation="update",
                )

            scheduled_tour.tour_id = tour.id
            scheduled_tour.vessel_id = vessel.id
            scheduled_tour.start_time = start_time
            await self.db.flush()

        scheduled_tour = await self._reload(request.scheduled_tour_id, operator_id)

        logger.info(
            "Scheduled tour updated successfully",
            extra={
                "scheduled_tour_id": str(scheduled_tour.id),
                "tour_changed": tour_changed,
                "vessel_changed": vessel_changed,
                "start_changed": start_changed,
            }
        )

        return ScheduledTourView(
            scheduled_tour=scheduled_tour,
            availability=SeatAvailability.compute(scheduled_tour.vessel.capacity, booked, scheduled_tour.id),
            booking_count=await self._count_bookings(scheduled_tour.id),
        )

    async def delete_scheduled_tour(self, operator_id: UUID, scheduled_tour_id: UUID) -> DeletedScheduledTour:
        """
        Delete a departure that has no bookings.

        Raises:
            NotFoundError: If the departure does not exist for the operator
            CannotDeleteError: If any booking exists on it
        """
        async with unit_of_work(self.db):
            scheduled_tour = await self.get_scheduled_tour_with_lock(scheduled_tour_id, operator_id)
            await self.vessel_service.get_vessel_with_lock(scheduled_tour.vessel_id, operator_id)

            booking_count = await self._count_bookings(scheduled_tour.id)
            if booking_count > 0:
                passengers = await self.inventory_service.booked_seats(scheduled_tour.id)
                logger.warning(
                    "Scheduled tour deletion blocked by bookings",
                    extra={
                        "scheduled_tour_id": str(scheduled_tour_id),
                        "bookings": booking_count,
                        "passengers": passengers,
                    }
                )
                raise CannotDeleteError(
                    resource_type="scheduled tour",
                    resource_id=str(scheduled_tour_id),
                    detail=(
                        f"Cannot delete scheduled tour: {booking_count} booking(s) with "
                        f"{passengers} passenger(s) exist. Please cancel all bookings first."
                    ),
                    counts={"bookings": booking_count, "passengers": passengers},
                )

            deleted = DeletedScheduledTour(
                id=scheduled_tour.id,
                tour_title=scheduled_tour.tour.title,
                start_time=scheduled_tour.starts_at,
            )
            await self.db.delete(scheduled_tour)

        logger.info(
            "Scheduled tour deleted",
            extra={"scheduled_tour_id": str(scheduled_tour_id), "tour_title": deleted.tour_title}
        )
        return deleted

    async def get_scheduled_tour(self, operator_id: UUID, scheduled_tour_id: UUID) -> ScheduledTourView:
        """
        Get a departure with its current availability.

        Raises:
            NotFoundError: If the departure does not exist for the operator
        """
        scheduled_tour = await self.get_scheduled_tour_by_id_or_raise(scheduled_tour_id, operator_id)
        return await self._view(scheduled_tour)

    async def search_scheduled_tours(
        self,
        operator_id: UUID,
        request: SearchScheduledToursRequest,
    ) -> list[ScheduledTourView]:
        """
        Search the operator's departures, ordered by start time.

        Each result carries availability computed from one grouped
        aggregate over the matching departures.
        """
        stmt = self._base_query(operator_id).options(selectinload(ScheduledTour.bookings))

        if request.start_from is not None:
            stmt = stmt.where(ScheduledTour.start_time >= ensure_utc(request.start_from))
        if request.start_to is not None:
            stmt = stmt.where(ScheduledTour.start_time < ensure_utc(request.start_to))
        if request.vessel_id is not None:
            stmt = stmt.where(ScheduledTour.vessel_id == request.vessel_id)
        if request.tour_id is not None:
            stmt = stmt.where(ScheduledTour.tour_id == request.tour_id)

        stmt = stmt.order_by(ScheduledTour.start_time).limit(request.limit)

        result = await self.db.execute(stmt)
        scheduled_tours = list(result.scalars())

        booked_by_id = await self.inventory_service.booked_seats_by_scheduled_tour([st.id for st in scheduled_tours])

        views = []
        for scheduled_tour in scheduled_tours:
            availability = SeatAvailability.compute(
                scheduled_tour.vessel.capacity,
                booked_by_id.get(scheduled_tour.id, 0),
                scheduled_tour.id,
            )
            if request.available_only and availability.is_full:
                continue
            views.append(ScheduledTourView(
                scheduled_tour=scheduled_tour,
                availability=availability,
                booking_count=len(scheduled_tour.bookings),
            ))

        logger.info(
            "Scheduled tour search completed",
            extra={
                "operator_id": str(operator_id),
                "total_found": len(views),
                "filters": {
                    "start_from": request.start_from.isoformat() if request.start_from else None,
                    "start_to": request.start_to.isoformat() if request.start_to else None,
                    "vessel_id": str(request.vessel_id) if request.vessel_id else None,
                    "tour_id": str(request.tour_id) if request.tour_id else None,
                    "available_only": request.available_only,
                }
            }
        )
        return views

    async def get_scheduled_tour_by_id(self, scheduled_tour_id: UUID, operator_id: UUID) -> ScheduledTour | None:
        """
        Get an operator's departure by ID, with its tour and vessel loaded.

        Returns:
            ScheduledTour if found, None otherwise
        """
        stmt = self._base_query(operator_id).where(ScheduledTour.id == scheduled_tour_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_scheduled_tour_by_id_or_raise(self, scheduled_tour_id: UUID, operator_id: UUID) -> ScheduledTour:
        """
        Get an operator's departure by ID or raise NotFoundError.

        Raises:
            NotFoundError: If the departure does not exist for the operator
        """
        scheduled_tour = await self.get_scheduled_tour_by_id(scheduled_tour_id, operator_id)
        if not scheduled_tour:
            logger.warning(
                "Scheduled tour not found",
                extra={"scheduled_tour_id": str(scheduled_tour_id), "operator_id": str(operator_id)}
            )
            raise NotFoundError(resource_type="scheduled tour", resource_id=str(scheduled_tour_id))
        return scheduled_tour

    async def get_scheduled_tour_with_lock(self, scheduled_tour_id: UUID, operator_id: UUID) -> ScheduledTour:
        """
        Get an operator's departure with a FOR UPDATE row lock held until the transaction ends.

        Only the scheduled_tours row is locked; tour and vessel are loaded
        separately so callers decide how to lock the vessel.

        Raises:
            NotFoundError: If the departure does not exist for the operator
        """
        stmt = (
            self._base_query(operator_id)
            .where(ScheduledTour.id == scheduled_tour_id)
            .with_for_update(of=ScheduledTour)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        scheduled_tour = result.scalar_one_or_none()
        if not scheduled_tour:
            logger.warning(
                "Scheduled tour not found for locking",
                extra={"scheduled_tour_id": str(scheduled_tour_id), "operator_id": str(operator_id)}
            )
            raise NotFoundError(resource_type="scheduled tour", resource_id=str(scheduled_tour_id))
        return scheduled_tour
