"""Tour service for catalog operations."""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import CannotDeleteError, ConflictError, NotFoundError, SchedulingConflictError
from ..core.observability import metrics_collector
from ..core.unit_of_work import unit_of_work
from ..models.scheduled_tour import ScheduledTour
from ..models.tour import Tour
from ..models.vessel import Vessel
from ..schemas.tour import CreateTourRequest, UpdateTourRequest
from .overlap_detector import OverlapDetector

logger = logging.getLogger(__name__)


class TourService:
    """Service for tour-related operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.overlap_detector = OverlapDetector(db)

    async def _ensure_title_free(self, operator_id: UUID, title: str, exclude_tour_id: UUID | None = None) -> None:
        stmt = select(Tour).where(Tour.operator_id == operator_id, Tour.title == title)
        if exclude_tour_id is not None:
            stmt = stmt.where(Tour.id != exclude_tour_id)
        result = await self.db.execute(stmt)
        existing_tour = result.scalar_one_or_none()
        if existing_tour:
            logger.warning(
                "Tour title already exists",
                extra={
                    "title": title,
                    "existing_tour_id": str(existing_tour.id)
                }
            )
            raise ConflictError(
                detail=f'A tour titled "{title}" already exists',
                conflicting_resource={
                    "id": str(existing_tour.id),
                    "title": existing_tour.title
                }
            )

    async def count_scheduled_tours(self, tour_id: UUID) -> int:
        """Number of departures scheduled for the tour."""
        stmt = select(func.count(ScheduledTour.id)).where(ScheduledTour.tour_id == tour_id)
        result = await self.db.execute(stmt)
        return int(result.scalar_one())

    async def create_tour(self, operator_id: UUID, request: CreateTourRequest) -> Tour:
        """
        Create a new tour.

        Args:
            operator_id: Owning operator
            request: Tour creation request

        Returns:
            Created tour entity

        Raises:
            ConflictError: If the operator already has a tour with the same title
        """
        async with unit_of_work(self.db):
            title = request.title.strip()
            await self._ensure_title_free(operator_id, title)

            tour = Tour(
                operator_id=operator_id,
                title=title,
                description=request.description,
                price=request.price,
                duration_in_minutes=request.duration_in_minutes,
            )
            self.db.add(tour)
            await self.db.flush()

        await self.db.refresh(tour)

        logger.info(
            "Tour created successfully",
            extra={
                "tour_id": str(tour.id),
                "operator_id": str(operator_id),
                "duration_in_minutes": tour.duration_in_minutes
            }
        )

        return tour

    async def _lock_vessels_for_tour(self, tour_id: UUID) -> None:
        # Ascending id order so concurrent edits never lock vessels in opposite orders.
        vessel_ids = select(ScheduledTour.vessel_id).where(ScheduledTour.tour_id == tour_id)
        stmt = (
            select(Vessel.id)
            .where(Vessel.id.in_(vessel_ids))
            .order_by(Vessel.id)
            .with_for_update()
        )
        await self.db.execute(stmt)

    async def update_tour(self, operator_id: UUID, request: UpdateTourRequest) -> Tour:
        """
        Update a tour.

        A duration change re-times every departure of the tour, so it is
        checked for vessel double-booking with the tour row and the affected
        vessels locked.

        Raises:
            NotFoundError: If the tour does not exist for the operator
            ConflictError: If the new title is taken
            SchedulingConflictError: If the new duration would overlap another departure
        """
        async with unit_of_work(self.db):
            tour = await self.get_tour_with_lock(request.tour_id, operator_id)

            if request.title is not None and request.title.strip() != tour.title:
                title = request.title.strip()
                await self._ensure_title_free(operator_id, title, exclude_tour_id=tour.id)
                tour.title = title

            if request.description is not None:
                tour.description = request.description
            if request.price is not None:
                tour.price = request.price

            if (
                request.duration_in_minutes is not None
                and request.duration_in_minutes != tour.duration_in_minutes
            ):
                await self._lock_vessels_for_tour(tour.id)
                found = await self.overlap_detector.find_duration_change_conflict(
                    tour.id, request.duration_in_minutes
                )
                if found is not None:
                    departure, conflict = found
                    vessel = await self.db.get(Vessel, departure.vessel_id)
                    logger.warning(
                        "Tour duration change rejected - would double-book a vessel",
                        extra={
                            "tour_id": str(tour.id),
                            "new_duration": request.duration_in_minutes,
                            "scheduled_tour_id": str(departure.id),
                            "conflicting_scheduled_tour_id": str(conflict.scheduled_tour_id),
                        }
                    )
                    metrics_collector.record_scheduling_conflict("duration_change")
                    raise SchedulingConflictError(
                        vessel_name=vessel.name,
                        conflicting_scheduled_tour_id=str(conflict.scheduled_tour_id),
                        conflicting_tour_title=conflict.tour_title,
                        conflicting_start=conflict.window.start,
                        conflicting_end=conflict.window.end,
                    )
                tour.duration_in_minutes = request.duration_in_minutes

        await self.db.refresh(tour)

        logger.info("Tour updated successfully", extra={"tour_id": str(tour.id)})
        return tour

    async def delete_tour(self, operator_id: UUID, tour_id: UUID) -> Tour:
        """
        Remove a tour that has no scheduled departures.

        Raises:
            NotFoundError: If the tour does not exist for the operator
            CannotDeleteError: If departures of the tour are still scheduled
        """
        async with unit_of_work(self.db):
            tour = await self.get_tour_by_id_or_raise(tour_id, operator_id)

            scheduled = await self.count_scheduled_tours(tour.id)
            if scheduled > 0:
                logger.warning(
                    "Tour deletion blocked by scheduled tours",
                    extra={"tour_id": str(tour_id), "scheduled_tours": scheduled}
                )
                raise CannotDeleteError(
                    resource_type="tour",
                    resource_id=str(tour_id),
                    detail=(
                        f"Cannot delete tour: {scheduled} scheduled departure(s) exist. "
                        "Please delete them first."
                    ),
                    counts={"scheduled_tours": scheduled},
                )

            await self.db.delete(tour)

        logger.info("Tour deleted", extra={"tour_id": str(tour_id)})
        return tour

    async def list_tours(self, operator_id: UUID) -> list[tuple[Tour, int]]:
        """Operator's tours ordered by title, each with its scheduled-tour count."""
        counts = (
            select(ScheduledTour.tour_id, func.count(ScheduledTour.id).label("scheduled"))
            .group_by(ScheduledTour.tour_id)
            .subquery()
        )
        stmt = (
            select(Tour, func.coalesce(counts.c.scheduled, 0))
            .outerjoin(counts, counts.c.tour_id == Tour.id)
            .where(Tour.operator_id == operator_id)
            .order_by(Tour.title)
        )
        result = await self.db.execute(stmt)
        return [(tour, int(scheduled)) for tour, scheduled in result.all()]

    async def get_tour_by_id(self, tour_id: UUID, operator_id: UUID) -> Optional[Tour]:
        """
        Get an operator's tour by ID.

        Args:
            tour_id: Tour ID to search for
            operator_id: Owning operator

        Returns:
            Tour if found, None otherwise
        """
        stmt = select(Tour).where(Tour.id == tour_id, Tour.operator_id == operator_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_tour_by_id_or_raise(self, tour_id: UUID, operator_id: UUID) -> Tour:
        """
        Get an operator's tour by ID or raise NotFoundError.

        Raises:
            NotFoundError: If tour not found
        """
        tour = await self.get_tour_by_id(tour_id, operator_id)
        if not tour:
            logger.warning(
                "Tour not found",
                extra={"tour_id": str(tour_id), "operator_id": str(operator_id)}
            )
            raise NotFoundError(
                resource_type="tour",
                resource_id=str(tour_id)
            )
        return tour

    async def get_tour_with_lock(self, tour_id: UUID, operator_id: UUID, shared: bool = False) -> Tour:
        """
        Get an operator's tour with a row lock held until the transaction ends.

        Departure create and update take it shared; tour updates take it
        exclusive before re-timing departures.

        Args:
            tour_id: Tour to lock
            operator_id: Owning operator
            shared: Take FOR SHARE instead of FOR UPDATE

        Raises:
            NotFoundError: If tour not found
        """
        stmt = (
            select(Tour)
            .where(Tour.id == tour_id, Tour.operator_id == operator_id)
            .with_for_update(read=shared)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        tour = result.scalar_one_or_none()
        if not tour:
            logger.warning(
                "Tour not found for locking",
                extra={"tour_id": str(tour_id), "operator_id": str(operator_id)}
            )
            raise NotFoundError(resource_type="tour", resource_id=str(tour_id))
        return tour
