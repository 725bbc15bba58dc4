"""Vessel service for fleet management."""

import logging
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import CannotDeleteError, ConflictError, NotFoundError
from ..core.unit_of_work import unit_of_work
from ..models.scheduled_tour import ScheduledTour
from ..models.vessel import Vessel
from ..schemas.vessel import CreateVesselRequest, UpdateVesselRequest
from .capacity_guard import CapacityGuard

logger = logging.getLogger(__name__)


class VesselService:
    """Service for vessel-related operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.capacity_guard = CapacityGuard(db)

    async def _ensure_name_free(self, operator_id: UUID, name: str, exclude_vessel_id: UUID | None = None) -> None:
        stmt = select(Vessel.id).where(Vessel.operator_id == operator_id, Vessel.name == name)
        if exclude_vessel_id is not None:
            stmt = stmt.where(Vessel.id != exclude_vessel_id)
        result = await self.db.execute(stmt)
        if result.scalar_one_or_none() is not None:
            logger.warning(
                "Vessel name already in use",
                extra={"operator_id": str(operator_id), "vessel_name": name}
            )
            raise ConflictError(detail=f'A vessel named "{name}" already exists')

    async def count_scheduled_tours(self, vessel_id: UUID) -> int:
        """Number of departures scheduled on the vessel."""
        stmt = select(func.count(ScheduledTour.id)).where(ScheduledTour.vessel_id == vessel_id)
        result = await self.db.execute(stmt)
        return int(result.scalar_one())

    async def create_vessel(self, operator_id: UUID, request: CreateVesselRequest) -> Vessel:
        """
        Add a vessel to the operator's fleet.

        Raises:
            ConflictError: If the operator already has a vessel with that name
        """
        async with unit_of_work(self.db):
            name = request.name.strip()
            await self._ensure_name_free(operator_id, name)

            vessel = Vessel(
                operator_id=operator_id,
                name=name,
                vessel_type=request.vessel_type,
                capacity=request.capacity,
            )
            self.db.add(vessel)
            await self.db.flush()

        await self.db.refresh(vessel)

        logger.info(
            "Vessel created successfully",
            extra={
                "vessel_id": str(vessel.id),
                "operator_id": str(operator_id),
                "capacity": vessel.capacity
            }
        )
        return vessel

    async def update_vessel(self, operator_id: UUID, request: UpdateVesselRequest) -> Vessel:
        """
        Update a vessel under a row lock.

        Shrinking capacity is checked against every upcoming departure so no
        existing booking ends up oversold.

        Raises:
            NotFoundError: If the vessel does not exist for the operator
            ConflictError: If the new name is taken
            CapacityExceededError: If an upcoming departure holds more seats than the new capacity
        """
        async with unit_of_work(self.db):
            vessel = await self.get_vessel_with_lock(request.vessel_id, operator_id)

            if request.name is not None and request.name.strip() != vessel.name:
                name = request.name.strip()
                await self._ensure_name_free(operator_id, name, exclude_vessel_id=vessel.id)
                vessel.name = name

            if request.vessel_type is not None:
                vessel.vessel_type = request.vessel_type

            if request.capacity is not None and request.capacity != vessel.capacity:
                await self.capacity_guard.ensure_capacity_reduction_allowed(vessel, request.capacity)
                vessel.capacity = request.capacity

        await self.db.refresh(vessel)

        logger.info(
            "Vessel updated successfully",
            extra={"vessel_id": str(vessel.id), "capacity": vessel.capacity}
        )
        return vessel

    async def delete_vessel(self, operator_id: UUID, vessel_id: UUID) -> Vessel:
        """
        Remove a vessel that has nothing scheduled on it.

        Raises:
            NotFoundError: If the vessel does not exist for the operator
            CannotDeleteError: If departures are still scheduled on it
        """
        async with unit_of_work(self.db):
            vessel = await self.get_vessel_with_lock(vessel_id, operator_id)

            scheduled = await self.count_scheduled_tours(vessel.id)
            if scheduled > 0:
                logger.warning(
                    "Vessel deletion blocked by scheduled tours",
                    extra={"vessel_id": str(vessel_id), "scheduled_tours": scheduled}
                )
                raise CannotDeleteError(
                    resource_type="vessel",
                    resource_id=str(vessel_id),
                    detail=(
                        f"Cannot delete vessel: {scheduled} scheduled tour(s) use it. "
                        "Please delete or reassign them first."
                    ),
                    counts={"scheduled_tours": scheduled},
                )

            await self.db.delete(vessel)

        logger.info("Vessel deleted", extra={"vessel_id": str(vessel_id)})
        return vessel

    async def list_vessels(self, operator_id: UUID) -> list[tuple[Vessel, int]]:
        """Operator's vessels ordered by name, each with its scheduled-tour count."""
        counts = (
            select(ScheduledTour.vessel_id, func.count(ScheduledTour.id).label("scheduled"))
            .group_by(ScheduledTour.vessel_id)
            .subquery()
        )
        stmt = (
            select(Vessel, func.coalesce(counts.c.scheduled, 0))
            .outerjoin(counts, counts.c.vessel_id == Vessel.id)
            .where(Vessel.operator_id == operator_id)
            .order_by(Vessel.name)
        )
        result = await self.db.execute(stmt)
        return [(vessel, int(scheduled)) for vessel, scheduled in result.all()]

    async def get_vessel_by_id(self, vessel_id: UUID, operator_id: UUID) -> Vessel | None:
        """
        Get an operator's vessel by ID.

        Args:
            vessel_id: Vessel ID to search for
            operator_id: Owning operator

        Returns:
            Vessel if found, None otherwise
        """
        stmt = select(Vessel).where(Vessel.id == vessel_id, Vessel.operator_id == operator_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_vessel_by_id_or_raise(self, vessel_id: UUID, operator_id: UUID) -> Vessel:
        """
        Get an operator's vessel by ID or raise NotFoundError.

        Raises:
            NotFoundError: If vessel not found
        """
        vessel = await self.get_vessel_by_id(vessel_id, operator_id)
        if not vessel:
            logger.warning(
                "Vessel not found",
                extra={"vessel_id": str(vessel_id), "operator_id": str(operator_id)}
            )
            raise NotFoundError(resource_type="vessel", resource_id=str(vessel_id))
        return vessel

    async def get_vessel_with_lock(self, vessel_id: UUID, operator_id: UUID, shared: bool = False) -> Vessel:
        """
        Get an operator's vessel with a row lock held until the transaction ends.

        Args:
            vessel_id: Vessel to lock
            operator_id: Owning operator
            shared: Take FOR SHARE instead of FOR UPDATE

        Returns:
            Locked vessel entity

        Raises:
            NotFoundError: If vessel not found
        """
        stmt = (
            select(Vessel)
            .where(Vessel.id == vessel_id, Vessel.operator_id == operator_id)
            .with_for_update(read=shared)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        vessel = result.scalar_one_or_none()
        if not vessel:
            logger.warning(
                "Vessel not found for locking",
                extra={"vessel_id": str(vessel_id), "operator_id": str(operator_id)}
            )
            raise NotFoundError(resource_type="vessel", resource_id=str(vessel_id))
        return vessel
