"""Overlap detection for departures that share a vessel."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..core.clock import ensure_utc
from ..core.exceptions import SchedulingConflictError
from ..core.observability import metrics_collector
from ..models.scheduled_tour import ScheduledTour
from ..models.tour import MAX_DURATION_MINUTES
from ..models.vessel import Vessel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimeWindow:
    """Half-open interval [start, end) occupied by a departure."""

    start: datetime
    end: datetime

    @classmethod
    def from_duration(cls, start: datetime, duration_minutes: int) -> "TimeWindow":
        start = ensure_utc(start)
        return cls(start=start, end=start + timedelta(minutes=duration_minutes))

    def overlaps(self, other: "TimeWindow") -> bool:
        return windows_overlap(self.start, self.end, other.start, other.end)


def windows_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """True when [a_start, a_end) and [b_start, b_end) share any instant; touching ends do not."""
    return a_start < b_end and a_end > b_start


@dataclass(frozen=True)
class ScheduleConflict:
    """An existing departure whose window collides with a candidate window."""

    scheduled_tour_id: UUID
    tour_title: str
    window: TimeWindow
    vessel_id: UUID


class OverlapDetector:
    """
    Finds departures on the same vessel whose windows overlap a candidate.

    Callers run these checks inside their unit of work after locking the
    vessel row, so no competing departure can be inserted between the
    check and the write.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _load_vessel_departures(
        self,
        vessel_id: UUID,
        range_start: datetime,
        range_end: datetime,
    ) -> list[ScheduledTour]:
        # No tour runs longer than MAX_DURATION_MINUTES, so anything starting
        # earlier than that before range_start has already ended.
        lower_bound = range_start - timedelta(minutes=MAX_DURATION_MINUTES)
        stmt = (
            select(ScheduledTour)
            .options(selectinload(ScheduledTour.tour))
            .where(
                ScheduledTour.vessel_id == vessel_id,
                ScheduledTour.start_time >= lower_bound,
                ScheduledTour.start_time < range_end,
            )
            .order_by(ScheduledTour.start_time)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars())

    async def find_conflict(
        self,
        vessel_id: UUID,
        candidate_start: datetime,
        duration_minutes: int,
        exclude_scheduled_tour_id: UUID | None = None,
    ) -> ScheduleConflict | None:
        """
        Find the earliest departure on the vessel overlapping the candidate window.

        Args:
            vessel_id: Vessel the candidate would run on
            candidate_start: Candidate start time
            duration_minutes: Candidate duration
            exclude_scheduled_tour_id: Departure being edited, ignored in the scan

        Returns:
            The first conflict found, or None
        """
        candidate = TimeWindow.from_duration(candidate_start, duration_minutes)
        departures = await self._load_vessel_departures(vessel_id, candidate.start, candidate.end)

        for departure in departures:
            if departure.id == exclude_scheduled_tour_id:
                continue
            existing = TimeWindow.from_duration(departure.start_time, departure.tour.duration_in_minutes)
            if existing.overlaps(candidate):
                return ScheduleConflict(
                    scheduled_tour_id=departure.id,
                    tour_title=departure.tour.title,
                    window=existing,
                    vessel_id=vessel_id,
                )

        return None

    async def ensure_no_conflict(
        self,
        vessel: Vessel,
        candidate_start: datetime,
        duration_minutes: int,
        exclude_scheduled_tour_id: UUID | None = None,
        operation: str = "create",
    ) -> None:
        """
        Raise SchedulingConflictError when the candidate window collides.

        Raises:
            SchedulingConflictError: If another departure on the vessel overlaps
        """
        conflict = await self.find_conflict(
            vessel.id,
            candidate_start,
            duration_minutes,
            exclude_scheduled_tour_id=exclude_scheduled_tour_id,
        )
        if conflict is None:
            return

        logger.warning(
            "Scheduling conflict detected",
            extra={
                "vessel_id": str(vessel.id),
                "candidate_start": ensure_utc(candidate_start).isoformat(),
                "duration_minutes": duration_minutes,
                "conflicting_scheduled_tour_id": str(conflict.scheduled_tour_id),
                "operation": operation,
            }
        )
        metrics_collector.record_scheduling_conflict(operation)
        raise SchedulingConflictError(
            vessel_name=vessel.name,
            conflicting_scheduled_tour_id=str(conflict.scheduled_tour_id),
            conflicting_tour_title=conflict.tour_title,
            conflicting_start=conflict.window.start,
            conflicting_end=conflict.window.end,
        )

    async def find_duration_change_conflict(
        self,
        tour_id: UUID,
        new_duration_minutes: int,
    ) -> tuple[ScheduledTour, ScheduleConflict] | None:
        """
        Check whether re-timing every departure of a tour would double-book a vessel.

        Each departure of the tour is stretched (or shortened) to the new
        duration and compared with every other departure on its vessel,
        including sibling departures of the same tour.

        Returns:
            The affected departure and its conflict, or None
        """
        stmt = (
            select(ScheduledTour)
            .where(ScheduledTour.tour_id == tour_id)
            .order_by(ScheduledTour.vessel_id, ScheduledTour.start_time)
        )
        result = await self.db.execute(stmt)
        own_departures = list(result.scalars())
        if not own_departures:
            return None

        by_vessel: dict[UUID, list[ScheduledTour]] = {}
        for departure in own_departures:
            by_vessel.setdefault(departure.vessel_id, []).append(departure)

        for vessel_id, departures in by_vessel.items():
            range_start = min(ensure_utc(d.start_time) for d in departures)
            range_end = max(
                ensure_utc(d.start_time) + timedelta(minutes=new_duration_minutes) for d in departures
            )
            neighbours = await self._load_vessel_departures(vessel_id, range_start, range_end)

            windows = [
                (
                    other,
                    TimeWindow.from_duration(
                        other.start_time,
                        new_duration_minutes if other.tour_id == tour_id else other.tour.duration_in_minutes,
                    ),
                )
                for other in neighbours
            ]

            for departure in departures:
                candidate = TimeWindow.from_duration(departure.start_time, new_duration_minutes)
                for other, window in windows:
                    if other.id == departure.id:
                        continue
                    if candidate.overlaps(window):
                        return departure, ScheduleConflict(
                            scheduled_tour_id=other.id,
                            tour_title=other.tour.title,
                            window=window,
                            vessel_id=vessel_id,
                        )

        return None
