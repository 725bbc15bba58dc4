"""Scheduled tour router for departure scheduling."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import get_operator_id
from ..core.exceptions import InternalServerError, ProblemDetailsException
from ..schemas.common import Problem
from ..schemas.scheduled_tour import (
    Availability,
    BulkCreateResult,
    BulkCreateScheduledToursRequest,
    BulkCreateScheduledToursResponse,
    CreateScheduledTourRequest,
    DeleteScheduledTourRequest,
    DeleteScheduledTourResponse,
    GetScheduledTourRequest,
    ScheduledTour,
    SearchScheduledToursRequest,
    SearchScheduledToursResponse,
    UpdateScheduledTourRequest,
)
from ..services.scheduling_service import SchedulingService, ScheduledTourView

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/scheduled-tour", tags=["scheduled-tour"])

# Define dependencies to avoid B008 linting errors
DB_DEPENDENCY = Depends(get_db)
OPERATOR_DEPENDENCY = Depends(get_operator_id)


def _convert_scheduled_tour_to_schema(view: ScheduledTourView) -> ScheduledTour:
    """Convert a departure view to schema."""
    scheduled_tour = view.scheduled_tour
    return ScheduledTour(
        id=str(scheduled_tour.id),
        tour_id=str(scheduled_tour.tour_id),
        tour_title=scheduled_tour.tour.title,
        vessel_id=str(scheduled_tour.vessel_id),
        vessel_name=scheduled_tour.vessel.name,
        start_time=scheduled_tour.starts_at,
        end_time=scheduled_tour.ends_at,
        duration_in_minutes=scheduled_tour.tour.duration_in_minutes,
        booking_count=view.booking_count,
        availability=Availability(
            capacity=view.availability.capacity,
            booked=view.availability.booked,
            available=view.availability.available,
            is_full=view.availability.is_full,
        ),
    )


@router.post("/create", response_model=ScheduledTour, status_code=201)
async def create_scheduled_tour(
    request: CreateScheduledTourRequest,
    operator_id: UUID = OPERATOR_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """
    Schedule a tour on a vessel.

    The start time must be in the future and the vessel must be free for
    the whole tour duration.
    """
    try:
        view = await SchedulingService(db).create_scheduled_tour(operator_id, request)
        return JSONResponse(
            status_code=201,
            content=_convert_scheduled_tour_to_schema(view).model_dump(mode="json")
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in scheduled tour creation",
            extra={
                "tour_id": str(request.tour_id),
                "vessel_id": str(request.vessel_id),
                "error": str(e)
            },
            exc_info=True
        )
        raise InternalServerError() from e


@router.post("/bulk-create", response_model=BulkCreateScheduledToursResponse)
async def bulk_create_scheduled_tours(
    request: BulkCreateScheduledToursRequest,
    operator_id: UUID = OPERATOR_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """
    Schedule several departures.

    Entries are processed in order, each in its own transaction; the
    response reports per entry whether it was scheduled or why not.
    """
    try:
        outcomes = await SchedulingService(db).bulk_create_scheduled_tours(operator_id, request.entries)

        results = [
            BulkCreateResult(
                index=outcome.index,
                success=outcome.view is not None,
                scheduled_tour=_convert_scheduled_tour_to_schema(outcome.view) if outcome.view else None,
                error=Problem.model_validate(outcome.error.problem_details) if outcome.error else None,
            )
            for outcome in outcomes
        ]
        created = sum(1 for result in results if result.success)
        response_data = BulkCreateScheduledToursResponse(
            created=created,
            failed=len(results) - created,
            results=results,
        )
        return JSONResponse(
            status_code=200,
            content=response_data.model_dump(mode="json", exclude_none=True)
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in bulk scheduling",
            extra={"operator_id": str(operator_id), "entries": len(request.entries), "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e


@router.post("/update", response_model=ScheduledTour)
async def update_scheduled_tour(
    request: UpdateScheduledTourRequest,
    operator_id: UUID = OPERATOR_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """
    Move a departure to another tour, vessel or start time.

    A new vessel must be able to carry the seats already booked.
    """
    try:
        view = await SchedulingService(db).update_scheduled_tour(operator_id, request)
        return JSONResponse(
            status_code=200,
            content=_convert_scheduled_tour_to_schema(view).model_dump(mode="json")
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in scheduled tour update",
            extra={"scheduled_tour_id": str(request.scheduled_tour_id), "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e


@router.post("/delete", response_model=DeleteScheduledTourResponse)
async def delete_scheduled_tour(
    request: DeleteScheduledTourRequest,
    operator_id: UUID = OPERATOR_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """Delete a departure that has no bookings."""
    try:
        deleted = await SchedulingService(db).delete_scheduled_tour(operator_id, request.scheduled_tour_id)
        response_data = DeleteScheduledTourResponse(
            id=str(deleted.id),
            message="Scheduled tour deleted successfully",
            tour_title=deleted.tour_title,
            start_time=deleted.start_time,
        )
        return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in scheduled tour deletion",
            extra={"scheduled_tour_id": str(request.scheduled_tour_id), "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e


@router.post("/get", response_model=ScheduledTour)
async def get_scheduled_tour(
    request: GetScheduledTourRequest,
    operator_id: UUID = OPERATOR_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """Get a departure with its current availability."""
    try:
        view = await SchedulingService(db).get_scheduled_tour(operator_id, request.scheduled_tour_id)
        return JSONResponse(
            status_code=200,
            content=_convert_scheduled_tour_to_schema(view).model_dump(mode="json")
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in scheduled tour retrieval",
            extra={"scheduled_tour_id": str(request.scheduled_tour_id), "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e


@router.post("/search", response_model=SearchScheduledToursResponse)
async def search_scheduled_tours(
    request: SearchScheduledToursRequest,
    operator_id: UUID = OPERATOR_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """Search departures by time range, vessel and tour."""
    try:
        views = await SchedulingService(db).search_scheduled_tours(operator_id, request)
        response_data = SearchScheduledToursResponse(
            items=[_convert_scheduled_tour_to_schema(view) for view in views]
        )
        return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in scheduled tour search",
            extra={"operator_id": str(operator_id), "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e
