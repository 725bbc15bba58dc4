"""Tour router for catalog management."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import get_operator_id
from ..core.exceptions import InternalServerError, ProblemDetailsException
from ..schemas.common import DeleteResponse
from ..schemas.tour import (
    CreateTourRequest,
    DeleteTourRequest,
    GetTourRequest,
    ListToursResponse,
    Tour,
    UpdateTourRequest,
)
from ..services.tour_service import TourService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/tour", tags=["tour"])

# Define dependencies to avoid B008 linting errors
DB_DEPENDENCY = Depends(get_db)
OPERATOR_DEPENDENCY = Depends(get_operator_id)


def _convert_tour_to_schema(tour_model, scheduled_tour_count: int = 0) -> Tour:
    """Convert tour model to schema."""
    return Tour(
        id=str(tour_model.id),
        operator_id=str(tour_model.operator_id),
        title=tour_model.title,
        description=tour_model.description,
        price=tour_model.price,
        duration_in_minutes=tour_model.duration_in_minutes,
        scheduled_tour_count=scheduled_tour_count,
        created_at=tour_model.created_at,
    )


@router.post("/create", response_model=Tour, status_code=201)
async def create_tour(
    request: CreateTourRequest,
    operator_id: UUID = OPERATOR_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """Add a tour to the operator's catalog."""
    try:
        tour = await TourService(db).create_tour(operator_id, request)
        return JSONResponse(
            status_code=201,
            content=_convert_tour_to_schema(tour).model_dump(mode="json")
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in tour creation",
            extra={"operator_id": str(operator_id), "title": request.title, "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e


@router.post("/update", response_model=Tour)
async def update_tour(
    request: UpdateTourRequest,
    operator_id: UUID = OPERATOR_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """
    Update a tour.

    A duration change is refused when re-timed departures would overlap
    other departures on the same vessel.
    """
    tour_service = TourService(db)
    try:
        tour = await tour_service.update_tour(operator_id, request)
        scheduled = await tour_service.count_scheduled_tours(tour.id)
        return JSONResponse(
            status_code=200,
            content=_convert_tour_to_schema(tour, scheduled).model_dump(mode="json")
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in tour update",
            extra={"tour_id": str(request.tour_id), "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e


@router.post("/get", response_model=Tour)
async def get_tour(
    request: GetTourRequest,
    operator_id: UUID = OPERATOR_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """Get one of the operator's tours."""
    tour_service = TourService(db)
    try:
        tour = await tour_service.get_tour_by_id_or_raise(request.tour_id, operator_id)
        scheduled = await tour_service.count_scheduled_tours(tour.id)
        return JSONResponse(
            status_code=200,
            content=_convert_tour_to_schema(tour, scheduled).model_dump(mode="json")
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in tour retrieval",
            extra={"tour_id": str(request.tour_id), "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e


@router.post("/list", response_model=ListToursResponse)
async def list_tours(
    operator_id: UUID = OPERATOR_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """List the operator's catalog."""
    try:
        rows = await TourService(db).list_tours(operator_id)
        response_data = ListToursResponse(
            items=[_convert_tour_to_schema(tour, scheduled) for tour, scheduled in rows]
        )
        return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error listing tours",
            extra={"operator_id": str(operator_id), "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e


@router.post("/delete", response_model=DeleteResponse)
async def delete_tour(
    request: DeleteTourRequest,
    operator_id: UUID = OPERATOR_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """Delete a tour with no scheduled departures."""
    try:
        tour = await TourService(db).delete_tour(operator_id, request.tour_id)
        response_data = DeleteResponse(
            id=str(request.tour_id),
            message=f'Tour "{tour.title}" deleted',
        )
        return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in tour deletion",
            extra={"tour_id": str(request.tour_id), "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e
