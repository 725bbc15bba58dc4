"""Vessel router for fleet management."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import get_operator_id
from ..core.exceptions import InternalServerError, ProblemDetailsException
from ..schemas.common import DeleteResponse
from ..schemas.vessel import (
    CreateVesselRequest,
    DeleteVesselRequest,
    GetVesselRequest,
    ListVesselsResponse,
    UpdateVesselRequest,
    Vessel,
)
from ..services.vessel_service import VesselService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/vessel", tags=["vessel"])

# Define dependencies to avoid B008 linting errors
DB_DEPENDENCY = Depends(get_db)
OPERATOR_DEPENDENCY = Depends(get_operator_id)


def _convert_vessel_to_schema(vessel_model, scheduled_tour_count: int = 0) -> Vessel:
    """Convert vessel model to schema."""
    return Vessel(
        id=str(vessel_model.id),
        operator_id=str(vessel_model.operator_id),
        name=vessel_model.name,
        vessel_type=vessel_model.vessel_type,
        capacity=vessel_model.capacity,
        scheduled_tour_count=scheduled_tour_count,
        created_at=vessel_model.created_at,
    )


@router.post("/create", response_model=Vessel, status_code=201)
async def create_vessel(
    request: CreateVesselRequest,
    operator_id: UUID = OPERATOR_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """Add a vessel to the operator's fleet."""
    try:
        vessel = await VesselService(db).create_vessel(operator_id, request)
        return JSONResponse(
            status_code=201,
            content=_convert_vessel_to_schema(vessel).model_dump(mode="json")
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in vessel creation",
            extra={"operator_id": str(operator_id), "vessel_name": request.name, "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e


@router.post("/update", response_model=Vessel)
async def update_vessel(
    request: UpdateVesselRequest,
    operator_id: UUID = OPERATOR_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """
    Update a vessel.

    Lowering capacity is refused while any upcoming departure on the vessel
    holds more bookings than the new capacity.
    """
    vessel_service = VesselService(db)
    try:
        vessel = await vessel_service.update_vessel(operator_id, request)
        scheduled = await vessel_service.count_scheduled_tours(vessel.id)
        return JSONResponse(
            status_code=200,
            content=_convert_vessel_to_schema(vessel, scheduled).model_dump(mode="json")
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in vessel update",
            extra={"vessel_id": str(request.vessel_id), "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e


@router.post("/get", response_model=Vessel)
async def get_vessel(
    request: GetVesselRequest,
    operator_id: UUID = OPERATOR_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """Get one of the operator's vessels."""
    vessel_service = VesselService(db)
    try:
        vessel = await vessel_service.get_vessel_by_id_or_raise(request.vessel_id, operator_id)
        scheduled = await vessel_service.count_scheduled_tours(vessel.id)
        return JSONResponse(
            status_code=200,
            content=_convert_vessel_to_schema(vessel, scheduled).model_dump(mode="json")
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in vessel retrieval",
            extra={"vessel_id": str(request.vessel_id), "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e


@router.post("/list", response_model=ListVesselsResponse)
async def list_vessels(
    operator_id: UUID = OPERATOR_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """List the operator's fleet."""
    try:
        rows = await VesselService(db).list_vessels(operator_id)
        response_data = ListVesselsResponse(
            items=[_convert_vessel_to_schema(vessel, scheduled) for vessel, scheduled in rows]
        )
        return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error listing vessels",
            extra={"operator_id": str(operator_id), "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e


@router.post("/delete", response_model=DeleteResponse)
async def delete_vessel(
    request: DeleteVesselRequest,
    operator_id: UUID = OPERATOR_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """Delete a vessel with nothing scheduled on it."""
    try:
        vessel = await VesselService(db).delete_vessel(operator_id, request.vessel_id)
        response_data = DeleteResponse(
            id=str(request.vessel_id),
            message=f'Vessel "{vessel.name}" deleted',
        )
        return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in vessel deletion",
            extra={"vessel_id": str(request.vessel_id), "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e
