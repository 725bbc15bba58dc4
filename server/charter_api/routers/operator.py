"""Operator router for tenant management."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.exceptions import InternalServerError, ProblemDetailsException
from ..schemas.common import DeleteResponse
from ..schemas.operator import (
    CreateOperatorRequest,
    DeleteOperatorRequest,
    GetOperatorRequest,
    ListOperatorsResponse,
    Operator,
    UpdateOperatorRequest,
)
from ..services.operator_service import OperatorService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/operator", tags=["operator"])

# Define dependencies to avoid B008 linting errors
DB_DEPENDENCY = Depends(get_db)


def _convert_operator_to_schema(operator_model) -> Operator:
    """Convert operator model to schema."""
    return Operator(
        id=str(operator_model.id),
        name=operator_model.name,
        slug=operator_model.slug,
        email=operator_model.email,
        phone=operator_model.phone,
        address=operator_model.address,
        created_at=operator_model.created_at,
    )


@router.post("/create", response_model=Operator, status_code=201)
async def create_operator(
    request: CreateOperatorRequest,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """Register a new operator; its slug is derived from the name."""
    try:
        operator = await OperatorService(db).create_operator(request)
        return JSONResponse(
            status_code=201,
            content=_convert_operator_to_schema(operator).model_dump(mode="json")
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in operator creation",
            extra={"operator_name": request.name, "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e


@router.post("/update", response_model=Operator)
async def update_operator(
    request: UpdateOperatorRequest,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """Update an operator's details."""
    try:
        operator = await OperatorService(db).update_operator(request)
        return JSONResponse(
            status_code=200,
            content=_convert_operator_to_schema(operator).model_dump(mode="json")
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in operator update",
            extra={"operator_id": str(request.operator_id), "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e


@router.post("/get", response_model=Operator)
async def get_operator(
    request: GetOperatorRequest,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """Get an operator by ID or slug."""
    operator_service = OperatorService(db)
    try:
        if request.operator_id is not None:
            operator = await operator_service.get_operator_by_id_or_raise(request.operator_id)
        else:
            operator = await operator_service.get_operator_by_slug_or_raise(request.slug)

        return JSONResponse(
            status_code=200,
            content=_convert_operator_to_schema(operator).model_dump(mode="json")
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in operator retrieval",
            extra={"error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e


@router.post("/list", response_model=ListOperatorsResponse)
async def list_operators(db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    """List all operators."""
    try:
        operators = await OperatorService(db).list_operators()
        response_data = ListOperatorsResponse(
            items=[_convert_operator_to_schema(operator) for operator in operators]
        )
        return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error("Unexpected error listing operators", extra={"error": str(e)}, exc_info=True)
        raise InternalServerError() from e


@router.post("/delete", response_model=DeleteResponse)
async def delete_operator(
    request: DeleteOperatorRequest,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """Delete an operator and everything it owns."""
    try:
        operator = await OperatorService(db).delete_operator(request.operator_id)
        response_data = DeleteResponse(
            id=str(request.operator_id),
            message=f'Operator "{operator.name}" deleted',
        )
        return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in operator deletion",
            extra={"operator_id": str(request.operator_id), "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e
