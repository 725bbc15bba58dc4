"""Booking router for seat reservations."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import get_operator_id
from ..core.exceptions import InternalServerError, ProblemDetailsException
from ..schemas.booking import (
    Booking,
    BookingInventory,
    CreateBookingRequest,
    CreateBookingResponse,
    GetBookingRequest,
    ListBookingsRequest,
    ListBookingsResponse,
)
from ..services.booking_service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/booking", tags=["booking"])

# Define dependencies to avoid B008 linting errors
DB_DEPENDENCY = Depends(get_db)
OPERATOR_DEPENDENCY = Depends(get_operator_id)


def _convert_booking_to_schema(booking_model) -> Booking:
    """Convert booking model to schema."""
    return Booking(
        id=str(booking_model.id),
        scheduled_tour_id=str(booking_model.scheduled_tour_id),
        passenger_count=booking_model.passenger_count,
        customer_name=booking_model.customer_name,
        customer_email=booking_model.customer_email,
        created_at=booking_model.created_at,
    )


@router.post("/create", response_model=CreateBookingResponse, status_code=201)
async def create_booking(
    request: CreateBookingRequest,
    operator_id: UUID = OPERATOR_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """
    Reserve seats on a departure.

    Succeeds only when the vessel still has room for every passenger; the
    response carries the departure's inventory after the booking.
    """
    try:
        receipt = await BookingService(db).create_booking(operator_id, request)
        response_data = CreateBookingResponse(
            booking=_convert_booking_to_schema(receipt.booking),
            inventory=BookingInventory(
                seats_remaining=receipt.seats_remaining,
                total_capacity=receipt.total_capacity,
                seats_booked=receipt.seats_booked,
            ),
        )
        return JSONResponse(status_code=201, content=response_data.model_dump(mode="json"))

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in booking creation",
            extra={
                "scheduled_tour_id": str(request.scheduled_tour_id),
                "passenger_count": request.passenger_count,
                "error": str(e)
            },
            exc_info=True
        )
        raise InternalServerError() from e


@router.post("/get", response_model=Booking)
async def get_booking(
    request: GetBookingRequest,
    operator_id: UUID = OPERATOR_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """Get booking details."""
    try:
        booking = await BookingService(db).get_booking_by_id_or_raise(request.booking_id, operator_id)
        return JSONResponse(
            status_code=200,
            content=_convert_booking_to_schema(booking).model_dump(mode="json")
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in booking retrieval",
            extra={"booking_id": str(request.booking_id), "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e


@router.post("/list", response_model=ListBookingsResponse)
async def list_bookings(
    request: ListBookingsRequest,
    operator_id: UUID = OPERATOR_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """List the bookings of a departure."""
    try:
        bookings = await BookingService(db).list_bookings(operator_id, request.scheduled_tour_id)
        response_data = ListBookingsResponse(
            items=[_convert_booking_to_schema(booking) for booking in bookings]
        )
        return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error listing bookings",
            extra={"scheduled_tour_id": str(request.scheduled_tour_id), "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e
