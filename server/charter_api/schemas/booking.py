"""Booking-related Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class CreateBookingRequest(BaseModel):
    """Request schema for reserving seats on a departure."""

    scheduled_tour_id: UUID = Field(..., description="Departure to book")
    passenger_count: int = Field(..., ge=1, description="Seats to reserve")
    customer_name: str = Field(..., min_length=1, max_length=200, description="Lead passenger name")
    customer_email: EmailStr = Field(..., description="Lead passenger email")


class GetBookingRequest(BaseModel):
    """Request schema for getting a booking."""

    booking_id: UUID = Field(..., description="Booking to retrieve")


class ListBookingsRequest(BaseModel):
    """Request schema for listing the bookings of a departure."""

    scheduled_tour_id: UUID = Field(..., description="Departure whose bookings to list")


class Booking(BaseModel):
    """Booking response schema."""

    id: str = Field(..., description="Unique booking ID")
    scheduled_tour_id: str = Field(..., description="Booked departure")
    passenger_count: int = Field(..., ge=1, description="Seats reserved")
    customer_name: str = Field(..., description="Lead passenger name")
    customer_email: str = Field(..., description="Lead passenger email")
    created_at: datetime = Field(..., description="Booking time (ISO 8601)")

    class Config:
        from_attributes = True


class BookingInventory(BaseModel):
    """Departure inventory right after a booking commits."""

    seats_remaining: int = Field(..., ge=0, description="Seats still bookable")
    total_capacity: int = Field(..., ge=1, description="Vessel capacity")
    seats_booked: int = Field(..., ge=0, description="Seats booked including this booking")


class CreateBookingResponse(BaseModel):
    """Response schema for a created booking."""

    booking: Booking = Field(..., description="The new booking")
    inventory: BookingInventory = Field(..., description="Inventory after the booking")


class ListBookingsResponse(BaseModel):
    """Response schema for listing bookings."""

    items: list[Booking] = Field(..., description="Bookings ordered by creation time")
