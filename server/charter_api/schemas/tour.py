"""Tour-related Pydantic schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from ..models.tour import MAX_DURATION_MINUTES, MIN_DURATION_MINUTES

MAX_TOUR_PRICE = Decimal("10000")


class CreateTourRequest(BaseModel):
    """Request schema for creating a tour."""

    title: str = Field(..., min_length=1, max_length=200, description="Tour title, unique per operator")
    description: str | None = Field(None, max_length=1000, description="Tour description")
    price: Decimal = Field(..., ge=0, le=MAX_TOUR_PRICE, max_digits=10, decimal_places=2, description="Price per passenger")
    duration_in_minutes: int = Field(
        ...,
        ge=MIN_DURATION_MINUTES,
        le=MAX_DURATION_MINUTES,
        description="Length of each departure in minutes"
    )


class UpdateTourRequest(BaseModel):
    """Request schema for updating a tour; omitted fields are left unchanged."""

    tour_id: UUID = Field(..., description="Tour to update")
    title: str | None = Field(None, min_length=1, max_length=200, description="Tour title")
    description: str | None = Field(None, max_length=1000, description="Tour description")
    price: Decimal | None = Field(None, ge=0, le=MAX_TOUR_PRICE, max_digits=10, decimal_places=2, description="Price per passenger")
    duration_in_minutes: int | None = Field(
        None,
        ge=MIN_DURATION_MINUTES,
        le=MAX_DURATION_MINUTES,
        description="Length of each departure in minutes"
    )


class GetTourRequest(BaseModel):
    """Request schema for getting a tour."""

    tour_id: UUID = Field(..., description="Tour to retrieve")


class DeleteTourRequest(BaseModel):
    """Request schema for deleting a tour."""

    tour_id: UUID = Field(..., description="Tour to delete")


class Tour(BaseModel):
    """Tour response schema."""

    id: str = Field(..., description="Unique tour ID")
    operator_id: str = Field(..., description="Owning operator ID")
    title: str = Field(..., description="Tour title")
    description: str | None = Field(None, description="Tour description")
    price: Decimal = Field(..., description="Price per passenger")
    duration_in_minutes: int = Field(..., description="Length of each departure in minutes")
    scheduled_tour_count: int = Field(0, ge=0, description="Departures scheduled for this tour")
    created_at: datetime = Field(..., description="Creation time (ISO 8601)")

    class Config:
        from_attributes = True


class ListToursResponse(BaseModel):
    """Response schema for listing tours."""

    items: list[Tour] = Field(..., description="Tours ordered by title")
