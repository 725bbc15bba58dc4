"""Scheduled tour (departure) Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from .common import Problem


class CreateScheduledTourRequest(BaseModel):
    """Request schema for scheduling a tour on a vessel."""

    tour_id: UUID = Field(..., description="Tour to run")
    vessel_id: UUID = Field(..., description="Vessel to run it on")
    start_time: datetime = Field(..., description="Departure start time (ISO 8601, naive means UTC)")


class BulkCreateScheduledToursRequest(BaseModel):
    """Request schema for scheduling several departures; each entry commits on its own."""

    entries: list[CreateScheduledTourRequest] = Field(..., min_length=1, max_length=100, description="Departures to schedule")


class UpdateScheduledTourRequest(BaseModel):
    """Request schema for rescheduling a departure; omitted fields are left unchanged."""

    scheduled_tour_id: UUID = Field(..., description="Departure to update")
    tour_id: UUID | None = Field(None, description="New tour")
    vessel_id: UUID | None = Field(None, description="New vessel")
    start_time: datetime | None = Field(None, description="New start time (ISO 8601)")


class GetScheduledTourRequest(BaseModel):
    """Request schema for getting a departure."""

    scheduled_tour_id: UUID = Field(..., description="Departure to retrieve")


class DeleteScheduledTourRequest(BaseModel):
    """Request schema for deleting a departure."""

    scheduled_tour_id: UUID = Field(..., description="Departure to delete")


class SearchScheduledToursRequest(BaseModel):
    """Request schema for searching departures."""

    start_from: datetime | None = Field(None, description="Only departures starting at or after this time")
    start_to: datetime | None = Field(None, description="Only departures starting before this time")
    vessel_id: UUID | None = Field(None, description="Filter by vessel")
    tour_id: UUID | None = Field(None, description="Filter by tour")
    available_only: bool = Field(False, description="Only departures with seats left")
    limit: int = Field(100, ge=1, le=500, description="Maximum results")

    @model_validator(mode="after")
    def check_range(self) -> "SearchScheduledToursRequest":
        if self.start_from and self.start_to and self.start_to <= self.start_from:
            raise ValueError("start_to must be after start_from")
        return self


class Availability(BaseModel):
    """Seat availability of one departure."""

    capacity: int = Field(..., ge=1, description="Vessel capacity")
    booked: int = Field(..., ge=0, description="Seats already booked")
    available: int = Field(..., ge=0, description="Seats still bookable")
    is_full: bool = Field(..., description="True when no seats remain")


class ScheduledTour(BaseModel):
    """Departure response schema."""

    id: str = Field(..., description="Unique departure ID")
    tour_id: str = Field(..., description="Tour being run")
    tour_title: str = Field(..., description="Title of the tour")
    vessel_id: str = Field(..., description="Vessel assigned")
    vessel_name: str = Field(..., description="Name of the vessel")
    start_time: datetime = Field(..., description="Start time (UTC, ISO 8601)")
    end_time: datetime = Field(..., description="Effective end time (UTC, ISO 8601)")
    duration_in_minutes: int = Field(..., description="Tour duration")
    booking_count: int = Field(..., ge=0, description="Number of bookings")
    availability: Availability = Field(..., description="Seat availability")

    class Config:
        from_attributes = True


class SearchScheduledToursResponse(BaseModel):
    """Response schema for departure search."""

    items: list[ScheduledTour] = Field(..., description="Departures ordered by start time")


class BulkCreateResult(BaseModel):
    """Outcome of one bulk-create entry."""

    index: int = Field(..., ge=0, description="Position of the entry in the request")
    success: bool = Field(..., description="Whether the departure was scheduled")
    scheduled_tour: ScheduledTour | None = Field(None, description="Created departure")
    error: Problem | None = Field(None, description="Problem details when the entry failed")


class BulkCreateScheduledToursResponse(BaseModel):
    """Response schema for bulk scheduling."""

    created: int = Field(..., ge=0, description="Entries scheduled")
    failed: int = Field(..., ge=0, description="Entries rejected")
    results: list[BulkCreateResult] = Field(..., description="Per-entry outcomes in request order")


class DeleteScheduledTourResponse(BaseModel):
    """Response schema for a deleted departure."""

    id: str = Field(..., description="ID of the deleted departure")
    message: str = Field(..., description="Human-readable confirmation")
    tour_title: str = Field(..., description="Title of the tour that was scheduled")
    start_time: datetime = Field(..., description="Start time of the deleted departure")
