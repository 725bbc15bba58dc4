"""Vessel-related Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from ..models.vessel import VesselType

MAX_VESSEL_CAPACITY = 100


class CreateVesselRequest(BaseModel):
    """Request schema for creating a vessel."""

    name: str = Field(..., min_length=1, max_length=100, description="Vessel name, unique per operator")
    vessel_type: VesselType = Field(VesselType.FISHING_BOAT, description="Vessel class")
    capacity: int = Field(..., ge=1, le=MAX_VESSEL_CAPACITY, description="Maximum passengers")


class UpdateVesselRequest(BaseModel):
    """Request schema for updating a vessel; omitted fields are left unchanged."""

    vessel_id: UUID = Field(..., description="Vessel to update")
    name: str | None = Field(None, min_length=1, max_length=100, description="Vessel name")
    vessel_type: VesselType | None = Field(None, description="Vessel class")
    capacity: int | None = Field(None, ge=1, le=MAX_VESSEL_CAPACITY, description="Maximum passengers")


class GetVesselRequest(BaseModel):
    """Request schema for getting a vessel."""

    vessel_id: UUID = Field(..., description="Vessel to retrieve")


class DeleteVesselRequest(BaseModel):
    """Request schema for deleting a vessel."""

    vessel_id: UUID = Field(..., description="Vessel to delete")


class Vessel(BaseModel):
    """Vessel response schema."""

    id: str = Field(..., description="Unique vessel ID")
    operator_id: str = Field(..., description="Owning operator ID")
    name: str = Field(..., description="Vessel name")
    vessel_type: VesselType = Field(..., description="Vessel class")
    capacity: int = Field(..., ge=1, description="Maximum passengers")
    scheduled_tour_count: int = Field(0, ge=0, description="Departures scheduled on this vessel")
    created_at: datetime = Field(..., description="Creation time (ISO 8601)")

    class Config:
        from_attributes = True


class ListVesselsResponse(BaseModel):
    """Response schema for listing vessels."""

    items: list[Vessel] = Field(..., description="Vessels ordered by name")
