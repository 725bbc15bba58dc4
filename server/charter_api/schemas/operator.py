"""Operator-related Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, model_validator


class CreateOperatorRequest(BaseModel):
    """Request schema for creating an operator."""

    name: str = Field(..., min_length=1, max_length=100, description="Business name")
    email: EmailStr = Field(..., description="Contact email, unique across operators")
    phone: str | None = Field(None, max_length=50, description="Contact phone number")
    address: str | None = Field(None, max_length=500, description="Postal address")


class UpdateOperatorRequest(BaseModel):
    """Request schema for updating an operator; omitted fields are left unchanged."""

    operator_id: UUID = Field(..., description="Operator to update")
    name: str | None = Field(None, min_length=1, max_length=100, description="Business name")
    email: EmailStr | None = Field(None, description="Contact email")
    phone: str | None = Field(None, max_length=50, description="Contact phone number")
    address: str | None = Field(None, max_length=500, description="Postal address")


class GetOperatorRequest(BaseModel):
    """Request schema for fetching an operator by ID or slug."""

    operator_id: UUID | None = Field(None, description="Operator ID")
    slug: str | None = Field(None, min_length=1, max_length=120, description="Operator slug")

    @model_validator(mode="after")
    def check_identifier(self) -> "GetOperatorRequest":
        if self.operator_id is None and not self.slug:
            raise ValueError("Either operator_id or slug is required")
        return self


class DeleteOperatorRequest(BaseModel):
    """Request schema for deleting an operator and everything it owns."""

    operator_id: UUID = Field(..., description="Operator to delete")


class Operator(BaseModel):
    """Operator response schema."""

    id: str = Field(..., description="Unique operator ID")
    name: str = Field(..., description="Business name")
    slug: str = Field(..., description="URL-friendly slug derived from the name")
    email: str = Field(..., description="Contact email")
    phone: str | None = Field(None, description="Contact phone number")
    address: str | None = Field(None, description="Postal address")
    created_at: datetime = Field(..., description="Creation time (ISO 8601)")

    class Config:
        from_attributes = True


class ListOperatorsResponse(BaseModel):
    """Response schema for listing operators."""

    items: list[Operator] = Field(..., description="Operators ordered by name")
