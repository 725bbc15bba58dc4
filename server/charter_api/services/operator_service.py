"""Operator service for tenant management."""

import logging
import re
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import ConflictError, NotFoundError
from ..core.unit_of_work import unit_of_work
from ..models.operator import Operator
from ..schemas.operator import CreateOperatorRequest, UpdateOperatorRequest

logger = logging.getLogger(__name__)

_NON_WORD = re.compile(r"[^\w\s-]")
_SEPARATORS = re.compile(r"[\s_-]+")


def slugify(text: str) -> str:
    """Lowercase, drop punctuation, and join words with single dashes."""
    slug = _NON_WORD.sub("", text.lower().strip())
    slug = _SEPARATORS.sub("-", slug)
    return slug.strip("-") or "operator"


class OperatorService:
    """Service for operator-related operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _unique_slug(self, name: str, exclude_operator_id: UUID | None = None) -> str:
        base = slugify(name)
        stmt = select(Operator.slug).where(Operator.slug.like(f"{base}%"))
        if exclude_operator_id is not None:
            stmt = stmt.where(Operator.id != exclude_operator_id)
        result = await self.db.execute(stmt)
        taken = set(result.scalars())

        slug = base
        counter = 1
        while slug in taken:
            slug = f"{base}-{counter}"
            counter += 1
        return slug

    async def _ensure_email_free(self, email: str, exclude_operator_id: UUID | None = None) -> None:
        stmt = select(Operator.id).where(Operator.email == email)
        if exclude_operator_id is not None:
            stmt = stmt.where(Operator.id != exclude_operator_id)
        result = await self.db.execute(stmt)
        existing_id = result.scalar_one_or_none()
        if existing_id is not None:
            logger.warning(
                "Operator email already in use",
                extra={"email": email, "existing_operator_id": str(existing_id)}
            )
            raise ConflictError(
                detail="An operator with this email already exists",
                conflicting_resource={"operator_id": str(existing_id), "email": email},
            )

    async def create_operator(self, request: CreateOperatorRequest) -> Operator:
        """
        Create a new operator with a unique slug derived from its name.

        Raises:
            ConflictError: If the email is already registered
        """
        async with unit_of_work(self.db):
            email = str(request.email).lower()
            await self._ensure_email_free(email)

            operator = Operator(
                name=request.name.strip(),
                slug=await self._unique_slug(request.name),
                email=email,
                phone=request.phone,
                address=request.address,
            )
            self.db.add(operator)
            await self.db.flush()

        await self.db.refresh(operator)

        logger.info(
            "Operator created successfully",
            extra={"operator_id": str(operator.id), "slug": operator.slug}
        )
        return operator

    async def update_operator(self, request: UpdateOperatorRequest) -> Operator:
        """
        Update an operator; the slug follows the name.

        Raises:
            NotFoundError: If the operator does not exist
            ConflictError: If the new email belongs to another operator
        """
        async with unit_of_work(self.db):
            operator = await self.get_operator_by_id_or_raise(request.operator_id)

            if request.email is not None:
                email = str(request.email).lower()
                if email != operator.email:
                    await self._ensure_email_free(email, exclude_operator_id=operator.id)
                    operator.email = email

            if request.name is not None and request.name.strip() != operator.name:
                operator.name = request.name.strip()
                operator.slug = await self._unique_slug(operator.name, exclude_operator_id=operator.id)

            if request.phone is not None:
                operator.phone = request.phone
            if request.address is not None:
                operator.address = request.address

        await self.db.refresh(operator)

        logger.info(
            "Operator updated successfully",
            extra={"operator_id": str(operator.id), "slug": operator.slug}
        )
        return operator

    async def delete_operator(self, operator_id: UUID) -> Operator:
        """Delete an operator together with its fleet, catalog, schedule and bookings."""
        async with unit_of_work(self.db):
            operator = await self.get_operator_by_id_or_raise(operator_id)
            await self.db.delete(operator)

        logger.info(
            "Operator deleted",
            extra={"operator_id": str(operator_id), "slug": operator.slug}
        )
        return operator

    async def list_operators(self) -> list[Operator]:
        """All operators ordered by name."""
        result = await self.db.execute(select(Operator).order_by(Operator.name))
        return list(result.scalars())

    async def get_operator_by_id(self, operator_id: UUID) -> Operator | None:
        """
        Get operator by ID.

        Args:
            operator_id: Operator ID to search for

        Returns:
            Operator if found, None otherwise
        """
        stmt = select(Operator).where(Operator.id == operator_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_operator_by_slug(self, slug: str) -> Operator | None:
        """Get operator by slug."""
        stmt = select(Operator).where(Operator.slug == slug)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_operator_by_id_or_raise(self, operator_id: UUID) -> Operator:
        """
        Get operator by ID or raise NotFoundError.

        Raises:
            NotFoundError: If operator not found
        """
        operator = await self.get_operator_by_id(operator_id)
        if not operator:
            logger.warning(
                "Operator not found",
                extra={"operator_id": str(operator_id)}
            )
            raise NotFoundError(
                resource_type="operator",
                resource_id=str(operator_id)
            )
        return operator

    async def get_operator_by_slug_or_raise(self, slug: str) -> Operator:
        """Get operator by slug or raise NotFoundError."""
        operator = await self.get_operator_by_slug(slug)
        if not operator:
            raise NotFoundError(resource_type="operator", resource_id=slug)
        return operator
