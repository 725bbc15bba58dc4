"""FastAPI dependencies for tenant scoping."""

from typing import Optional
from uuid import UUID

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from ..services.operator_service import OperatorService
from .database import get_db
from .exceptions import ValidationError

OPERATOR_HEADER = "X-Operator-ID"


async def get_operator_id(
    x_operator_id: Optional[str] = Header(None, alias=OPERATOR_HEADER),
    db: AsyncSession = Depends(get_db),
) -> UUID:
    """
    Resolve the operator every tenant-scoped request acts for.

    Args:
        x_operator_id: Value of the X-Operator-ID header
        db: Database session

    Returns:
        UUID: ID of an existing operator

    Raises:
        ValidationError: If the header is missing or not a UUID
        NotFoundError: If no operator has that ID
    """
    if not x_operator_id:
        raise ValidationError(
            detail=f"The {OPERATOR_HEADER} header is required",
            field=OPERATOR_HEADER,
        )

    try:
        operator_id = UUID(x_operator_id)
    except ValueError as e:
        raise ValidationError(
            detail=f"The {OPERATOR_HEADER} header must be a UUID",
            field=OPERATOR_HEADER,
        ) from e

    operator = await OperatorService(db).get_operator_by_id_or_raise(operator_id)
    return operator.id
