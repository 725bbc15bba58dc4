"""Custom exceptions following RFC 9457 Problem Details for HTTP APIs."""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

PROBLEM_BASE_URI = "https://charters.example.com/problems"


class ProblemDetailsException(HTTPException):
    """
    Base exception class following RFC 9457 Problem Details for HTTP APIs.

    https://tools.ietf.org/rfc/rfc9457.txt
    """

    def __init__(
        self,
        status_code: int,
        title: str,
        detail: Optional[str] = None,
        type_uri: Optional[str] = None,
        instance: Optional[str] = None,
        extensions: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize Problem Details exception.

        Args:
            status_code: HTTP status code
            title: Short, human-readable summary of the problem type
            detail: Human-readable explanation specific to this occurrence
            type_uri: URI reference that identifies the problem type
            instance: URI reference that identifies the specific occurrence
            extensions: Additional problem-specific information
            headers: HTTP headers to include in response
        """
        self.status_code = status_code
        self.title = title
        self.detail = detail
        self.type_uri = type_uri or f"about:blank#{status_code}"
        self.instance = instance
        self.extensions = extensions or {}

        self.problem_details = {
            "type": self.type_uri,
            "title": self.title,
            "status": self.status_code,
        }

        if self.detail:
            self.problem_details["detail"] = self.detail

        if self.instance:
            self.problem_details["instance"] = self.instance

        self.problem_details.update(self.extensions)

        super().__init__(
            status_code=status_code,
            detail=self.problem_details,
            headers=headers
        )

    @property
    def code(self) -> Optional[str]:
        """Application-specific error code, if any."""
        return self.problem_details.get("code")

    @property
    def message(self) -> str:
        """Human-readable detail of this occurrence."""
        return self.problem_details.get("detail", self.title)

    def __str__(self) -> str:
        return self.message


class ValidationError(ProblemDetailsException):
    """Malformed or missing input, rejected before touching storage."""

    def __init__(
        self,
        detail: str = "The request data failed validation",
        field: Optional[str] = None,
        violations: Optional[list[Dict[str, str]]] = None,
        instance: Optional[str] = None,
        code: str = "VALIDATION_ERROR",
        title: str = "Validation Error",
    ):
        extensions: Dict[str, Any] = {"code": code, "retryable": False}
        if field:
            extensions["field"] = field
        if violations:
            extensions["violations"] = violations

        super().__init__(
            status_code=400,
            title=title,
            detail=detail,
            type_uri=f"{PROBLEM_BASE_URI}/validation-error",
            instance=instance,
            extensions=extensions,
        )


class InvalidStartTimeError(ValidationError):
    """A departure start time that is not strictly in the future."""

    def __init__(self, start_time: datetime, now: datetime):
        super().__init__(
            detail="Start time must be in the future",
            field="start_time",
            code="INVALID_START_TIME",
            title="Invalid Start Time",
        )
        self.problem_details.update({
            "start_time": start_time.isoformat(),
            "current_time": now.isoformat(),
        })


class NotFoundError(ProblemDetailsException):
    """Exception for resource not found errors."""

    def __init__(
        self,
        resource_type: str = "resource",
        resource_id: Optional[str] = None,
        detail: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        if not detail:
            detail = f"The requested {resource_type}"
            if resource_id:
                detail += f" with ID '{resource_id}'"
            detail += " could not be found"

        extensions = {
            "code": "NOT_FOUND",
            "resource_type": resource_type,
        }
        if resource_id:
            extensions["resource_id"] = resource_id

        super().__init__(
            status_code=404,
            title="Resource Not Found",
            detail=detail,
            type_uri=f"{PROBLEM_BASE_URI}/resource-not-found",
            instance=instance,
            extensions=extensions,
        )


class ConflictError(ProblemDetailsException):
    """Exception for resource conflict errors."""

    def __init__(
        self,
        detail: str = "The request conflicts with the current state of the resource",
        conflicting_resource: Optional[Dict[str, Any]] = None,
        instance: Optional[str] = None,
        title: str = "Resource Conflict",
        type_slug: str = "resource-conflict",
        code: str = "CONFLICT",
        retryable: bool = False,
    ):
        extensions: Dict[str, Any] = {"code": code, "retryable": retryable}
        if conflicting_resource:
            extensions["conflicting_resource"] = conflicting_resource

        super().__init__(
            status_code=409,
            title=title,
            detail=detail,
            type_uri=f"{PROBLEM_BASE_URI}/{type_slug}",
            instance=instance,
            extensions=extensions,
        )


# Business rule exceptions

class CapacityExceededError(ConflictError):
    """Requested seats exceed what the vessel can still carry."""

    def __init__(
        self,
        detail: str,
        requested: int,
        available: int,
        scheduled_tour_id: Optional[str] = None,
        vessel_id: Optional[str] = None,
    ):
        conflicting_resource: Dict[str, Any] = {}
        if scheduled_tour_id:
            conflicting_resource["scheduled_tour_id"] = scheduled_tour_id
        if vessel_id:
            conflicting_resource["vessel_id"] = vessel_id

        super().__init__(
            detail=detail,
            conflicting_resource=conflicting_resource or None,
            title="Capacity Exceeded",
            type_slug="capacity-exceeded",
            code="CAPACITY_EXCEEDED",
        )
        self.requested = requested
        self.available = available
        self.problem_details.update({
            "requested": requested,
            "available": available,
        })


class SchedulingConflictError(ConflictError):
    """A departure window overlaps another departure on the same vessel."""

    def __init__(
        self,
        vessel_name: str,
        conflicting_scheduled_tour_id: str,
        conflicting_tour_title: str,
        conflicting_start: datetime,
        conflicting_end: datetime,
    ):
        super().__init__(
            detail=(
                f'Vessel conflict: {vessel_name} is already scheduled for "{conflicting_tour_title}" '
                f"from {conflicting_start.isoformat()} to {conflicting_end.isoformat()}"
            ),
            conflicting_resource={
                "scheduled_tour_id": conflicting_scheduled_tour_id,
                "tour_title": conflicting_tour_title,
                "start_time": conflicting_start.isoformat(),
                "end_time": conflicting_end.isoformat(),
            },
            title="Scheduling Conflict",
            type_slug="scheduling-conflict",
            code="SCHEDULING_CONFLICT",
        )


class CannotDeleteError(ConflictError):
    """Deletion blocked by dependent records."""

    def __init__(self, resource_type: str, resource_id: str, detail: str, counts: Dict[str, int]):
        super().__init__(
            detail=detail,
            conflicting_resource={"resource_type": resource_type, "resource_id": resource_id},
            title="Cannot Delete",
            type_slug="cannot-delete",
            code="CANNOT_DELETE",
        )
        self.counts = counts
        self.problem_details.update(counts)


class ConcurrencyConflictError(ConflictError):
    """A concurrent transaction holds the rows this one needs; safe to retry."""

    def __init__(self, detail: str = "The resource is being modified by another request. Please retry."):
        super().__init__(
            detail=detail,
            title="Concurrent Modification",
            type_slug="concurrent-modification",
            code="CONCURRENT_MODIFICATION",
            retryable=True,
        )


class InternalServerError(ProblemDetailsException):
    """Exception for internal server errors."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred while processing the request",
        error_id: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        if not error_id:
            error_id = str(uuid.uuid4())

        extensions = {
            "error_id": error_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

        super().__init__(
            status_code=500,
            title="Internal Server Error",
            detail=detail,
            type_uri=f"{PROBLEM_BASE_URI}/internal-server-error",
            instance=instance,
            extensions=extensions,
        )


class DataIntegrityError(InternalServerError):
    """Stored state already violates an inventory invariant."""

    def __init__(self, detail: str):
        super().__init__(detail="A data integrity problem was detected while processing the request")
        self.problem_details["code"] = "DATA_INTEGRITY"
        # Kept off the wire; logged by the caller.
        self.internal_detail = detail


async def problem_details_handler(request: Request, exc: ProblemDetailsException) -> JSONResponse:
    """
    Exception handler for Problem Details exceptions.

    Args:
        request: FastAPI request object
        exc: Problem Details exception

    Returns:
        JSONResponse: Problem Details formatted response
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.problem_details,
        headers=exc.headers,
        media_type="application/problem+json",
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request schema failures as a 400 Problem Details body with violations."""
    violations = [
        {
            "path": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg", "Invalid value"),
        }
        for error in exc.errors()
    ]
    problem = ValidationError(
        detail="The request data failed validation",
        violations=violations,
        instance=str(request.url),
    )
    return JSONResponse(
        status_code=problem.status_code,
        content=problem.problem_details,
        media_type="application/problem+json",
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Generic exception handler that converts unhandled exceptions to Problem Details format.

    Args:
        request: FastAPI request object
        exc: Unhandled exception

    Returns:
        JSONResponse: Problem Details formatted response
    """
    problem = InternalServerError(instance=str(request.url))

    logger.error(
        "Unhandled exception",
        extra={
            "error_id": problem.problem_details["error_id"],
            "path": request.url.path,
            "error": str(exc),
        },
        exc_info=exc,
    )

    return JSONResponse(
        status_code=500,
        content=problem.problem_details,
        media_type="application/problem+json",
    )
