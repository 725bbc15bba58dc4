"""FastAPI routers package."""

from .booking import router as booking_router
from .health import router as health_router
from .metrics import router as metrics_router
from .operator import router as operator_router
from .scheduled_tour import router as scheduled_tour_router
from .tour import router as tour_router
from .vessel import router as vessel_router

__all__ = [
    "booking_router",
    "health_router",
    "metrics_router",
    "operator_router",
    "scheduled_tour_router",
    "tour_router",
    "vessel_router",
]
