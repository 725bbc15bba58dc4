"""Service layer package."""

from .booking_service import BookingReceipt, BookingService
from .capacity_guard import CapacityGuard
from .inventory_service import InventoryService, SeatAvailability
from .operator_service import OperatorService
from .overlap_detector import OverlapDetector, TimeWindow
from .scheduling_service import SchedulingService
from .tour_service import TourService
from .vessel_service import VesselService

__all__ = [
    "BookingReceipt",
    "BookingService",
    "CapacityGuard",
    "InventoryService",
    "OperatorService",
    "OverlapDetector",
    "SchedulingService",
    "SeatAvailability",
    "TimeWindow",
    "TourService",
    "VesselService",
]
