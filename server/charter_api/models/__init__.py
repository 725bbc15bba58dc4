"""Models module exporting all database models."""

from .booking import Booking
from .operator import Operator
from .scheduled_tour import ScheduledTour
from .tour import MAX_DURATION_MINUTES, MIN_DURATION_MINUTES, Tour
from .vessel import Vessel, VesselType

__all__ = [
    # Tenant
    "Operator",

    # Fleet and catalog
    "Vessel",
    "VesselType",
    "Tour",
    "MIN_DURATION_MINUTES",
    "MAX_DURATION_MINUTES",

    # Schedule and inventory
    "ScheduledTour",
    "Booking",
]
