#!/usr/bin/env python3
"""Setup script for the charter booking API: migrate, then seed demo data."""

import asyncio
import logging
import sys
from datetime import timedelta
from decimal import Decimal
from pathlib import Path

# Add the server directory to the Python path
server_dir = Path(__file__).parent.parent / "server"
sys.path.insert(0, str(server_dir))

from alembic import command  # noqa: E402
from alembic.config import Config  # noqa: E402
from sqlalchemy import func, select  # noqa: E402

from charter_api.core.clock import utcnow  # noqa: E402
from charter_api.core.database import async_session_factory, close_db  # noqa: E402
from charter_api.models import Operator, VesselType  # noqa: E402
from charter_api.schemas.operator import CreateOperatorRequest  # noqa: E402
from charter_api.schemas.scheduled_tour import CreateScheduledTourRequest  # noqa: E402
from charter_api.schemas.tour import CreateTourRequest  # noqa: E402
from charter_api.schemas.vessel import CreateVesselRequest  # noqa: E402
from charter_api.services import OperatorService, SchedulingService, TourService, VesselService  # noqa: E402

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def run_migrations():
    """Apply Alembic migrations up to head."""
    alembic_cfg = Config(str(server_dir / "db" / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(server_dir / "db" / "alembic"))

    logger.info("Running database migrations...")
    command.upgrade(alembic_cfg, "head")
    logger.info("Database migrations completed")


async def create_sample_data():
    """Create a demo operator with a small fleet, catalog and one week of departures."""
    logger.info("Creating sample data...")

    async with async_session_factory() as db:
        existing = await db.execute(select(func.count(Operator.id)))
        if existing.scalar_one() > 0:
            logger.info("Sample data already exists, skipping...")
            return

        operator = await OperatorService(db).create_operator(CreateOperatorRequest(
            name="Campbell River Charters",
            email="info@campbellrivercharters.com",
            phone="+1 (250) 555-0123",
            address="123 Harbour Way, Campbell River, BC V9W 2H1",
        ))

        vessel_service = VesselService(db)
        blue_fin = await vessel_service.create_vessel(operator.id, CreateVesselRequest(
            name="The Blue Fin", vessel_type=VesselType.FISHING_BOAT, capacity=6,
        ))
        sea_explorer = await vessel_service.create_vessel(operator.id, CreateVesselRequest(
            name="Sea Explorer", vessel_type=VesselType.COVERED_VESSEL, capacity=12,
        ))

        tour_service = TourService(db)
        whale_watching = await tour_service.create_tour(operator.id, CreateTourRequest(
            title="3-Hour Whale Watching Adventure",
            description="Orcas, humpbacks and sea lions in Discovery Passage with an expert naturalist.",
            price=Decimal("89.99"),
            duration_in_minutes=180,
        ))
        salmon_fishing = await tour_service.create_tour(operator.id, CreateTourRequest(
            title="Salmon Fishing Charter",
            description="Four hours on the water with gear, bait and a local guide.",
            price=Decimal("150.00"),
            duration_in_minutes=240,
        ))
        await tour_service.create_tour(operator.id, CreateTourRequest(
            title="Sunset Wildlife Cruise",
            description="Evening cruise spotting seals and eagles at sunset, light refreshments included.",
            price=Decimal("65.00"),
            duration_in_minutes=120,
        ))

        # One week of morning departures, starting tomorrow at 09:00 UTC
        first_day = (utcnow() + timedelta(days=1)).replace(hour=9, minute=0, second=0, microsecond=0)
        entries = []
        for day in range(7):
            start = first_day + timedelta(days=day)
            entries.append(CreateScheduledTourRequest(
                tour_id=whale_watching.id, vessel_id=sea_explorer.id, start_time=start,
            ))
            entries.append(CreateScheduledTourRequest(
                tour_id=salmon_fishing.id, vessel_id=blue_fin.id, start_time=start,
            ))

        outcomes = await SchedulingService(db).bulk_create_scheduled_tours(operator.id, entries)
        created = sum(1 for outcome in outcomes if outcome.view is not None)
        logger.info(
            "Sample data created successfully",
            extra={"operator_slug": operator.slug, "scheduled_tours": created}
        )


async def seed():
    try:
        await create_sample_data()
    finally:
        await close_db()


def main():
    """Main setup function."""
    logger.info("Starting charter booking API setup...")

    run_migrations()
    asyncio.run(seed())

    logger.info("Setup completed successfully!")
    logger.info("You can now start the API server with: cd server && uvicorn charter_api.main:app --reload")


if __name__ == "__main__":
    main()
