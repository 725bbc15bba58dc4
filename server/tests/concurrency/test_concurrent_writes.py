"""Concurrency tests: racing transactions on a shared file-backed database.

Every simulated request gets its own session and connection, so the
row locks and SQLite write lock are actually contended.
"""

import asyncio
from datetime import timedelta
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from charter_api.core.clock import utcnow
from charter_api.core.database import Base, build_engine
from charter_api.core.exceptions import CapacityExceededError, SchedulingConflictError
from charter_api.models import VesselType
from charter_api.schemas.operator import CreateOperatorRequest
from charter_api.schemas.scheduled_tour import CreateScheduledTourRequest, SearchScheduledToursRequest
from charter_api.schemas.tour import CreateTourRequest, UpdateTourRequest
from charter_api.schemas.vessel import CreateVesselRequest
from charter_api.services.booking_service import BookingService
from charter_api.services.inventory_service import InventoryService
from charter_api.services.operator_service import OperatorService
from charter_api.services.overlap_detector import TimeWindow
from charter_api.services.scheduling_service import SchedulingService
from charter_api.services.tour_service import TourService
from charter_api.services.vessel_service import VesselService

pytestmark = pytest.mark.concurrency


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """Session factory over a throwaway SQLite file."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'charters.db'}", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def fleet(session_factory):
    """An operator with a six-seat vessel and two tours; returns plain IDs."""
    async with session_factory() as session:
        operator = await OperatorService(session).create_operator(CreateOperatorRequest(
            name="Race Condition Charters", email="race@example.com",
        ))
        vessel = await VesselService(session).create_vessel(operator.id, CreateVesselRequest(
            name="The Blue Fin", vessel_type=VesselType.FISHING_BOAT, capacity=6,
        ))
        whale = await TourService(session).create_tour(operator.id, CreateTourRequest(
            title="Whale Watching", price=Decimal("89.99"), duration_in_minutes=180,
        ))
        fishing = await TourService(session).create_tour(operator.id, CreateTourRequest(
            title="Salmon Fishing", price=Decimal("150.00"), duration_in_minutes=240,
        ))
        return {
            "operator_id": operator.id,
            "vessel_id": vessel.id,
            "whale_tour_id": whale.id,
            "fishing_tour_id": fishing.id,
        }


@pytest_asyncio.fixture
async def departure_id(session_factory, fleet):
    start = (utcnow() + timedelta(days=2)).replace(second=0, microsecond=0)
    async with session_factory() as session:
        view = await SchedulingService(session).create_scheduled_tour(
            fleet["operator_id"],
            CreateScheduledTourRequest(tour_id=fleet["whale_tour_id"], vessel_id=fleet["vessel_id"], start_time=start),
        )
        return view.scheduled_tour.id


async def _reserve(session_factory, operator_id, scheduled_tour_id, passengers, customer_id):
    async with session_factory() as session:
        try:
            return await BookingService(session).reserve(
                operator_id,
                scheduled_tour_id,
                passengers,
                f"Customer {customer_id}",
                f"customer{customer_id}@example.com",
            )
        except CapacityExceededError as e:
            return e


@pytest.mark.asyncio
async def test_concurrent_reservations_exceeding_capacity(session_factory, fleet, departure_id):
    """Five requests for four of six seats: exactly one wins."""
    results = await asyncio.gather(*[
        _reserve(session_factory, fleet["operator_id"], departure_id, 4, i) for i in range(5)
    ])

    successes = [r for r in results if not isinstance(r, CapacityExceededError)]
    failures = [r for r in results if isinstance(r, CapacityExceededError)]
    assert len(successes) == 1
    assert len(failures) == 4
    assert all(f.available == 2 for f in failures)

    async with session_factory() as session:
        assert await InventoryService(session).booked_seats(departure_id) == 4


@pytest.mark.asyncio
async def test_concurrent_single_seats_fill_exactly(session_factory, fleet, departure_id):
    """Ten single-seat requests on six seats: six succeed and the departure ends exactly full."""
    results = await asyncio.gather(*[
        _reserve(session_factory, fleet["operator_id"], departure_id, 1, i) for i in range(10)
    ])

    successes = [r for r in results if not isinstance(r, CapacityExceededError)]
    assert len(successes) == 6
    assert sorted(r.seats_booked for r in successes) == [1, 2, 3, 4, 5, 6]

    async with session_factory() as session:
        availability = await InventoryService(session).availability(departure_id)
    assert availability.booked == 6
    assert availability.is_full


async def _schedule(session_factory, operator_id, tour_id, vessel_id, start):
    async with session_factory() as session:
        try:
            return await SchedulingService(session).create_scheduled_tour(
                operator_id,
                CreateScheduledTourRequest(tour_id=tour_id, vessel_id=vessel_id, start_time=start),
            )
        except SchedulingConflictError as e:
            return e


@pytest.mark.asyncio
async def test_concurrent_overlapping_schedules(session_factory, fleet):
    """Overlapping departures raced onto one vessel: only one is scheduled."""
    start = (utcnow() + timedelta(days=3)).replace(second=0, microsecond=0)
    starts = [start + timedelta(minutes=30 * i) for i in range(5)]

    results = await asyncio.gather(*[
        _schedule(session_factory, fleet["operator_id"], fleet["fishing_tour_id"], fleet["vessel_id"], s)
        for s in starts
    ])

    scheduled = [r for r in results if not isinstance(r, SchedulingConflictError)]
    assert len(scheduled) == 1

    async with session_factory() as session:
        found = await SchedulingService(session).search_scheduled_tours(
            fleet["operator_id"], SearchScheduledToursRequest(vessel_id=fleet["vessel_id"])
        )
    assert len(found) == 1


async def _retime(session_factory, operator_id, tour_id, duration):
    async with session_factory() as session:
        try:
            return await TourService(session).update_tour(
                operator_id, UpdateTourRequest(tour_id=tour_id, duration_in_minutes=duration)
            )
        except SchedulingConflictError as e:
            return e


@pytest.mark.asyncio
async def test_duration_edit_races_new_departure(session_factory, fleet, departure_id):
    """Lengthening a tour while it is scheduled on another vessel never double-books that vessel."""
    operator_id = fleet["operator_id"]
    start = (utcnow() + timedelta(days=5)).replace(second=0, microsecond=0)
    async with session_factory() as session:
        second_vessel = await VesselService(session).create_vessel(operator_id, CreateVesselRequest(
            name="Sea Explorer", vessel_type=VesselType.COVERED_VESSEL, capacity=12,
        ))
        second_vessel_id = second_vessel.id
        await SchedulingService(session).create_scheduled_tour(
            operator_id,
            CreateScheduledTourRequest(
                tour_id=fleet["fishing_tour_id"], vessel_id=second_vessel_id, start_time=start + timedelta(hours=3),
            ),
        )

    retimed, scheduled = await asyncio.gather(
        _retime(session_factory, operator_id, fleet["whale_tour_id"], 240),
        _schedule(session_factory, operator_id, fleet["whale_tour_id"], second_vessel_id, start),
    )

    # Whichever commits first makes the other one conflict
    outcomes = [retimed, scheduled]
    assert sum(1 for o in outcomes if isinstance(o, SchedulingConflictError)) == 1

    async with session_factory() as session:
        found = await SchedulingService(session).search_scheduled_tours(
            operator_id, SearchScheduledToursRequest(vessel_id=second_vessel_id)
        )
    windows = [
        TimeWindow.from_duration(view.scheduled_tour.starts_at, view.scheduled_tour.tour.duration_in_minutes)
        for view in found
    ]
    for i, window in enumerate(windows):
        assert not any(window.overlaps(other) for other in windows[i + 1:])
