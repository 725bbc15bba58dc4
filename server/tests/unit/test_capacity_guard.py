"""Unit tests for the capacity guard."""

from datetime import timedelta

import pytest

from charter_api.core.clock import utcnow
from charter_api.core.exceptions import CapacityExceededError, ValidationError
from charter_api.models import Booking, ScheduledTour
from charter_api.services.capacity_guard import (
    CapacityGuard,
    can_admit,
    remaining_seats,
    validate_passenger_count,
)


def test_remaining_seats():
    assert remaining_seats(12, 0) == 12
    assert remaining_seats(12, 12) == 0


def test_exact_fit_is_admitted():
    assert can_admit(requested=4, capacity=6, booked=2)


def test_one_over_is_refused():
    assert not can_admit(requested=5, capacity=6, booked=2)


@pytest.mark.parametrize("requested", [0, -1, -50])
def test_validate_passenger_count_rejects_non_positive(requested):
    with pytest.raises(ValidationError) as exc_info:
        validate_passenger_count(requested)

    assert exc_info.value.status_code == 400
    assert exc_info.value.problem_details["field"] == "passenger_count"


@pytest.mark.parametrize("requested", [True, 2.0, "3", None])
def test_validate_passenger_count_rejects_non_integers(requested):
    with pytest.raises(ValidationError):
        validate_passenger_count(requested)


def test_validate_passenger_count_accepts_positive():
    assert validate_passenger_count(1) == 1


@pytest.mark.asyncio
async def test_ensure_seats_available_returns_available_before(test_session):
    guard = CapacityGuard(test_session)

    assert guard.ensure_seats_available(requested=4, capacity=6, booked=2) == 4


@pytest.mark.asyncio
async def test_ensure_seats_available_message_and_counts(test_session):
    guard = CapacityGuard(test_session)

    with pytest.raises(CapacityExceededError) as exc_info:
        guard.ensure_seats_available(requested=5, capacity=6, booked=2)

    error = exc_info.value
    assert error.status_code == 409
    assert error.requested == 5
    assert error.available == 4
    assert error.message == "Not enough seats available. Requested: 5, Available: 4"
    assert error.problem_details["code"] == "CAPACITY_EXCEEDED"


@pytest.mark.asyncio
async def test_ensure_seats_available_when_full(test_session):
    with pytest.raises(CapacityExceededError) as exc_info:
        CapacityGuard(test_session).ensure_seats_available(requested=1, capacity=6, booked=6)

    assert exc_info.value.available == 0


@pytest.mark.asyncio
async def test_ensure_seats_available_validates_first(test_session):
    with pytest.raises(ValidationError):
        CapacityGuard(test_session).ensure_seats_available(requested=0, capacity=6, booked=0)


@pytest.mark.asyncio
async def test_vessel_can_carry_existing_bookings(test_session, small_vessel):
    guard = CapacityGuard(test_session)

    guard.ensure_vessel_can_carry(6, small_vessel)

    with pytest.raises(CapacityExceededError) as exc_info:
        guard.ensure_vessel_can_carry(7, small_vessel)

    assert "The Blue Fin" in exc_info.value.message
    assert exc_info.value.available == 6


async def _booked_departure(session, tour, vessel, start, passengers):
    scheduled_tour = ScheduledTour(tour_id=tour.id, vessel_id=vessel.id, start_time=start)
    session.add(scheduled_tour)
    await session.flush()
    session.add(Booking(
        scheduled_tour_id=scheduled_tour.id,
        passenger_count=passengers,
        customer_name="Group",
        customer_email="group@example.com",
    ))
    await session.commit()


@pytest.mark.asyncio
async def test_capacity_reduction_down_to_largest_booking(test_session, whale_tour, large_vessel, future):
    await _booked_departure(test_session, whale_tour, large_vessel, future(), 8)
    guard = CapacityGuard(test_session)

    await guard.ensure_capacity_reduction_allowed(large_vessel, 8)

    with pytest.raises(CapacityExceededError):
        await guard.ensure_capacity_reduction_allowed(large_vessel, 7)


@pytest.mark.asyncio
async def test_capacity_increase_is_never_checked(test_session, whale_tour, large_vessel, future):
    await _booked_departure(test_session, whale_tour, large_vessel, future(), 12)

    await CapacityGuard(test_session).ensure_capacity_reduction_allowed(large_vessel, 20)


@pytest.mark.asyncio
async def test_capacity_reduction_ignores_past_departures(test_session, whale_tour, large_vessel):
    await _booked_departure(test_session, whale_tour, large_vessel, utcnow() - timedelta(days=1), 12)

    await CapacityGuard(test_session).ensure_capacity_reduction_allowed(large_vessel, 4)
