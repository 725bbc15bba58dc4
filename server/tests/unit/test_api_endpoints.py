"""Integration tests for API endpoints."""

import logging
from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

PROBLEM_JSON = "application/problem+json"


async def _create_departure(client, headers, tour_id, vessel_id, start):
    response = await client.post(
        "/v1/scheduled-tour/create",
        json={"tour_id": str(tour_id), "vessel_id": str(vessel_id), "start_time": start.isoformat()},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_create_operator_endpoint(test_client):
    """Test the operator creation endpoint."""
    response = await test_client.post(
        "/v1/operator/create",
        json={"name": "Discovery Marine Safaris", "email": "bookings@discoverymarine.com"},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["slug"] == "discovery-marine-safaris"
    assert "id" in data


@pytest.mark.asyncio
async def test_create_operator_invalid_email(test_client):
    response = await test_client.post(
        "/v1/operator/create",
        json={"name": "Bad Email Tours", "email": "not-an-email"},
    )

    assert response.status_code == 400
    assert response.headers["content-type"].startswith(PROBLEM_JSON)
    data = response.json()
    assert data["status"] == 400
    assert data["code"] == "VALIDATION_ERROR"
    assert any(violation["path"] == "email" for violation in data["violations"])


@pytest.mark.asyncio
async def test_get_operator_by_slug(test_client, operator):
    response = await test_client.post("/v1/operator/get", json={"slug": "campbell-river-charters"})

    assert response.status_code == 200
    assert response.json()["id"] == str(operator.id)


@pytest.mark.asyncio
async def test_get_operator_requires_id_or_slug(test_client):
    response = await test_client.post("/v1/operator/get", json={})

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_tenant_header_missing(test_client):
    response = await test_client.post("/v1/vessel/list", json={})

    assert response.status_code == 400
    data = response.json()
    assert data["field"] == "X-Operator-ID"
    assert "required" in data["detail"]


@pytest.mark.asyncio
async def test_tenant_header_not_a_uuid(test_client):
    response = await test_client.post("/v1/vessel/list", json={}, headers={"X-Operator-ID": "operator-1"})

    assert response.status_code == 400
    assert "UUID" in response.json()["detail"]


@pytest.mark.asyncio
async def test_tenant_header_unknown_operator(test_client):
    response = await test_client.post("/v1/vessel/list", json={}, headers={"X-Operator-ID": str(uuid4())})

    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_vessel_crud(test_client, operator_headers):
    created = await test_client.post(
        "/v1/vessel/create",
        json={"name": "Orca Spirit", "vessel_type": "ZODIAC", "capacity": 10},
        headers=operator_headers,
    )
    assert created.status_code == 201
    vessel_id = created.json()["id"]

    updated = await test_client.post(
        "/v1/vessel/update", json={"vessel_id": vessel_id, "capacity": 8}, headers=operator_headers
    )
    assert updated.status_code == 200
    assert updated.json()["capacity"] == 8

    listed = await test_client.post("/v1/vessel/list", json={}, headers=operator_headers)
    assert [item["name"] for item in listed.json()["items"]] == ["Orca Spirit"]

    deleted = await test_client.post("/v1/vessel/delete", json={"vessel_id": vessel_id}, headers=operator_headers)
    assert deleted.status_code == 200
    assert deleted.json()["id"] == vessel_id

    missing = await test_client.post("/v1/vessel/get", json={"vessel_id": vessel_id}, headers=operator_headers)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_vessel_capacity_bounds(test_client, operator_headers):
    response = await test_client.post(
        "/v1/vessel/create",
        json={"name": "Too Big", "capacity": 0},
        headers=operator_headers,
    )

    assert response.status_code == 400
    assert any(violation["path"] == "capacity" for violation in response.json()["violations"])


@pytest.mark.asyncio
async def test_duplicate_vessel_name_is_conflict(test_client, operator_headers, small_vessel, caplog):
    caplog.set_level(logging.INFO, logger="charter_api")

    response = await test_client.post(
        "/v1/vessel/create",
        json={"name": "The Blue Fin", "capacity": 4},
        headers=operator_headers,
    )

    assert response.status_code == 409
    assert response.json()["code"] == "CONFLICT"


@pytest.mark.asyncio
async def test_bulk_create_at_info_log_level(test_client, operator_headers, whale_tour, small_vessel, future, caplog):
    caplog.set_level(logging.INFO, logger="charter_api")

    response = await test_client.post(
        "/v1/scheduled-tour/bulk-create",
        json={"entries": [
            {"tour_id": str(whale_tour.id), "vessel_id": str(small_vessel.id), "start_time": future().isoformat()},
        ]},
        headers=operator_headers,
    )

    assert response.status_code == 200, response.text


@pytest.mark.asyncio
async def test_free_tour_is_allowed(test_client, operator_headers):
    response = await test_client.post(
        "/v1/tour/create",
        json={"title": "Harbour Walkabout", "price": "0", "duration_in_minutes": 60},
        headers=operator_headers,
    )

    assert response.status_code == 201, response.text
    assert Decimal(str(response.json()["price"])) == 0


@pytest.mark.asyncio
async def test_tour_duration_bounds(test_client, operator_headers):
    response = await test_client.post(
        "/v1/tour/create",
        json={"title": "Quick Spin", "price": "20.00", "duration_in_minutes": 15},
        headers=operator_headers,
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_tour_create_and_get(test_client, operator_headers):
    created = await test_client.post(
        "/v1/tour/create",
        json={"title": "Sunset Wildlife Cruise", "price": "65.00", "duration_in_minutes": 120},
        headers=operator_headers,
    )
    assert created.status_code == 201
    tour_id = created.json()["id"]

    fetched = await test_client.post("/v1/tour/get", json={"tour_id": tour_id}, headers=operator_headers)
    assert fetched.status_code == 200
    assert fetched.json()["duration_in_minutes"] == 120


@pytest.mark.asyncio
async def test_schedule_and_book_flow(test_client, operator_headers, whale_tour, small_vessel, future):
    tour_id, vessel_id = whale_tour.id, small_vessel.id
    departure = await _create_departure(test_client, operator_headers, tour_id, vessel_id, future())
    assert departure["availability"] == {"capacity": 6, "booked": 0, "available": 6, "is_full": False}
    assert departure["vessel_name"] == "The Blue Fin"

    booked = await test_client.post(
        "/v1/booking/create",
        json={
            "scheduled_tour_id": departure["id"],
            "passenger_count": 4,
            "customer_name": "Jane Doe",
            "customer_email": "jane@example.com",
        },
        headers=operator_headers,
    )
    assert booked.status_code == 201
    assert booked.json()["inventory"] == {"seats_remaining": 2, "total_capacity": 6, "seats_booked": 4}

    refused = await test_client.post(
        "/v1/booking/create",
        json={
            "scheduled_tour_id": departure["id"],
            "passenger_count": 3,
            "customer_name": "John Roe",
            "customer_email": "john@example.com",
        },
        headers=operator_headers,
    )
    assert refused.status_code == 409
    assert refused.headers["content-type"].startswith(PROBLEM_JSON)
    problem = refused.json()
    assert problem["code"] == "CAPACITY_EXCEEDED"
    assert problem["detail"] == "Not enough seats available. Requested: 3, Available: 2"
    assert problem["requested"] == 3
    assert problem["available"] == 2

    fetched = await test_client.post(
        "/v1/scheduled-tour/get", json={"scheduled_tour_id": departure["id"]}, headers=operator_headers
    )
    assert fetched.json()["availability"]["available"] == 2
    assert fetched.json()["booking_count"] == 1

    listed = await test_client.post(
        "/v1/booking/list", json={"scheduled_tour_id": departure["id"]}, headers=operator_headers
    )
    assert len(listed.json()["items"]) == 1


@pytest.mark.asyncio
async def test_booking_zero_passengers_rejected(test_client, operator_headers, whale_tour, small_vessel, future):
    departure = await _create_departure(test_client, operator_headers, whale_tour.id, small_vessel.id, future())

    response = await test_client.post(
        "/v1/booking/create",
        json={
            "scheduled_tour_id": departure["id"],
            "passenger_count": 0,
            "customer_name": "Jane Doe",
            "customer_email": "jane@example.com",
        },
        headers=operator_headers,
    )

    assert response.status_code == 400
    assert any(violation["path"] == "passenger_count" for violation in response.json()["violations"])


@pytest.mark.asyncio
async def test_scheduling_conflict_endpoint(test_client, operator_headers, fishing_tour, large_vessel, future):
    """A one-hour departure starting 30 minutes before a four-hour one ends is refused; at its end it is not."""
    fishing_id, vessel_id = fishing_tour.id, large_vessel.id
    short = await test_client.post(
        "/v1/tour/create",
        json={"title": "Harbour Seal Spotting", "price": "35.00", "duration_in_minutes": 60},
        headers=operator_headers,
    )
    short_id = short.json()["id"]
    start = future().replace(hour=13, minute=0) + timedelta(days=1)
    await _create_departure(test_client, operator_headers, fishing_id, vessel_id, start)

    conflict = await test_client.post(
        "/v1/scheduled-tour/create",
        json={
            "tour_id": short_id,
            "vessel_id": str(vessel_id),
            "start_time": (start + timedelta(minutes=210)).isoformat(),
        },
        headers=operator_headers,
    )
    assert conflict.status_code == 409
    problem = conflict.json()
    assert problem["code"] == "SCHEDULING_CONFLICT"
    assert problem["detail"].startswith("Vessel conflict: Sea Explorer is already scheduled for")
    assert problem["conflicting_resource"]["tour_title"] == "Salmon Fishing Charter"

    touching = await _create_departure(
        test_client, operator_headers, short_id, vessel_id, start + timedelta(minutes=240)
    )
    assert touching["tour_title"] == "Harbour Seal Spotting"


@pytest.mark.asyncio
async def test_schedule_in_the_past(test_client, operator_headers, whale_tour, small_vessel, future):
    response = await test_client.post(
        "/v1/scheduled-tour/create",
        json={
            "tour_id": str(whale_tour.id),
            "vessel_id": str(small_vessel.id),
            "start_time": (future() - timedelta(days=30)).isoformat(),
        },
        headers=operator_headers,
    )

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_START_TIME"


@pytest.mark.asyncio
async def test_bulk_create_partial_success(test_client, operator_headers, whale_tour, small_vessel, future):
    tour_id, vessel_id = str(whale_tour.id), str(small_vessel.id)
    start = future()

    response = await test_client.post(
        "/v1/scheduled-tour/bulk-create",
        json={"entries": [
            {"tour_id": tour_id, "vessel_id": vessel_id, "start_time": start.isoformat()},
            {"tour_id": tour_id, "vessel_id": vessel_id, "start_time": (start + timedelta(hours=1)).isoformat()},
            {"tour_id": tour_id, "vessel_id": vessel_id, "start_time": (start + timedelta(hours=3)).isoformat()},
        ]},
        headers=operator_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["created"] == 2
    assert data["failed"] == 1
    assert [result["success"] for result in data["results"]] == [True, False, True]
    assert data["results"][1]["error"]["code"] == "SCHEDULING_CONFLICT"
    assert "scheduled_tour" not in data["results"][1]


@pytest.mark.asyncio
async def test_bulk_create_requires_entries(test_client, operator_headers):
    response = await test_client.post("/v1/scheduled-tour/bulk-create", json={"entries": []}, headers=operator_headers)

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_delete_scheduled_tour_with_booking(test_client, operator_headers, whale_tour, small_vessel, future):
    """One booking of four passengers blocks deletion and the departure survives."""
    departure = await _create_departure(test_client, operator_headers, whale_tour.id, small_vessel.id, future())
    await test_client.post(
        "/v1/booking/create",
        json={
            "scheduled_tour_id": departure["id"],
            "passenger_count": 4,
            "customer_name": "Jane Doe",
            "customer_email": "jane@example.com",
        },
        headers=operator_headers,
    )

    response = await test_client.post(
        "/v1/scheduled-tour/delete", json={"scheduled_tour_id": departure["id"]}, headers=operator_headers
    )

    assert response.status_code == 409
    problem = response.json()
    assert problem["code"] == "CANNOT_DELETE"
    assert "1 booking(s) with 4 passenger(s)" in problem["detail"]

    still_there = await test_client.post(
        "/v1/scheduled-tour/get", json={"scheduled_tour_id": departure["id"]}, headers=operator_headers
    )
    assert still_there.status_code == 200


@pytest.mark.asyncio
async def test_delete_empty_scheduled_tour(test_client, operator_headers, whale_tour, small_vessel, future):
    departure = await _create_departure(test_client, operator_headers, whale_tour.id, small_vessel.id, future())

    response = await test_client.post(
        "/v1/scheduled-tour/delete", json={"scheduled_tour_id": departure["id"]}, headers=operator_headers
    )

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == departure["id"]
    assert data["tour_title"] == "3-Hour Whale Watching Adventure"


@pytest.mark.asyncio
async def test_search_endpoint(test_client, operator_headers, whale_tour, small_vessel, future):
    """Test the scheduled tour search endpoint."""
    await _create_departure(test_client, operator_headers, whale_tour.id, small_vessel.id, future())

    response = await test_client.post(
        "/v1/scheduled-tour/search",
        json={"available_only": True, "limit": 10},
        headers=operator_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert "items" in data
    assert len(data["items"]) == 1


@pytest.mark.asyncio
async def test_search_rejects_inverted_range(test_client, operator_headers, future):
    response = await test_client.post(
        "/v1/scheduled-tour/search",
        json={"start_from": future(48).isoformat(), "start_to": future(24).isoformat()},
        headers=operator_headers,
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_tenant_isolation_on_get(test_client, operator_headers, other_operator, whale_tour, small_vessel, future):
    other_headers = {"X-Operator-ID": str(other_operator.id)}
    departure = await _create_departure(test_client, operator_headers, whale_tour.id, small_vessel.id, future())

    response = await test_client.post(
        "/v1/scheduled-tour/get", json={"scheduled_tour_id": departure["id"]}, headers=other_headers
    )

    assert response.status_code == 404
