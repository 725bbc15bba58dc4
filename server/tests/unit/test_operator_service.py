"""Unit tests for the operator service."""

from uuid import uuid4

import pytest
from sqlalchemy import func, select

from charter_api.core.exceptions import ConflictError, NotFoundError
from charter_api.models import Vessel
from charter_api.schemas.operator import CreateOperatorRequest, UpdateOperatorRequest
from charter_api.services.operator_service import OperatorService, slugify


@pytest.mark.parametrize(
    "name,expected",
    [
        ("Campbell River Charters", "campbell-river-charters"),
        ("  Orca & Co. Tours!  ", "orca-co-tours"),
        ("Sea_Wolf -- Adventures", "sea-wolf-adventures"),
        ("!!!", "operator"),
    ],
)
def test_slugify(name, expected):
    assert slugify(name) == expected


@pytest.mark.asyncio
async def test_create_operator_lowercases_email(test_session):
    operator = await OperatorService(test_session).create_operator(CreateOperatorRequest(
        name="Discovery Marine Safaris", email="Bookings@DiscoveryMarine.com",
    ))

    assert operator.slug == "discovery-marine-safaris"
    assert operator.email == "bookings@discoverymarine.com"
    assert operator.created_at is not None


@pytest.mark.asyncio
async def test_slug_collision_gets_suffix(test_session, operator):
    service = OperatorService(test_session)

    second = await service.create_operator(CreateOperatorRequest(
        name="Campbell River Charters", email="second@example.com",
    ))
    third = await service.create_operator(CreateOperatorRequest(
        name="Campbell River Charters", email="third@example.com",
    ))

    assert operator.slug == "campbell-river-charters"
    assert second.slug == "campbell-river-charters-1"
    assert third.slug == "campbell-river-charters-2"


@pytest.mark.asyncio
async def test_duplicate_email_conflicts(test_session, operator):
    with pytest.raises(ConflictError) as exc_info:
        await OperatorService(test_session).create_operator(CreateOperatorRequest(
            name="Copycat Charters", email="INFO@campbellrivercharters.com",
        ))

    assert exc_info.value.status_code == 409


@pytest.mark.asyncio
async def test_rename_regenerates_slug(test_session, operator):
    operator_id = operator.id

    updated = await OperatorService(test_session).update_operator(UpdateOperatorRequest(
        operator_id=operator_id, name="Quadra Island Kayaks", phone="+1 (250) 555-9999",
    ))

    assert updated.slug == "quadra-island-kayaks"
    assert updated.phone == "+1 (250) 555-9999"
    assert (await OperatorService(test_session).get_operator_by_slug_or_raise("quadra-island-kayaks")).id == operator_id


@pytest.mark.asyncio
async def test_update_email_to_taken_address(test_session, operator, other_operator):
    other_id = other_operator.id

    with pytest.raises(ConflictError):
        await OperatorService(test_session).update_operator(UpdateOperatorRequest(
            operator_id=other_id, email="info@campbellrivercharters.com",
        ))


@pytest.mark.asyncio
async def test_update_unknown_operator(test_session):
    with pytest.raises(NotFoundError):
        await OperatorService(test_session).update_operator(UpdateOperatorRequest(
            operator_id=uuid4(), name="Nobody",
        ))


@pytest.mark.asyncio
async def test_list_operators_ordered_by_name(test_session, operator, other_operator):
    operators = await OperatorService(test_session).list_operators()

    assert [o.name for o in operators] == ["Campbell River Charters", "Tofino Sea Tours"]


@pytest.mark.asyncio
async def test_delete_operator_removes_fleet(test_session, operator, small_vessel, large_vessel):
    operator_id = operator.id
    service = OperatorService(test_session)

    await service.delete_operator(operator_id)

    assert await service.get_operator_by_id(operator_id) is None
    remaining = await test_session.execute(select(func.count(Vessel.id)).where(Vessel.operator_id == operator_id))
    assert remaining.scalar_one() == 0


@pytest.mark.asyncio
async def test_get_operator_by_slug_missing(test_session):
    with pytest.raises(NotFoundError):
        await OperatorService(test_session).get_operator_by_slug_or_raise("no-such-operator")
