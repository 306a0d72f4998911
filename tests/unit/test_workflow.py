"""End-to-end container workflow from packing to delivery."""

import pytest
from sqlalchemy import func, select

from quartermaster.config import Settings
from quartermaster.domain.enums import ContainerState, Role
from quartermaster.domain.errors import CapacityExceeded
from quartermaster.domain.orders import LineRequest
from quartermaster.factory import create_all_services
from quartermaster.models import Container


@pytest.fixture
def services(session):
    return create_all_services(session, settings=Settings())


def test_container_from_packing_to_delivery(services, session, world):
    member = world.actor(Role.MEMBER)
    officer = world.actor(Role.OFFICER)
    containers = services["containers"]
    shipments = services["shipments"]

    container = containers.create(
        member,
        world.war_id,
        world.yard_id,
        "Forward supply",
        [
            LineRequest(world.shell_id, 10),
            LineRequest(world.rifle_id, 20),
        ],
    )
    assert container.required_slots == 40
    assert container.current_slots == 0

    shells, rifles = container.items
    containers.update_item_progress(member, container.id, shells.id, 10)
    result = containers.update_item_progress(member, container.id, rifles.id, 20)
    assert result.slots == 40

    containers.set_state(member, container.id, "ready")

    shipment = shipments.create(
        officer, world.war_id, container.id, world.destination_id, "train"
    )
    assert session.get(Container, container.id).assigned_shipment_id == shipment.id

    shipments.set_status(officer, shipment.id, "in_transit")
    stored = session.get(Container, container.id)
    assert stored.state == ContainerState.IN_TRANSIT
    assert stored.yard_id is None

    shipments.set_status(officer, shipment.id, "complete")
    stored = session.get(Container, container.id)
    assert stored.state == ContainerState.DELIVERED
    assert stored.archived_at is not None

    overview = services["reporting"].war_overview(world.war_id)
    assert overview.delivered_containers == 1
    assert overview.totals.crates == 30
    assert overview.destinations[0].label == "Deadlands • Scorpion Depot"


def test_sixty_one_slot_container_is_never_created(services, session, world):
    with pytest.raises(CapacityExceeded):
        services["containers"].create(
            world.actor(Role.MEMBER),
            world.war_id,
            world.yard_id,
            "Overpacked",
            [
                LineRequest(world.tank_id, 12),
                LineRequest(world.truck_id, 1),
            ],
        )
    assert session.scalar(select(func.count(Container.id))) == 0


def test_all_services_are_wired(services):
    assert set(services) == {
        "membership",
        "recruitment",
        "catalog",
        "archive",
        "orders",
        "containers",
        "shipments",
        "reporting",
    }
    assert services["orders"].archive.policy == Settings().rules().completion
