"""Tests for the shipment status machine."""

import pytest

from quartermaster.domain.enums import ContainerState, ShipmentMode, ShipmentStatus
from quartermaster.domain.errors import PreconditionFailed, ValidationError
from quartermaster.domain.shipping import (
    FORWARD_ORDER,
    check_transition,
    container_effect,
    parse_mode,
    parse_status,
    stamps_arrival,
    stamps_departure,
)


def test_parse_mode():
    assert parse_mode("Boat") == ShipmentMode.BOAT
    with pytest.raises(ValidationError, match="mode must be one of: truck, train, boat"):
        parse_mode("plane")


def test_parse_status_rejects_unknown():
    with pytest.raises(ValidationError):
        parse_status("lost")


@pytest.mark.parametrize(
    ("current", "new"),
    [
        (ShipmentStatus.OPEN, ShipmentStatus.LOADING),
        (ShipmentStatus.OPEN, ShipmentStatus.IN_TRANSIT),
        (ShipmentStatus.LOADING, ShipmentStatus.COMPLETE),
        (ShipmentStatus.ARRIVED, ShipmentStatus.ARRIVED),
        (ShipmentStatus.IN_TRANSIT, ShipmentStatus.ABORTED),
        (ShipmentStatus.COMPLETE, ShipmentStatus.COMPLETE),
    ],
)
def test_allowed_transitions(current, new):
    check_transition(current, new)


@pytest.mark.parametrize(
    ("current", "new"),
    [
        (ShipmentStatus.IN_TRANSIT, ShipmentStatus.LOADING),
        (ShipmentStatus.UNLOADED, ShipmentStatus.OPEN),
        (ShipmentStatus.COMPLETE, ShipmentStatus.ABORTED),
        (ShipmentStatus.ABORTED, ShipmentStatus.OPEN),
    ],
)
def test_rejected_transitions(current, new):
    with pytest.raises(PreconditionFailed):
        check_transition(current, new)


def test_aborted_reachable_from_every_non_terminal_status():
    for status in FORWARD_ORDER[:-1]:
        check_transition(status, ShipmentStatus.ABORTED)


def test_timestamps():
    assert stamps_departure(ShipmentStatus.IN_TRANSIT)
    assert not stamps_departure(ShipmentStatus.LOADING)
    assert all(
        stamps_arrival(status)
        for status in (ShipmentStatus.ARRIVED, ShipmentStatus.UNLOADED, ShipmentStatus.COMPLETE)
    )
    assert not stamps_arrival(ShipmentStatus.ABORTED)


def test_container_effects():
    in_transit = container_effect(ShipmentStatus.IN_TRANSIT)
    assert in_transit.state == ContainerState.IN_TRANSIT
    assert in_transit.clear_yard and not in_transit.stamp_archived

    complete = container_effect(ShipmentStatus.COMPLETE)
    assert complete.state == ContainerState.DELIVERED
    assert complete.clear_yard and complete.stamp_archived

    aborted = container_effect(ShipmentStatus.ABORTED)
    assert aborted.state == ContainerState.READY
    assert aborted.release_shipment and not aborted.clear_yard

    assert container_effect(ShipmentStatus.LOADING) is None
