"""Shipment state machine and its effects on the bound container."""

from __future__ import annotations

from dataclasses import dataclass

from quartermaster.domain.enums import ContainerState, ShipmentMode, ShipmentStatus
from quartermaster.domain.errors import PreconditionFailed, ValidationError

FORWARD_ORDER: tuple[ShipmentStatus, ...] = (
    ShipmentStatus.OPEN,
    ShipmentStatus.LOADING,
    ShipmentStatus.IN_TRANSIT,
    ShipmentStatus.ARRIVED,
    ShipmentStatus.UNLOADED,
    ShipmentStatus.COMPLETE,
)
TERMINAL: frozenset[ShipmentStatus] = frozenset({ShipmentStatus.COMPLETE, ShipmentStatus.ABORTED})


@dataclass(frozen=True, slots=True)
class ContainerEffect:
    """Changes a shipment status applies to its container.

    Flags left False do not touch the matching container column.
    """

    state: ContainerState
    clear_yard: bool = False
    stamp_archived: bool = False
    release_shipment: bool = False


def parse_mode(raw: object) -> ShipmentMode:
    try:
        return ShipmentMode(str(raw or "").strip().lower())
    except ValueError as exc:
        raise ValidationError("mode must be one of: truck, train, boat") from exc


def parse_status(raw: object) -> ShipmentStatus:
    try:
        return ShipmentStatus(str(raw or "").strip().lower())
    except ValueError as exc:
        raise ValidationError("Invalid status") from exc


def check_transition(current: ShipmentStatus, new: ShipmentStatus) -> None:
    """Validate a shipment status change.

    Shipments only move forward along :data:`FORWARD_ORDER`, optionally
    skipping steps. ``aborted`` is reachable from any non-terminal status and
    nothing leaves a terminal status.
    """

    if current in TERMINAL:
        if new == current:
            return
        raise PreconditionFailed(f"Shipment is already {current}")
    if new == ShipmentStatus.ABORTED:
        return
    if FORWARD_ORDER.index(new) < FORWARD_ORDER.index(current):
        raise PreconditionFailed(f"Shipment cannot move from {current} back to {new}")


def stamps_departure(status: ShipmentStatus) -> bool:
    return status == ShipmentStatus.IN_TRANSIT


def stamps_arrival(status: ShipmentStatus) -> bool:
    return status in (ShipmentStatus.ARRIVED, ShipmentStatus.UNLOADED, ShipmentStatus.COMPLETE)


def container_effect(status: ShipmentStatus) -> ContainerEffect | None:
    """Return the container change driven by ``status``, if any."""

    if status == ShipmentStatus.IN_TRANSIT:
        return ContainerEffect(state=ContainerState.IN_TRANSIT, clear_yard=True)
    if status == ShipmentStatus.COMPLETE:
        return ContainerEffect(state=ContainerState.DELIVERED, clear_yard=True, stamp_archived=True)
    if status == ShipmentStatus.ABORTED:
        # The yard is not restored; a stranded container needs an explicit yard reassignment.
        return ContainerEffect(state=ContainerState.READY, release_shipment=True)
    return None
