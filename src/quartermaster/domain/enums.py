"""Enumerations shared by the logistics domain."""

from __future__ import annotations

from enum import StrEnum


class Role(StrEnum):
    """Regiment roles, lowest rank first."""

    RECRUIT = "recruit"
    MEMBER = "member"
    OFFICER = "officer"
    HIGH_COMMAND = "high_command"
    COMMANDER = "commander"


class ApplicationStatus(StrEnum):
    """Review state of a join application."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class ItemUnit(StrEnum):
    """How a catalog item is counted."""

    CRATE = "crate"
    ITEM = "item"
    VEHICLE = "vehicle"


class OrderType(StrEnum):
    """Kinds of live orders."""

    PRODUCTION = "production"


class OrderStatus(StrEnum):
    """Status column of an individual production order."""

    OPEN = "open"
    IN_PROGRESS = "in_progress"
    READY = "ready"
    COMPLETE = "complete"
    CANCELLED = "cancelled"


class OrderKind(StrEnum):
    """What a production request creates."""

    INDIVIDUAL = "individual"
    CONTAINER = "container"


class Lane(StrEnum):
    """Board grouping derived from order status."""

    QUEUED = "queued"
    PRODUCING = "producing"
    READY = "ready"
    COMPLETE = "complete"


class ContainerState(StrEnum):
    """Fill and transport state of a container."""

    FILLING = "filling"
    READY = "ready"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"


class ShipmentMode(StrEnum):
    """Carrier used by a shipment."""

    TRUCK = "truck"
    TRAIN = "train"
    BOAT = "boat"


class ShipmentStatus(StrEnum):
    """Shipment lifecycle, in forward order with ``aborted`` last."""

    OPEN = "open"
    LOADING = "loading"
    IN_TRANSIT = "in_transit"
    ARRIVED = "arrived"
    UNLOADED = "unloaded"
    COMPLETE = "complete"
    ABORTED = "aborted"


class ShipmentEventType(StrEnum):
    """Audit entry kinds for shipments."""

    CREATED = "created"
    STATUS = "status"


class LocationType(StrEnum):
    """Location classifications used for yards and destinations."""

    YARD = "yard"
    DEPOT = "depot"
    SEAPORT = "seaport"
    FACILITY = "facility"
    FRONTLINE = "frontline"
    OTHER = "other"
