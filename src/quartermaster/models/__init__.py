"""SQLAlchemy models for the Quartermaster logistics schema.

This module exports all database models and the declarative base.
"""

from .base import Base, TimestampCreatedMixin, TimestampMixin, utc_now

# Catalog
from .catalog import Item

# Containers
from .container import Container, ContainerItem

# Locations and yards
from .location import Location, Yard

# Orders and their archive
from .order import ArchivedOrder, ArchivedOrderItem, Order, OrderItem

# Regiments, wars and membership
from .regiment import Membership, Profile, RecruitApplication, Regiment, War

# Shipments
from .shipment import Shipment, ShipmentEvent

ARCHIVE_TABLES = (ArchivedOrder.__table__, ArchivedOrderItem.__table__)

__all__ = [
    "ARCHIVE_TABLES",
    "ArchivedOrder",
    "ArchivedOrderItem",
    "Base",
    "Container",
    "ContainerItem",
    "Item",
    "Location",
    "Membership",
    "Order",
    "OrderItem",
    "Profile",
    "RecruitApplication",
    "Regiment",
    "Shipment",
    "ShipmentEvent",
    "TimestampCreatedMixin",
    "TimestampMixin",
    "War",
    "Yard",
    "utc_now",
]
