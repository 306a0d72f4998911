"""Shipment models.

This module contains models for:
- Shipments carrying a single container to a destination
- ShipmentEvents, the append-only audit trail of a shipment
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quartermaster.domain.enums import ShipmentEventType, ShipmentMode, ShipmentStatus

from .base import Base, TimestampCreatedMixin, TimestampMixin, enum_check

if TYPE_CHECKING:
    from .location import Location


class Shipment(Base, TimestampMixin):
    """A truck, train or boat run carrying a container.

    Attributes:
        id: Primary key
        war_id: War the shipment belongs to
        mode: truck/train/boat
        status: open/loading/in_transit/arrived/unloaded/complete/aborted
        from_location_id: Location of the yard the container left from
        to_location_id: Destination location
        route_notes: Free-form routing notes
        created_by: Profile id of the officer who created it
        departed_at: Set when the shipment goes in transit
        arrived_at: Set when it arrives, unloads or completes
    """

    __tablename__ = "shipments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    war_id: Mapped[int] = mapped_column(Integer, ForeignKey("wars.id"), nullable=False)
    mode: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=ShipmentStatus.OPEN.value
    )
    from_location_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("locations.id"), nullable=True
    )
    to_location_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("locations.id"), nullable=False
    )
    route_notes: Mapped[str | None] = mapped_column(String, nullable=True)
    created_by: Mapped[str] = mapped_column(String, nullable=False)
    departed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    arrived_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    from_location: Mapped[Optional["Location"]] = relationship(
        "Location", foreign_keys=[from_location_id]
    )
    to_location: Mapped["Location"] = relationship("Location", foreign_keys=[to_location_id])
    events: Mapped[list["ShipmentEvent"]] = relationship(
        "ShipmentEvent",
        back_populates="shipment",
        cascade="all, delete-orphan",
        order_by="ShipmentEvent.id",
    )

    __table_args__ = (
        CheckConstraint(enum_check("mode", ShipmentMode), name="ck_shipments_mode"),
        CheckConstraint(enum_check("status", ShipmentStatus), name="ck_shipments_status"),
        Index("idx_shipments_war_status", "war_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<Shipment(id={self.id}, mode='{self.mode}', status='{self.status}')>"


class ShipmentEvent(Base, TimestampCreatedMixin):
    """Audit record of a shipment being created or changing status."""

    __tablename__ = "shipment_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    shipment_id: Mapped[int] = mapped_column(Integer, ForeignKey("shipments.id"), nullable=False)
    actor_id: Mapped[str] = mapped_column(String, nullable=False)
    event_type: Mapped[str] = mapped_column(String, nullable=False)
    message: Mapped[str] = mapped_column(String, nullable=False)

    shipment: Mapped["Shipment"] = relationship("Shipment", back_populates="events")

    __table_args__ = (
        CheckConstraint(
            enum_check("event_type", ShipmentEventType), name="ck_shipment_events_type"
        ),
        Index("idx_shipment_events_shipment", "shipment_id"),
    )
