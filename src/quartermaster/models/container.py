"""Container models.

A container packs up to 60 slots of crates and vehicles. Its
``current_slots`` column is a denormalized sum over its lines that is
recomputed after every line progress write.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quartermaster.domain.enums import ContainerState

from .base import Base, TimestampMixin, enum_check

if TYPE_CHECKING:
    from .catalog import Item
    from .location import Yard
    from .shipment import Shipment


class Container(Base, TimestampMixin):
    """A container being filled, waiting in a yard, or shipped.

    Attributes:
        id: Primary key
        war_id: War the container belongs to
        yard_id: Yard currently holding the container (None once shipped)
        label: Display label
        state: filling/ready/in_transit/delivered
        max_slots: Capacity in slots
        current_slots: Sum of qty_done * slot_count over all lines
        assigned_shipment_id: Shipment that claimed the container
        created_by: Profile id of the creator
        archived_at: Set when the carrying shipment completes
    """

    __tablename__ = "containers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    war_id: Mapped[int] = mapped_column(Integer, ForeignKey("wars.id"), nullable=False)
    yard_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("yards.id"), nullable=True)
    label: Mapped[str] = mapped_column(String, nullable=False)
    state: Mapped[str] = mapped_column(
        String, nullable=False, default=ContainerState.FILLING.value
    )
    max_slots: Mapped[int] = mapped_column(Integer, nullable=False, default=60)
    current_slots: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    assigned_shipment_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("shipments.id"), nullable=True
    )
    created_by: Mapped[str] = mapped_column(String, nullable=False)
    archived_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    items: Mapped[list["ContainerItem"]] = relationship(
        "ContainerItem",
        back_populates="container",
        cascade="all, delete-orphan",
        order_by="ContainerItem.id",
    )
    yard: Mapped[Optional["Yard"]] = relationship("Yard")
    shipment: Mapped[Optional["Shipment"]] = relationship("Shipment")

    __table_args__ = (
        CheckConstraint(enum_check("state", ContainerState), name="ck_containers_state"),
        CheckConstraint("current_slots >= 0", name="ck_containers_current_slots"),
        Index("idx_containers_war_state", "war_id", "state"),
        Index("idx_containers_shipment", "assigned_shipment_id"),
    )

    @property
    def required_slots(self) -> int:
        return sum(line.qty_required * line.slot_count for line in self.items)

    def __repr__(self) -> str:
        return (
            f"<Container(id={self.id}, label='{self.label}', state='{self.state}', "
            f"slots={self.current_slots}/{self.max_slots})>"
        )


class ContainerItem(Base):
    """One line of a container with the slot cost captured at creation."""

    __tablename__ = "container_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    container_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("containers.id"), nullable=False
    )
    item_id: Mapped[int] = mapped_column(Integer, ForeignKey("items.id"), nullable=False)
    qty_required: Mapped[int] = mapped_column(Integer, nullable=False)
    qty_done: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    slot_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    container: Mapped["Container"] = relationship("Container", back_populates="items")
    item: Mapped["Item"] = relationship("Item")

    __table_args__ = (
        CheckConstraint("qty_required > 0", name="ck_container_items_qty_required"),
        CheckConstraint(
            "qty_done >= 0 AND qty_done <= qty_required", name="ck_container_items_qty_done"
        ),
        CheckConstraint("slot_count >= 1", name="ck_container_items_slot_count"),
        Index("idx_container_items_container", "container_id"),
    )
