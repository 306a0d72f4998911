"""Production order models.

This module contains models for:
- Orders (individual production orders) and their line items
- ArchivedOrders, the terminal copies of completed production orders
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quartermaster.domain.enums import OrderStatus, OrderType

from .base import Base, TimestampCreatedMixin, TimestampMixin, enum_check

if TYPE_CHECKING:
    from .catalog import Item


class Order(Base, TimestampMixin):
    """An individual production order.

    Attributes:
        id: Primary key
        war_id: War the order belongs to
        type: Order type (production)
        title: Display title
        status: open/in_progress/ready/complete/cancelled
        order_no: Sequential number within the war
        created_by: Profile id of the creator
    """

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    war_id: Mapped[int] = mapped_column(Integer, ForeignKey("wars.id"), nullable=False)
    type: Mapped[str] = mapped_column(String, nullable=False, default=OrderType.PRODUCTION.value)
    title: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default=OrderStatus.OPEN.value)
    order_no: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_by: Mapped[str] = mapped_column(String, nullable=False)

    items: Mapped[list["OrderItem"]] = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )

    __table_args__ = (
        CheckConstraint(enum_check("status", OrderStatus), name="ck_orders_status"),
        UniqueConstraint("war_id", "order_no", name="uq_orders_war_order_no"),
        Index("idx_orders_war_status", "war_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<Order(id={self.id}, title='{self.title}', status='{self.status}')>"


class OrderItem(Base):
    """One line of an order: a required and a done quantity of an item."""

    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_id: Mapped[int] = mapped_column(Integer, ForeignKey("orders.id"), nullable=False)
    item_id: Mapped[int] = mapped_column(Integer, ForeignKey("items.id"), nullable=False)
    qty_required: Mapped[int] = mapped_column(Integer, nullable=False)
    qty_done: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    order: Mapped["Order"] = relationship("Order", back_populates="items")
    item: Mapped["Item"] = relationship("Item")

    __table_args__ = (
        CheckConstraint("qty_required > 0", name="ck_order_items_qty_required"),
        CheckConstraint(
            "qty_done >= 0 AND qty_done <= qty_required", name="ck_order_items_qty_done"
        ),
        Index("idx_order_items_order", "order_id"),
    )


class ArchivedOrder(Base, TimestampCreatedMixin):
    """Copy of a completed production order, kept after the live row is deleted."""

    __tablename__ = "archived_orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    original_order_id: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    war_id: Mapped[int] = mapped_column(Integer, ForeignKey("wars.id"), nullable=False)
    type: Mapped[str] = mapped_column(String, nullable=False)
    title: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False)
    order_no: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_by: Mapped[str] = mapped_column(String, nullable=False)
    ordered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    archived_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    archived_by: Mapped[str] = mapped_column(String, nullable=False)

    items: Mapped[list["ArchivedOrderItem"]] = relationship(
        "ArchivedOrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
    )

    __table_args__ = (Index("idx_archived_orders_war", "war_id"),)

    def __repr__(self) -> str:
        return f"<ArchivedOrder(id={self.id}, original={self.original_order_id})>"


class ArchivedOrderItem(Base):
    """Copy of one line of an archived order."""

    __tablename__ = "archived_order_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    archived_order_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("archived_orders.id"), nullable=False
    )
    item_id: Mapped[int] = mapped_column(Integer, ForeignKey("items.id"), nullable=False)
    qty_required: Mapped[int] = mapped_column(Integer, nullable=False)
    qty_done: Mapped[int] = mapped_column(Integer, nullable=False)

    order: Mapped["ArchivedOrder"] = relationship("ArchivedOrder", back_populates="items")
