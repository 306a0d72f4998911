"""Catalog item model.

Items are upserted in bulk from the external catalog feed, keyed by slug,
and are read-only reference data for orders and containers.
"""

from typing import Any

from sqlalchemy import JSON, Boolean, CheckConstraint, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from quartermaster.domain.catalog import RESOURCES
from quartermaster.domain.enums import ItemUnit

from .base import Base, TimestampMixin, enum_check


class Item(Base, TimestampMixin):
    """A producible item.

    Attributes:
        id: Primary key
        slug: Stable identifier derived from the feed's image or name
        name: Display name
        category: Feed category
        unit: crate/item/vehicle
        crate_size: Loose items per crate when known
        slot_count: Container slots one unit occupies
        cost_bmat, cost_rmat, cost_emat, cost_hemat: Resources per crate
        is_active: Whether the item can be ordered
        meta: Raw feed record
    """

    __tablename__ = "items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slug: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    category: Mapped[str] = mapped_column(String, nullable=False, default="Unknown")
    unit: Mapped[str] = mapped_column(String, nullable=False, default=ItemUnit.CRATE.value)
    crate_size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    slot_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    cost_bmat: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    cost_rmat: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    cost_emat: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    cost_hemat: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    meta: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    __table_args__ = (
        CheckConstraint(enum_check("unit", ItemUnit), name="ck_items_unit"),
        CheckConstraint("slot_count >= 1", name="ck_items_slot_count"),
    )

    @property
    def cost(self) -> dict[str, int]:
        return {resource: getattr(self, f"cost_{resource}") or 0 for resource in RESOURCES}

    def __repr__(self) -> str:
        return f"<Item(id={self.id}, slug='{self.slug}', unit='{self.unit}')>"
