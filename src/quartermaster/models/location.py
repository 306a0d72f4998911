"""Location and yard models."""

from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quartermaster.domain.enums import LocationType

from .base import Base, TimestampCreatedMixin, enum_check

if TYPE_CHECKING:
    from .regiment import War


class Location(Base, TimestampCreatedMixin):
    """A named place on the war map: yards, depots and shipment destinations."""

    __tablename__ = "locations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    war_id: Mapped[int] = mapped_column(Integer, ForeignKey("wars.id"), nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    type: Mapped[str] = mapped_column(String, nullable=False, default=LocationType.OTHER.value)
    region: Mapped[str | None] = mapped_column(String, nullable=True)
    grid_ref: Mapped[str | None] = mapped_column(String, nullable=True)
    notes: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        CheckConstraint(enum_check("type", LocationType), name="ck_locations_type"),
        Index("idx_locations_war_region", "war_id", "region"),
    )

    def __repr__(self) -> str:
        return f"<Location(id={self.id}, name='{self.name}', region='{self.region}')>"


class Yard(Base, TimestampCreatedMixin):
    """A staging area holding containers while they fill and wait for shipment."""

    __tablename__ = "yards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    war_id: Mapped[int] = mapped_column(Integer, ForeignKey("wars.id"), nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    location_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("locations.id"), nullable=True
    )

    war: Mapped["War"] = relationship("War", back_populates="yards")
    location: Mapped[Optional["Location"]] = relationship("Location")

    def __repr__(self) -> str:
        return f"<Yard(id={self.id}, name='{self.name}', war={self.war_id})>"
