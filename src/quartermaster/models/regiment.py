"""Regiment, war and membership models.

This module contains models for:
- Regiments (the organizational tenant) and their wars
- Profiles of signed-in accounts and their regiment memberships
- Recruit applications submitted through the join flow
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

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

from quartermaster.domain.enums import ApplicationStatus, Role

from .base import Base, TimestampCreatedMixin, TimestampMixin, enum_check

if TYPE_CHECKING:
    from .location import Yard


class Regiment(Base, TimestampCreatedMixin):
    """The organizational tenant.

    Attributes:
        id: Primary key
        slug: Unique short name used to look the regiment up
        name: Display name
        active_war_id: War that scopes all operational data, if any
    """

    __tablename__ = "regiments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slug: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    # Plain column: wars reference regiments, so a foreign key here would be circular.
    active_war_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    wars: Mapped[list["War"]] = relationship("War", back_populates="regiment")

    def __repr__(self) -> str:
        return f"<Regiment(id={self.id}, slug='{self.slug}', active_war={self.active_war_id})>"


class War(Base, TimestampCreatedMixin):
    """A time-boxed operational period; the unit of reset for all logistics data."""

    __tablename__ = "wars"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    regiment_id: Mapped[int] = mapped_column(Integer, ForeignKey("regiments.id"), nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="active")
    next_order_no: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    ended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    regiment: Mapped["Regiment"] = relationship("Regiment", back_populates="wars")
    yards: Mapped[list["Yard"]] = relationship("Yard", back_populates="war")

    __table_args__ = (
        CheckConstraint("status IN ('active', 'ended')", name="ck_wars_status"),
        CheckConstraint("next_order_no >= 1", name="ck_wars_next_order_no"),
    )

    def __repr__(self) -> str:
        return f"<War(id={self.id}, name='{self.name}', status='{self.status}')>"


class Profile(Base, TimestampMixin):
    """A signed-in account, keyed by the identity provider's user id."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    regiment_id: Mapped[int] = mapped_column(Integer, ForeignKey("regiments.id"), nullable=False)
    discord_id: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    discord_name: Mapped[str | None] = mapped_column(String, nullable=True)
    display_name: Mapped[str] = mapped_column(String, nullable=False)
    timezone: Mapped[str | None] = mapped_column(String, nullable=True)

    membership: Mapped[Optional["Membership"]] = relationship(
        "Membership", back_populates="profile", uselist=False
    )


class Membership(Base, TimestampMixin):
    """A profile's role within a regiment.

    Attributes:
        id: Primary key
        profile_id: Owning profile (one membership per profile)
        regiment_id: Regiment the role applies to
        role: recruit/member/officer/high_command/commander
    """

    __tablename__ = "memberships"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    profile_id: Mapped[str] = mapped_column(
        String, ForeignKey("profiles.id"), nullable=False, unique=True
    )
    regiment_id: Mapped[int] = mapped_column(Integer, ForeignKey("regiments.id"), nullable=False)
    role: Mapped[str] = mapped_column(String, nullable=False, default=Role.MEMBER.value)

    profile: Mapped["Profile"] = relationship("Profile", back_populates="membership")
    regiment: Mapped["Regiment"] = relationship("Regiment")

    __table_args__ = (
        CheckConstraint(enum_check("role", Role), name="ck_memberships_role"),
        Index("idx_memberships_regiment", "regiment_id"),
    )

    def __repr__(self) -> str:
        return f"<Membership(profile='{self.profile_id}', role='{self.role}')>"


class RecruitApplication(Base, TimestampMixin):
    """A join application awaiting or past officer review."""

    __tablename__ = "recruit_applications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    regiment_id: Mapped[int] = mapped_column(Integer, ForeignKey("regiments.id"), nullable=False)
    discord_user_id: Mapped[str] = mapped_column(String, nullable=False)
    discord_name: Mapped[str] = mapped_column(String, nullable=False)
    timezone: Mapped[str | None] = mapped_column(String, nullable=True)
    typical_play_times: Mapped[str | None] = mapped_column(String, nullable=True)
    experience_level: Mapped[str | None] = mapped_column(String, nullable=True)
    notes: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=ApplicationStatus.PENDING.value
    )
    reviewed_by: Mapped[str | None] = mapped_column(String, nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    review_notes: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        UniqueConstraint("regiment_id", "discord_user_id", name="uq_recruit_applications_discord"),
        CheckConstraint(
            enum_check("status", ApplicationStatus),
            name="ck_recruit_applications_status",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<RecruitApplication(id={self.id}, discord='{self.discord_user_id}', "
            f"status='{self.status}')>"
        )
