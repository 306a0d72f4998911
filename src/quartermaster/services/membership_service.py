"""Membership resolution and role management.

Every mutating operation starts by resolving the caller's membership. An
absent membership is an expected outcome (the account has not been accepted
yet) and is reported as :class:`MembershipRequired`, which the presentation
layer turns into a redirect to the pending/apply flow.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from quartermaster.domain.enums import Role
from quartermaster.domain.errors import (
    AuthenticationRequired,
    AuthorizationError,
    MembershipRequired,
    NotFound,
    PreconditionFailed,
    ValidationError,
)
from quartermaster.domain.identity import Identity
from quartermaster.domain.orders import require_int
from quartermaster.domain.roles import rank, require_role
from quartermaster.models import Membership, Regiment, War

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Member:
    """A resolved caller: who they are, where they belong and their role."""

    profile_id: str
    regiment_id: int
    role: Role


class MembershipService:
    """Service resolving identities to memberships."""

    def __init__(self, session: Session):
        self.session = session

    def resolve(self, profile_id: str) -> Member | None:
        """Look up the membership of ``profile_id``; None means absent."""
        membership = self.session.scalar(
            select(Membership).where(Membership.profile_id == profile_id)
        )
        if membership is None:
            return None
        return Member(
            profile_id=membership.profile_id,
            regiment_id=membership.regiment_id,
            role=Role(membership.role),
        )

    def require(self, identity: Identity | None) -> Member:
        """Resolve the caller or raise when they are anonymous or not a member."""
        if identity is None:
            raise AuthenticationRequired()
        member = self.resolve(identity.profile_id)
        if member is None:
            raise MembershipRequired()
        return member

    def active_war_id(self, member: Member) -> int:
        """Return the active war of the caller's regiment.

        Raises:
            PreconditionFailed: If the regiment has no active war
        """
        regiment = self.session.get(Regiment, member.regiment_id)
        if regiment is None or regiment.active_war_id is None:
            raise PreconditionFailed("No active war")
        return regiment.active_war_id

    def set_role(self, actor: Member, profile_id: str, role: Role | str) -> Membership:
        """Change another member's role.

        Officers may manage members ranked below them and may grant at most
        their own rank. Commanders may manage anyone but themselves.

        Raises:
            AuthorizationError: If the actor lacks the rank for this change
            NotFound: If the target has no membership in the actor's regiment
        """
        require_role(actor.role, Role.OFFICER)
        try:
            new_role = Role(str(role).strip().lower())
        except ValueError as exc:
            raise ValidationError("Invalid role") from exc

        if profile_id == actor.profile_id:
            raise AuthorizationError()
        if rank(new_role) > rank(actor.role):
            raise AuthorizationError()

        try:
            membership = self.session.scalar(
                select(Membership).where(Membership.profile_id == profile_id)
            )
            if membership is None or membership.regiment_id != actor.regiment_id:
                raise NotFound("Member not found")
            if actor.role != Role.COMMANDER and rank(membership.role) >= rank(actor.role):
                raise AuthorizationError()

            previous = membership.role
            membership.role = new_role.value
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        logger.info(
            "role of %s changed %s -> %s by %s", profile_id, previous, new_role, actor.profile_id
        )
        return membership


def load_war(session: Session, member: Member, war_id: int | None) -> War:
    """Load a war of the caller's regiment.

    Raises:
        ValidationError: If ``war_id`` is missing or not an integer
        NotFound: If the war does not exist or belongs to another regiment
    """
    war = session.get(War, require_int(war_id, field="war_id"))
    if war is None or war.regiment_id != member.regiment_id:
        raise NotFound("War not found")
    return war
