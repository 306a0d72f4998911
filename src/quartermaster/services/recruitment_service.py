"""Join applications, officer review and membership provisioning."""

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from quartermaster.config import Settings
from quartermaster.domain.enums import ApplicationStatus, Role
from quartermaster.domain.errors import (
    ApplicationRejected,
    NotFound,
    ReferenceDataMissing,
    ValidationError,
)
from quartermaster.domain.identity import Identity, is_valid_discord_id
from quartermaster.domain.roles import rank, require_role
from quartermaster.models import Membership, Profile, RecruitApplication, Regiment, utc_now
from quartermaster.services.membership_service import Member

logger = logging.getLogger(__name__)

DEFAULT_DISPLAY_NAME = "RSi Member"


@dataclass(slots=True)
class ApplicationForm:
    """Fields submitted through the join form."""

    discord_user_id: str = ""
    discord_name: str = ""
    timezone: str | None = None
    typical_play_times: str | None = None
    experience_level: str | None = None
    notes: str | None = None


@dataclass(frozen=True, slots=True)
class SubmissionResult:
    status: ApplicationStatus
    updated: bool = False


@dataclass(frozen=True, slots=True)
class BootstrapResult:
    """Outcome of provisioning: ``none``, ``pending``, ``rejected`` or ``accepted``."""

    status: str
    bootstrapped: bool = False
    role: Role | None = None


def _blank_to_none(value: str | None) -> str | None:
    value = (value or "").strip()
    return value or None


class RecruitmentService:
    """Service for the join flow and for turning accepted applicants into members."""

    def __init__(self, session: Session, settings: Settings):
        self.session = session
        self.settings = settings

    def regiment(self) -> Regiment:
        regiment = self.session.scalar(
            select(Regiment).where(Regiment.slug == self.settings.regiment_slug)
        )
        if regiment is None:
            raise ReferenceDataMissing("Regiment not found")
        return regiment

    def _application_for(self, regiment_id: int, discord_id: str) -> RecruitApplication | None:
        return self.session.scalar(
            select(RecruitApplication)
            .where(
                RecruitApplication.regiment_id == regiment_id,
                RecruitApplication.discord_user_id == discord_id,
            )
            .order_by(RecruitApplication.created_at.desc())
        )

    def submit(self, form: ApplicationForm, identity: Identity | None = None) -> SubmissionResult:
        """Submit or refresh a join application.

        A signed-in caller's Discord id always wins over the form. Pending
        applications are updated in place without resetting their review
        state; rejected ones stay rejected.

        Raises:
            ValidationError: If the Discord id or name is missing or malformed
            ApplicationRejected: If this Discord account was already rejected
            ReferenceDataMissing: If the configured regiment does not exist
        """
        discord_id = form.discord_user_id.strip()
        discord_name = form.discord_name.strip()
        if identity is not None:
            discord_id = identity.discord_id or discord_id
            discord_name = discord_name or identity.discord_name or ""

        if not is_valid_discord_id(discord_id):
            raise ValidationError("Discord User ID must be numeric (10-30 digits).")
        if not discord_name:
            raise ValidationError("Discord name is required.")

        regiment = self.regiment()
        details = {
            "discord_name": discord_name,
            "timezone": _blank_to_none(form.timezone),
            "typical_play_times": _blank_to_none(form.typical_play_times),
            "experience_level": _blank_to_none(form.experience_level),
            "notes": _blank_to_none(form.notes),
        }

        existing = self._application_for(regiment.id, discord_id)
        if existing is None:
            try:
                self.session.add(
                    RecruitApplication(
                        regiment_id=regiment.id,
                        discord_user_id=discord_id,
                        status=ApplicationStatus.PENDING.value,
                        **details,
                    )
                )
                self.session.commit()
                logger.info("new application from discord %s", discord_id)
                return SubmissionResult(status=ApplicationStatus.PENDING)
            except IntegrityError:
                # Lost a race with a concurrent submission of the same account.
                self.session.rollback()
                existing = self._application_for(regiment.id, discord_id)
                if existing is None:
                    raise

        return self._resubmit(existing, details)

    def _resubmit(self, existing: RecruitApplication, details: dict) -> SubmissionResult:
        status = ApplicationStatus(existing.status)
        if status == ApplicationStatus.REJECTED:
            raise ApplicationRejected()
        if status == ApplicationStatus.ACCEPTED:
            return SubmissionResult(status=status)

        try:
            for key, value in details.items():
                setattr(existing, key, value)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return SubmissionResult(status=status, updated=True)

    def review(
        self,
        actor: Member,
        application_id: int,
        status: ApplicationStatus | str,
        notes: str | None = None,
    ) -> RecruitApplication:
        """Accept, reject or reset an application (officer and above)."""
        require_role(actor.role, Role.OFFICER)
        try:
            new_status = ApplicationStatus(str(status).strip().lower())
        except ValueError as exc:
            raise ValidationError("Invalid status") from exc

        try:
            application = self.session.get(RecruitApplication, application_id)
            if application is None or application.regiment_id != actor.regiment_id:
                raise NotFound("Application not found")

            reviewed = new_status != ApplicationStatus.PENDING
            application.status = new_status.value
            application.reviewed_by = actor.profile_id if reviewed else None
            application.reviewed_at = utc_now() if reviewed else None
            application.review_notes = _blank_to_none(notes) if reviewed else None
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        logger.info(
            "application %s set to %s by %s", application_id, new_status, actor.profile_id
        )
        return application

    def bootstrap(self, identity: Identity) -> BootstrapResult:
        """Provision profile and membership for an accepted applicant.

        Safe to call repeatedly: an existing membership keeps its role unless
        the bootstrap role ranks higher.
        """
        discord_id = identity.discord_id
        if not discord_id:
            raise ValidationError("Missing Discord ID")

        regiment = self.regiment()
        application = self._application_for(regiment.id, discord_id)
        if application is None:
            return BootstrapResult(status="none")
        if application.status == ApplicationStatus.REJECTED:
            return BootstrapResult(status=ApplicationStatus.REJECTED.value)
        if application.status != ApplicationStatus.ACCEPTED:
            return BootstrapResult(status=ApplicationStatus.PENDING.value)

        display_name = application.discord_name or identity.discord_name or DEFAULT_DISPLAY_NAME
        role = Role.MEMBER
        if self.settings.bootstrap_discord_id and self.settings.bootstrap_discord_id == discord_id:
            role = Role(self.settings.bootstrap_role)

        try:
            profile = self.session.get(Profile, identity.profile_id)
            if profile is None:
                profile = Profile(id=identity.profile_id, regiment_id=regiment.id)
                self.session.add(profile)
            profile.regiment_id = regiment.id
            profile.discord_id = discord_id
            profile.discord_name = display_name
            profile.display_name = display_name
            profile.timezone = application.timezone

            membership = self.session.scalar(
                select(Membership).where(Membership.profile_id == identity.profile_id)
            )
            if membership is None:
                membership = Membership(
                    profile_id=identity.profile_id, regiment_id=regiment.id, role=role.value
                )
                self.session.add(membership)
            elif rank(role) > rank(membership.role):
                membership.role = role.value
            membership.regiment_id = regiment.id
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        logger.info("bootstrapped %s as %s", identity.profile_id, membership.role)
        return BootstrapResult(
            status=ApplicationStatus.ACCEPTED.value, bootstrapped=True, role=Role(membership.role)
        )
