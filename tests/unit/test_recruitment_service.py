"""Tests for join applications, review and membership bootstrap."""

import pytest
from sqlalchemy import func, select

from quartermaster.config import Settings
from quartermaster.domain.enums import ApplicationStatus, Role
from quartermaster.domain.errors import (
    ApplicationRejected,
    AuthorizationError,
    NotFound,
    ReferenceDataMissing,
    ValidationError,
)
from quartermaster.domain.identity import Identity
from quartermaster.models import Membership, Profile, RecruitApplication
from quartermaster.services.recruitment_service import ApplicationForm, RecruitmentService

DISCORD_ID = "412345678901234567"


def _identity(profile_id="new-user", discord_id=DISCORD_ID, name="Newbie"):
    return Identity(
        profile_id=profile_id,
        claims={"user_metadata": {"provider_id": discord_id, "full_name": name}},
    )


@pytest.fixture
def settings():
    return Settings(regiment_slug="rsi", bootstrap_discord_id="999999999999999999")


@pytest.fixture
def service(session, settings):
    return RecruitmentService(session, settings)


def _application(session):
    return session.scalar(
        select(RecruitApplication).where(RecruitApplication.discord_user_id == DISCORD_ID)
    )


class TestSubmit:
    def test_new_application_is_pending(self, service, session, world):
        result = service.submit(
            ApplicationForm(discord_user_id=DISCORD_ID, discord_name="Newbie", timezone="UTC")
        )
        assert result.status == ApplicationStatus.PENDING
        assert not result.updated
        assert _application(session).timezone == "UTC"

    def test_session_identity_overrides_form_id(self, service, session, world):
        service.submit(ApplicationForm(discord_user_id="123", discord_name="Newbie"), _identity())
        assert _application(session) is not None

    @pytest.mark.parametrize("discord_id", ["", "123", "abcdefghijkl", "1" * 31])
    def test_invalid_discord_id(self, service, world, discord_id):
        with pytest.raises(ValidationError, match="10-30 digits"):
            service.submit(ApplicationForm(discord_user_id=discord_id, discord_name="X"))

    def test_name_required(self, service, world):
        with pytest.raises(ValidationError, match="Discord name is required"):
            service.submit(ApplicationForm(discord_user_id=DISCORD_ID, discord_name=" "))

    def test_resubmit_while_pending_updates_fields(self, service, session, world):
        form = ApplicationForm(discord_user_id=DISCORD_ID, discord_name="Newbie")
        service.submit(form)
        form.notes = "Logi main"
        result = service.submit(form)

        assert result.updated
        application = _application(session)
        assert application.notes == "Logi main"
        assert application.status == ApplicationStatus.PENDING
        count = session.scalar(select(func.count(RecruitApplication.id)))
        assert count == 1

    def test_rejected_applicant_cannot_reapply(self, service, session, world):
        service.submit(ApplicationForm(discord_user_id=DISCORD_ID, discord_name="Newbie"))
        _application(session).status = ApplicationStatus.REJECTED.value
        session.commit()

        with pytest.raises(ApplicationRejected):
            service.submit(ApplicationForm(discord_user_id=DISCORD_ID, discord_name="Again"))
        assert _application(session).discord_name == "Newbie"

    def test_accepted_applicant_gets_status_back(self, service, session, world):
        service.submit(ApplicationForm(discord_user_id=DISCORD_ID, discord_name="Newbie"))
        _application(session).status = ApplicationStatus.ACCEPTED.value
        session.commit()

        result = service.submit(ApplicationForm(discord_user_id=DISCORD_ID, discord_name="N"))
        assert result.status == ApplicationStatus.ACCEPTED
        assert not result.updated

    def test_missing_regiment(self, session, world):
        service = RecruitmentService(session, Settings(regiment_slug="nope"))
        with pytest.raises(ReferenceDataMissing):
            service.submit(ApplicationForm(discord_user_id=DISCORD_ID, discord_name="N"))


class TestReview:
    @pytest.fixture
    def application_id(self, service, session, world):
        service.submit(ApplicationForm(discord_user_id=DISCORD_ID, discord_name="Newbie"))
        return _application(session).id

    def test_accept_stamps_reviewer(self, service, world, application_id):
        application = service.review(
            world.actor(Role.OFFICER), application_id, "accepted", "Welcome"
        )
        assert application.status == "accepted"
        assert application.reviewed_by == "profile-officer"
        assert application.reviewed_at is not None
        assert application.review_notes == "Welcome"

    def test_reset_to_pending_clears_review(self, service, world, application_id):
        officer = world.actor(Role.OFFICER)
        service.review(officer, application_id, "rejected", "No")
        application = service.review(officer, application_id, "pending")
        assert application.reviewed_by is None
        assert application.reviewed_at is None
        assert application.review_notes is None

    def test_member_cannot_review(self, service, world, application_id):
        with pytest.raises(AuthorizationError):
            service.review(world.actor(Role.MEMBER), application_id, "accepted")

    def test_bad_status(self, service, world, application_id):
        with pytest.raises(ValidationError):
            service.review(world.actor(Role.OFFICER), application_id, "maybe")

    def test_unknown_application(self, service, world):
        with pytest.raises(NotFound):
            service.review(world.actor(Role.OFFICER), 4040, "accepted")


class TestBootstrap:
    def _accept(self, service, session, discord_id=DISCORD_ID):
        service.submit(ApplicationForm(discord_user_id=discord_id, discord_name="Newbie"))
        application = session.scalar(
            select(RecruitApplication).where(RecruitApplication.discord_user_id == discord_id)
        )
        application.status = ApplicationStatus.ACCEPTED.value
        session.commit()

    def test_without_application(self, service, world):
        assert service.bootstrap(_identity()).status == "none"

    def test_pending_application(self, service, world):
        service.submit(ApplicationForm(discord_user_id=DISCORD_ID, discord_name="Newbie"))
        result = service.bootstrap(_identity())
        assert result.status == "pending"
        assert not result.bootstrapped

    def test_accepted_application_creates_member(self, service, session, world):
        self._accept(service, session)
        result = service.bootstrap(_identity())

        assert result.bootstrapped
        assert result.role == Role.MEMBER
        profile = session.get(Profile, "new-user")
        assert profile.discord_id == DISCORD_ID
        assert profile.display_name == "Newbie"
        assert profile.membership.role == "member"

    def test_bootstrap_account_gets_configured_role(self, service, session, world):
        self._accept(service, session, discord_id="999999999999999999")
        result = service.bootstrap(_identity(profile_id="founder", discord_id="999999999999999999"))
        assert result.role == Role.COMMANDER

    def test_repeat_bootstrap_never_lowers_role(self, service, session, world):
        self._accept(service, session)
        service.bootstrap(_identity())
        membership = session.scalar(
            select(Membership).where(Membership.profile_id == "new-user")
        )
        membership.role = Role.OFFICER.value
        session.commit()

        result = service.bootstrap(_identity())
        assert result.role == Role.OFFICER
        count = session.scalar(
            select(func.count(Membership.id)).where(Membership.profile_id == "new-user")
        )
        assert count == 1

    def test_requires_discord_id(self, service, world):
        with pytest.raises(ValidationError):
            service.bootstrap(Identity(profile_id="anon"))
