"""Tests for the application lifecycle service."""

import pytest
from sqlalchemy.exc import IntegrityError

from api.services import applications as service
from api.services.history import get_application_history
from core.exceptions import (
    BlockedError,
    InvalidInputError,
    InvalidTransitionError,
    NotFoundError,
    SchedulingConflictError,
)
from core.workflow.actors import Actor
from database.engine import AsyncSessionLocal
from database.models.applications import Application
from database.models.interviews import Interview


async def apply(job, seeker_id="seeker-1"):
    return await service.create_application(seeker_id, job.company_id, job.id)


class TestCreateApplication:

    @pytest.mark.asyncio
    async def test_seeker_applies(self, interview_job, notifier):
        application = await apply(interview_job)

        assert application["status"] == "applied"
        assert application["application_source"] == "applied"
        assert application["job_title"] == "Barista"
        assert application["job_type"] == "interview_first"
        assert application["id"].startswith("APP-")
        assert application["version"] == 1
        assert notifier.types() == ["application.submitted"]

        history = await get_application_history(application["id"])
        assert [h["action"] for h in history] == ["applied"]
        assert history[0]["action_by"] == "seeker"
        assert history[0]["action_by_id"] == "seeker-1"
        assert history[0]["from_status"] is None
        assert history[0]["to_status"] == "applied"

    @pytest.mark.asyncio
    async def test_company_invites(self, instant_job):
        application = await service.invite_seeker(
            instant_job.company_id, "seeker-2", instant_job.id
        )

        assert application["status"] == "invited"
        history = await get_application_history(application["id"])
        assert history[0]["action"] == "invited"
        assert history[0]["action_by"] == "company"

    @pytest.mark.asyncio
    async def test_unknown_job(self, company):
        with pytest.raises(NotFoundError):
            await service.create_application("seeker-1", company.id, "missing-job")

    @pytest.mark.asyncio
    async def test_job_of_another_company(self, interview_job):
        with pytest.raises(InvalidInputError):
            await service.create_application("seeker-1", "company-2", interview_job.id)

    @pytest.mark.asyncio
    async def test_duplicate_open_application(self, interview_job):
        await apply(interview_job)
        with pytest.raises(InvalidInputError):
            await apply(interview_job)

    @pytest.mark.asyncio
    async def test_reapply_after_withdrawal(self, interview_job):
        first = await apply(interview_job)
        await service.withdraw_application(first["id"])

        second = await apply(interview_job)
        assert second["id"] != first["id"]
        assert second["status"] == "applied"

    @pytest.mark.asyncio
    async def test_open_application_is_unique_in_storage(self, interview_job):
        first = await apply(interview_job)

        async with AsyncSessionLocal() as session:
            session.add(
                Application(
                    job_id=interview_job.id,
                    seeker_id="seeker-1",
                    company_id=interview_job.company_id,
                    job_title=interview_job.title,
                    job_type=interview_job.hiring_type,
                    report_history=[],
                )
            )
            with pytest.raises(IntegrityError):
                await session.commit()

        await service.withdraw_application(first["id"])
        async with AsyncSessionLocal() as session:
            session.add(
                Application(
                    job_id=interview_job.id,
                    seeker_id="seeker-1",
                    company_id=interview_job.company_id,
                    job_title=interview_job.title,
                    job_type=interview_job.hiring_type,
                    report_history=[],
                )
            )
            await session.commit()

    @pytest.mark.asyncio
    async def test_unknown_source(self, interview_job):
        with pytest.raises(InvalidInputError):
            await service.create_application(
                "seeker-1", interview_job.company_id, interview_job.id, source="walk_in"
            )


class TestBlockedSeeker:

    @pytest.mark.asyncio
    async def test_blocked_then_unblocked(self, interview_job, add_block):
        """A blocked seeker is refused until the block is lifted."""
        from api.services.blocking import unblock_seeker

        await add_block("seeker-9")
        with pytest.raises(BlockedError) as exc_info:
            await apply(interview_job, seeker_id="seeker-9")
        assert exc_info.value.reason == "No-show last month"

        assert (await service.list_applications(seeker_id="seeker-9"))["total"] == 0

        await unblock_seeker(interview_job.company_id, "seeker-9")
        application = await apply(interview_job, seeker_id="seeker-9")
        assert application["status"] == "applied"

    @pytest.mark.asyncio
    async def test_inactive_block_is_ignored(self, interview_job, add_block):
        await add_block("seeker-9", is_active=False)
        application = await apply(interview_job, seeker_id="seeker-9")
        assert application["status"] == "applied"


class TestInvitationFlow:

    @pytest.mark.asyncio
    async def test_accept_invitation(self, instant_job):
        invited = await service.invite_seeker(instant_job.company_id, "seeker-2", instant_job.id)

        accepted = await service.accept_invitation(invited["id"])

        assert accepted["status"] == "invited_applied"
        assert accepted["application_source"] == "invited_applied"
        history = await get_application_history(invited["id"])
        assert history[0]["action"] == "applied"
        assert history[0]["metadata"] == {"via": "invitation"}
        assert history[0]["from_status"] == "invited"

    @pytest.mark.asyncio
    async def test_decline_invitation(self, instant_job):
        invited = await service.invite_seeker(instant_job.company_id, "seeker-2", instant_job.id)

        declined = await service.decline_invitation(invited["id"], reason="Too far away")

        assert declined["status"] == "withdrawn"
        assert declined["withdrawal_reason"] == "Too far away"

    @pytest.mark.asyncio
    async def test_decline_invitation_requires_pending_invite(self, instant_job):
        application = await apply(instant_job)
        with pytest.raises(InvalidTransitionError):
            await service.decline_invitation(application["id"])

    @pytest.mark.asyncio
    async def test_invited_cannot_be_hired_directly(self, instant_job):
        from api.services.hiring import hire_now

        invited = await service.invite_seeker(instant_job.company_id, "seeker-2", instant_job.id)
        with pytest.raises(InvalidTransitionError):
            await hire_now(invited["id"])


class TestInterviewScenario:

    @pytest.mark.asyncio
    async def test_schedule_conflict_then_decline(self, interview_job, notifier):
        """Schedule, collide with an overlapping request, then decline."""
        first = await apply(interview_job, seeker_id="seeker-1")
        second = await apply(interview_job, seeker_id="seeker-2")

        scheduled = await service.schedule_interview(first["id"], "2025-03-10", "10:00", 30)

        assert scheduled["status"] == "interviewed"
        assert scheduled["interview_status"] == "scheduled"
        assert scheduled["interview_date"] == "2025-03-10"
        assert scheduled["interview_start_time"] == "10:00"
        assert scheduled["interview_end_time"] == "10:30"
        assert scheduled["interview"]["status"] == "scheduled"
        assert scheduled["chat_initiated"] is True
        assert scheduled["chat_id"].startswith("CHAT-")
        assert "interview.scheduled" in notifier.types()

        with pytest.raises(SchedulingConflictError) as exc_info:
            await service.schedule_interview(second["id"], "2025-03-10", "10:15", 30)
        assert exc_info.value.conflicting_ids == [scheduled["interview_id"]]
        assert exc_info.value.conflict_count == 1

        untouched = await service.get_application(second["id"])
        assert untouched["status"] == "applied"
        assert untouched["interview_id"] is None

        declined = await service.decline_application(first["id"], reason="Limited experience")
        assert declined["status"] == "declined"
        assert declined["decline_reason"] == "Limited experience"
        assert declined["declined_at"] is not None
        assert declined["interview_status"] == "cancelled"

        for transition in (
            service.shortlist_application,
            service.withdraw_application,
            service.decline_application,
        ):
            with pytest.raises(InvalidTransitionError):
                await transition(first["id"])

    @pytest.mark.asyncio
    async def test_decline_frees_the_slot(self, interview_job):
        first = await apply(interview_job, seeker_id="seeker-1")
        second = await apply(interview_job, seeker_id="seeker-2")
        await service.schedule_interview(first["id"], "2025-03-10", "10:00")

        await service.decline_application(first["id"])
        rescheduled = await service.schedule_interview(second["id"], "2025-03-10", "10:00")

        assert rescheduled["status"] == "interviewed"

    @pytest.mark.asyncio
    async def test_back_to_back_interviews(self, interview_job):
        first = await apply(interview_job, seeker_id="seeker-1")
        second = await apply(interview_job, seeker_id="seeker-2")

        await service.schedule_interview(first["id"], "2025-03-10", "10:00", 30)
        result = await service.schedule_interview(second["id"], "2025-03-10", "10:30", 30)

        assert result["interview_start_time"] == "10:30"

    @pytest.mark.asyncio
    async def test_instant_hire_job_has_no_interviews(self, instant_job):
        application = await apply(instant_job)
        with pytest.raises(InvalidTransitionError):
            await service.schedule_interview(application["id"], "2025-03-10", "10:00")

    @pytest.mark.asyncio
    async def test_cannot_schedule_twice(self, interview_job):
        application = await apply(interview_job)
        await service.schedule_interview(application["id"], "2025-03-10", "10:00")
        with pytest.raises(InvalidTransitionError):
            await service.schedule_interview(application["id"], "2025-03-11", "10:00")

    @pytest.mark.asyncio
    async def test_shortlisted_cannot_be_scheduled(self, interview_job):
        application = await apply(interview_job)
        await service.shortlist_application(application["id"])

        with pytest.raises(InvalidTransitionError) as exc_info:
            await service.schedule_interview(application["id"], "2025-03-10", "10:00", 30)

        assert exc_info.value.current_status == "shortlisted"
        stored = await service.get_application(application["id"])
        assert stored["status"] == "shortlisted"
        assert stored["interview_id"] is None

    @pytest.mark.asyncio
    async def test_accepted_invitation_can_be_scheduled(self, interview_job):
        invited = await service.invite_seeker(
            interview_job.company_id, "seeker-1", interview_job.id
        )
        await service.accept_invitation(invited["id"])

        scheduled = await service.schedule_interview(invited["id"], "2025-03-10", "10:00")
        assert scheduled["status"] == "interviewed"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("interview_date,start_time", [
        ("2025-02-30", "10:00"),
        ("2025-03-10", "10h00"),
        ("2025-03-10", "23:45"),
    ])
    async def test_malformed_schedule(self, interview_job, interview_date, start_time):
        application = await apply(interview_job)
        with pytest.raises(InvalidInputError):
            await service.schedule_interview(application["id"], interview_date, start_time, 30)

    @pytest.mark.asyncio
    async def test_seeker_accepts_interview(self, interview_job):
        application = await apply(interview_job)
        await service.schedule_interview(application["id"], "2025-03-10", "10:00")

        result = await service.respond_to_interview(application["id"], "accepted")

        assert result["interview_response"] == "accepted"
        assert result["interview_status"] == "confirmed"
        history = await get_application_history(application["id"])
        assert history[0]["action"] == "interview_accepted"

        with pytest.raises(InvalidTransitionError):
            await service.respond_to_interview(application["id"], "declined")

    @pytest.mark.asyncio
    async def test_seeker_declines_interview(self, interview_job):
        application = await apply(interview_job)
        await service.schedule_interview(application["id"], "2025-03-10", "10:00")

        result = await service.respond_to_interview(application["id"], "declined")

        assert result["status"] == "interviewed"
        assert result["interview_status"] == "declined"
        async with AsyncSessionLocal() as session:
            interview = await session.get(Interview, result["interview_id"])
            assert interview.status.value == "cancelled"
            assert interview.confirmation_status.value == "declined"

    @pytest.mark.asyncio
    async def test_respond_without_interview(self, interview_job):
        application = await apply(interview_job)
        with pytest.raises(InvalidTransitionError):
            await service.respond_to_interview(application["id"], "accepted")

    @pytest.mark.asyncio
    async def test_scheduled_by_actor_is_recorded(self, interview_job):
        application = await apply(interview_job)
        actor = Actor.company(interview_job.company_id)

        await service.schedule_interview(application["id"], "2025-03-10", "10:00", actor=actor)

        history = await get_application_history(application["id"])
        assert history[0]["action"] == "interview_scheduled"
        assert history[0]["action_by"] == "company"
        assert history[0]["metadata"]["start_time"] == "10:00"


class TestDeclineAndWithdraw:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reason,expected", [
        ("Not the right fit", "Not the right fit"),
        ("POSITION_FILLED", "Position filled"),
        ("we went another way", "Another candidate selected"),
        (None, "Another candidate selected"),
    ])
    async def test_decline_reason_is_coerced(self, instant_job, reason, expected):
        application = await apply(instant_job)
        declined = await service.decline_application(application["id"], reason=reason)
        assert declined["decline_reason"] == expected

        history = await get_application_history(application["id"])
        assert history[0]["reason"] == expected

    @pytest.mark.asyncio
    async def test_withdraw(self, instant_job, notifier):
        application = await apply(instant_job)

        withdrawn = await service.withdraw_application(application["id"], reason="Found a job")

        assert withdrawn["status"] == "withdrawn"
        assert withdrawn["withdrawal_reason"] == "Found a job"
        assert notifier.types()[-1] == "application.withdrawn"

    @pytest.mark.asyncio
    async def test_unknown_application(self, db):
        with pytest.raises(NotFoundError):
            await service.withdraw_application("APP-missing")


class TestReads:

    @pytest.mark.asyncio
    async def test_get_with_population(self, instant_job):
        application = await apply(instant_job)

        data = await service.get_application(application["id"], populate=True)

        assert data["job"] == {
            "id": instant_job.id,
            "title": "Event Staff",
            "hiring_type": "instant_hire",
        }
        assert data["company"] == {"id": "company-1", "name": "Harbor Cafe"}

    @pytest.mark.asyncio
    async def test_list_and_filter(self, instant_job):
        first = await apply(instant_job, seeker_id="seeker-1")
        await apply(instant_job, seeker_id="seeker-2")
        await service.shortlist_application(first["id"])

        everything = await service.list_applications(job_id=instant_job.id)
        shortlisted = await service.list_applications(status="shortlisted")

        assert everything["total"] == 2
        assert [a["id"] for a in shortlisted["applications"]] == [first["id"]]

    @pytest.mark.asyncio
    async def test_list_unknown_status(self, db):
        with pytest.raises(InvalidInputError):
            await service.list_applications(status="archived")

    @pytest.mark.asyncio
    async def test_job_stats(self, instant_job):
        first = await apply(instant_job, seeker_id="seeker-1")
        await apply(instant_job, seeker_id="seeker-2")
        await service.withdraw_application(first["id"])

        stats = await service.get_job_application_stats(instant_job.id)

        assert stats["total"] == 2
        assert stats["by_status"]["applied"] == 1
        assert stats["by_status"]["withdrawn"] == 1
        assert stats["by_status"]["hired"] == 0
