"""Tests for the audit trail and derived statistics."""

import pytest

from api.services import applications as application_service
from api.services import hiring as hiring_service
from api.services import history as service
from core.exceptions import InvalidTransitionError
from core.workflow.actors import Actor


class TestTrail:

    @pytest.mark.asyncio
    async def test_one_record_per_transition(self, interview_job):
        application = await application_service.create_application(
            "seeker-1", interview_job.company_id, interview_job.id
        )
        app_id = application["id"]
        await application_service.schedule_interview(app_id, "2025-03-10", "10:00")
        await hiring_service.hire_now(app_id)
        await hiring_service.respond_to_hire_request(app_id, "accepted")

        history = await service.get_application_history(app_id)

        assert [h["action"] for h in history] == [
            "hire_accepted",
            "hired",
            "interview_scheduled",
            "applied",
        ]
        assert [(h["from_status"], h["to_status"]) for h in history] == [
            ("hired", "accepted"),
            ("interviewed", "hired"),
            ("applied", "interviewed"),
            (None, "applied"),
        ]
        sequences = [h["sequence"] for h in history]
        assert sequences == sorted(sequences, reverse=True)

    @pytest.mark.asyncio
    async def test_failed_transition_leaves_no_record(self, instant_job):
        application = await application_service.create_application(
            "seeker-1", instant_job.company_id, instant_job.id
        )
        await application_service.withdraw_application(application["id"])
        with pytest.raises(InvalidTransitionError):
            await application_service.shortlist_application(application["id"])

        history = await service.get_application_history(application["id"])
        assert [h["action"] for h in history] == ["withdrawn", "applied"]

    @pytest.mark.asyncio
    async def test_seeker_and_company_views(self, instant_job):
        first = await application_service.create_application(
            "seeker-1", instant_job.company_id, instant_job.id
        )
        await application_service.create_application(
            "seeker-2", instant_job.company_id, instant_job.id
        )
        await application_service.withdraw_application(first["id"])

        seeker_history = await service.get_seeker_history("seeker-1")
        company_history = await service.get_company_history(instant_job.company_id)
        limited = await service.get_company_history(instant_job.company_id, limit=2)

        assert [h["action"] for h in seeker_history] == ["withdrawn", "applied"]
        assert len(company_history) == 3
        assert len(limited) == 2
        assert limited[0]["action"] == "withdrawn"

    @pytest.mark.asyncio
    async def test_track_action_failure_is_swallowed(self, db):
        class Broken:
            id = "APP-x"
            job_id = "job"
            seeker_id = "seeker"
            company_id = "company"

        # Unserializable metadata makes the insert fail
        result = await service.track_action(
            Broken(), "applied", metadata={"bad": object()}, actor=Actor.seeker("seeker")
        )

        assert result is None


class TestStats:

    @pytest.mark.asyncio
    async def test_time_to_hire_and_counts(self, instant_job):
        application = await application_service.create_application(
            "seeker-1", instant_job.company_id, instant_job.id
        )
        await hiring_service.hire_now(application["id"])

        stats = await service.get_application_stats(application["id"])

        assert stats["total_actions"] == 2
        assert stats["action_counts"] == {"applied": 1, "hired": 1}
        assert stats["time_to_hire"] == 0
        assert [t["action"] for t in stats["timeline"]] == ["applied", "hired"]
        assert stats["last_action"]["action"] == "hired"

    @pytest.mark.asyncio
    async def test_time_to_hire_needs_both_events(self, instant_job):
        application = await application_service.create_application(
            "seeker-1", instant_job.company_id, instant_job.id
        )
        stats = await service.get_application_stats(application["id"])
        assert stats["time_to_hire"] is None

    @pytest.mark.asyncio
    async def test_invited_seeker_counts_from_acceptance(self, instant_job):
        invited = await application_service.invite_seeker(
            instant_job.company_id, "seeker-2", instant_job.id
        )
        await application_service.accept_invitation(invited["id"])
        await hiring_service.hire_now(invited["id"])

        stats = await service.get_application_stats(invited["id"])

        assert stats["action_counts"] == {"invited": 1, "applied": 1, "hired": 1}
        assert stats["time_to_hire"] == 0

    @pytest.mark.asyncio
    async def test_empty_history(self, db):
        stats = await service.get_application_stats("APP-none")
        assert stats["total_actions"] == 0
        assert stats["last_action"] is None
