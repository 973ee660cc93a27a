"""
Concurrent writers against a real database file.

Each test fires competing workflow calls with asyncio.gather and checks that
exactly one wins and the loser sees the winner's state.
"""

import asyncio

import pytest
from sqlalchemy import func, select

from api.services import applications as application_service
from api.services import hiring as hiring_service
from api.services import interviews as interview_service
from api.services.history import get_application_history
from core.exceptions import (
    AlreadyPendingError,
    InvalidInputError,
    InvalidTransitionError,
    SchedulingConflictError,
)
from database.engine import AsyncSessionLocal
from database.models.applications import Application
from database.models.interviews import Interview, InterviewStatus


def split(results):
    successes = [r for r in results if not isinstance(r, BaseException)]
    failures = [r for r in results if isinstance(r, BaseException)]
    return successes, failures


async def active_interviews(company_id):
    async with AsyncSessionLocal() as session:
        result = await session.execute(
            select(Interview).where(
                Interview.company_id == company_id,
                Interview.status != InterviewStatus.CANCELLED,
            )
        )
        return result.scalars().all()


class TestSchedulingRace:

    @pytest.mark.asyncio
    async def test_overlapping_requests_book_one_slot(self, interview_job):
        applications = [
            await application_service.create_application(
                f"seeker-{n}", interview_job.company_id, interview_job.id
            )
            for n in range(3)
        ]

        results = await asyncio.gather(
            *(
                application_service.schedule_interview(a["id"], "2025-03-10", start, 30)
                for a, start in zip(applications, ["10:00", "10:15", "10:20"])
            ),
            return_exceptions=True,
        )

        successes, failures = split(results)
        assert len(successes) == 1
        assert all(isinstance(f, SchedulingConflictError) for f in failures)
        assert len(await active_interviews(interview_job.company_id)) == 1

    @pytest.mark.asyncio
    async def test_disjoint_requests_all_succeed(self, interview_job):
        applications = [
            await application_service.create_application(
                f"seeker-{n}", interview_job.company_id, interview_job.id
            )
            for n in range(3)
        ]

        results = await asyncio.gather(
            *(
                application_service.schedule_interview(a["id"], "2025-03-10", start, 30)
                for a, start in zip(applications, ["09:00", "09:30", "10:00"])
            ),
            return_exceptions=True,
        )

        successes, failures = split(results)
        assert failures == []
        assert len(successes) == 3

    @pytest.mark.asyncio
    async def test_reschedule_races_new_booking(self, interview_job):
        first = await application_service.create_application(
            "seeker-1", interview_job.company_id, interview_job.id
        )
        second = await application_service.create_application(
            "seeker-2", interview_job.company_id, interview_job.id
        )
        scheduled = await application_service.schedule_interview(
            first["id"], "2025-03-10", "09:00"
        )

        results = await asyncio.gather(
            interview_service.reschedule_interview(
                scheduled["interview_id"], "2025-03-10", "15:00"
            ),
            application_service.schedule_interview(second["id"], "2025-03-10", "15:15"),
            return_exceptions=True,
        )

        successes, failures = split(results)
        assert len(successes) == 1
        assert isinstance(failures[0], SchedulingConflictError)


class TestApplicationRace:

    @pytest.mark.asyncio
    async def test_decline_versus_withdraw(self, instant_job):
        application = await application_service.create_application(
            "seeker-1", instant_job.company_id, instant_job.id
        )

        results = await asyncio.gather(
            application_service.decline_application(application["id"], "Position filled"),
            application_service.withdraw_application(application["id"], "Changed my mind"),
            return_exceptions=True,
        )

        successes, failures = split(results)
        assert len(successes) == 1
        assert len(failures) == 1
        assert isinstance(failures[0], InvalidTransitionError)

        stored = await application_service.get_application(application["id"])
        assert stored["status"] == successes[0]["status"]
        history = await get_application_history(application["id"])
        assert [h["action"] for h in history].count("applied") == 1
        assert len(history) == 2

    @pytest.mark.asyncio
    async def test_double_hire_request(self, instant_job):
        application = await application_service.create_application(
            "seeker-1", instant_job.company_id, instant_job.id
        )

        results = await asyncio.gather(
            hiring_service.hire_now(application["id"]),
            hiring_service.hire_now(application["id"]),
            return_exceptions=True,
        )

        successes, failures = split(results)
        assert len(successes) == 1
        assert isinstance(failures[0], AlreadyPendingError)


class TestCreationRace:

    @pytest.mark.asyncio
    async def test_duplicate_applications_create_one_row(self, instant_job):
        results = await asyncio.gather(
            application_service.create_application(
                "seeker-1", instant_job.company_id, instant_job.id
            ),
            application_service.create_application(
                "seeker-1", instant_job.company_id, instant_job.id
            ),
            return_exceptions=True,
        )

        successes, failures = split(results)
        assert len(successes) == 1
        assert len(failures) == 1
        assert isinstance(failures[0], InvalidInputError)

        async with AsyncSessionLocal() as session:
            rows = (
                await session.execute(
                    select(func.count())
                    .select_from(Application)
                    .where(Application.seeker_id == "seeker-1")
                )
            ).scalar()
        assert rows == 1

    @pytest.mark.asyncio
    async def test_different_seekers_both_apply(self, instant_job):
        results = await asyncio.gather(
            application_service.create_application(
                "seeker-1", instant_job.company_id, instant_job.id
            ),
            application_service.create_application(
                "seeker-2", instant_job.company_id, instant_job.id
            ),
            return_exceptions=True,
        )

        successes, failures = split(results)
        assert failures == []
        assert {a["seeker_id"] for a in successes} == {"seeker-1", "seeker-2"}
