"""
Interview service functions.

Scheduling writes for a company's date run in one transaction that first
claims the ``InterviewCalendarDay`` row, then checks for conflicts, then
writes. A concurrent writer on the same date loses the claim's version check,
is retried by ``run_in_transaction`` and sees the winner's interview.
"""

from datetime import date, time
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from api.services.history import track_action
from api.services.side_effects import notify_safely, report_outcome_safely
from core.config import settings
from core.exceptions import (
    InvalidInputError,
    NotFoundError,
    RescheduleLimitExceededError,
    SchedulingConflictError,
)
from core.integrations.reputation import SeekerOutcome
from core.utils.datetime import format_time, isoformat, now, parse_date, parse_time
from core.workflow.actors import Actor, SYSTEM_ACTOR
from core.workflow.scheduling import (
    BookedSlot,
    compute_end_time,
    find_conflicts,
    generate_available_slots,
)
from core.workflow.transitions import (
    ACTIVE_INTERVIEW_STATUSES,
    assert_interview_transition,
)
from database.engine import AsyncSessionLocal
from database.models.applications import Application, ApplicationInterviewStatus
from database.models.interviews import (
    ConfirmationStatus,
    Interview,
    InterviewCalendarDay,
    InterviewResult,
    InterviewStatus,
)
from database.transactions import run_in_transaction

logger = logging.getLogger(__name__)


def serialize_interview(interview: Interview) -> Dict[str, Any]:
    return {
        "id": interview.id,
        "application_id": interview.application_id,
        "job_id": interview.job_id,
        "seeker_id": interview.seeker_id,
        "company_id": interview.company_id,
        "interview_date": interview.interview_date.isoformat(),
        "start_time": format_time(interview.start_time),
        "end_time": format_time(interview.end_time),
        "duration": interview.duration,
        "time_zone": interview.time_zone,
        "interview_type": interview.interview_type.value,
        "location": interview.location,
        "notes": interview.notes,
        "status": interview.status.value,
        "confirmation_status": interview.confirmation_status.value,
        "reschedule_count": interview.reschedule_count,
        "max_reschedules": interview.max_reschedules,
        "reschedule_history": list(interview.reschedule_history or []),
        "rating": interview.rating,
        "feedback": interview.feedback,
        "result": interview.result.value if interview.result else None,
        "next_steps": interview.next_steps,
        "completed_at": isoformat(interview.completed_at),
        "cancellation_reason": interview.cancellation_reason,
        "cancelled_at": isoformat(interview.cancelled_at),
        "no_show_at": isoformat(interview.no_show_at),
        "scheduled_by": interview.scheduled_by,
        "created_at": isoformat(interview.created_at),
        "updated_at": isoformat(interview.updated_at),
    }


def parse_schedule(
    interview_date: str | date, start_time: str | time, duration: int
) -> tuple[date, time, time]:
    """Validate schedule input; raises ``InvalidInputError`` on bad values."""
    try:
        parsed_date = parse_date(interview_date)
        parsed_start = parse_time(start_time)
        parsed_end = compute_end_time(parsed_start, duration)
    except ValueError as e:
        raise InvalidInputError(str(e)) from e
    return parsed_date, parsed_start, parsed_end


# ==================== Calendar helpers ===================== #
async def claim_calendar_day(
    session: AsyncSession, company_id: str, interview_date: date
) -> None:
    """Bump the company's calendar row for ``interview_date`` inside ``session``."""
    result = await session.execute(
        select(InterviewCalendarDay).where(
            InterviewCalendarDay.company_id == company_id,
            InterviewCalendarDay.interview_date == interview_date,
        )
    )
    day = result.scalar_one_or_none()
    if day is None:
        session.add(InterviewCalendarDay(company_id=company_id, interview_date=interview_date))
    else:
        day.last_claimed_at = now()
    await session.flush()


async def load_booked_slots(
    session: AsyncSession, company_id: str, interview_date: date
) -> List[BookedSlot]:
    result = await session.execute(
        select(Interview.id, Interview.start_time, Interview.end_time)
        .where(
            Interview.company_id == company_id,
            Interview.interview_date == interview_date,
            Interview.status.in_(ACTIVE_INTERVIEW_STATUSES),
        )
        .order_by(Interview.start_time)
    )
    return [BookedSlot(row.id, row.start_time, row.end_time) for row in result.all()]


async def assert_slot_free(
    session: AsyncSession,
    company_id: str,
    interview_date: date,
    start_time: time,
    end_time: time,
    exclude_id: Optional[str] = None,
) -> None:
    """Claim the date and raise ``SchedulingConflictError`` on any overlap."""
    await claim_calendar_day(session, company_id, interview_date)
    booked = await load_booked_slots(session, company_id, interview_date)
    conflicts = find_conflicts(start_time, end_time, booked, exclude_id=exclude_id)
    if conflicts:
        raise SchedulingConflictError(conflicts)


async def cancel_active_interview(
    session: AsyncSession, application: Application, reason: str
) -> Optional[Interview]:
    """Cancel the application's linked interview if it still holds its slot."""
    if not application.interview_id:
        return None
    interview = await session.get(Interview, application.interview_id)
    if interview is None or interview.status not in ACTIVE_INTERVIEW_STATUSES:
        return None

    stamp = now()
    interview.status = InterviewStatus.CANCELLED
    interview.cancellation_reason = reason
    interview.cancelled_at = stamp
    interview.updated_at = stamp
    application.interview_status = ApplicationInterviewStatus.CANCELLED
    return interview


# ==================== Reads ===================== #
async def get_available_time_slots(
    company_id: str,
    interview_date: str | date,
    duration: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Free interview slots for a company on a date.

    Args:
        company_id: Company whose calendar to inspect
        interview_date: Date to inspect
        duration: Slot length in minutes (defaults to the configured duration)

    Returns:
        Dictionary with the date and chronologically ordered slots
    """
    duration = duration or settings.default_interview_duration
    try:
        parsed_date = parse_date(interview_date)
    except ValueError as e:
        raise InvalidInputError(str(e)) from e

    async with AsyncSessionLocal() as session:
        booked = await load_booked_slots(session, company_id, parsed_date)

    try:
        slots = generate_available_slots(
            booked,
            duration,
            business_start=settings.business_hours_start,
            business_end=settings.business_hours_end,
            granularity=settings.slot_granularity_minutes,
        )
    except ValueError as e:
        raise InvalidInputError(str(e)) from e

    return {
        "company_id": company_id,
        "date": parsed_date.isoformat(),
        "duration": duration,
        "slots": [slot.to_dict() for slot in slots],
    }


async def check_conflicts(
    company_id: str,
    interview_date: str | date,
    start_time: str | time,
    duration: Optional[int] = None,
    exclude_interview_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Report which active interviews a proposed slot would overlap.

    Read-only; nothing is claimed or written.

    Args:
        company_id: Company whose calendar to inspect
        interview_date: Proposed date
        start_time: Proposed start time (HH:MM)
        duration: Slot length in minutes (defaults to the configured duration)
        exclude_interview_id: Interview to ignore, e.g. the one being moved

    Returns:
        Dictionary with ``has_conflicts``, ``conflict_count`` and the
        conflicting interviews ordered by start time
    """
    duration = duration or settings.default_interview_duration
    parsed_date, parsed_start, parsed_end = parse_schedule(
        interview_date, start_time, duration
    )

    async with AsyncSessionLocal() as session:
        booked = await load_booked_slots(session, company_id, parsed_date)
        conflict_ids = find_conflicts(
            parsed_start, parsed_end, booked, exclude_id=exclude_interview_id
        )
        conflicts: List[Interview] = []
        if conflict_ids:
            result = await session.execute(
                select(Interview)
                .where(Interview.id.in_(conflict_ids))
                .order_by(Interview.start_time)
            )
            conflicts = list(result.scalars().all())

    return {
        "company_id": company_id,
        "date": parsed_date.isoformat(),
        "start_time": format_time(parsed_start),
        "end_time": format_time(parsed_end),
        "duration": duration,
        "has_conflicts": bool(conflicts),
        "conflict_count": len(conflicts),
        "conflicts": [serialize_interview(i) for i in conflicts],
    }


async def get_interview(interview_id: str) -> Dict[str, Any]:
    async with AsyncSessionLocal() as session:
        interview = await session.get(Interview, interview_id)
        if not interview:
            raise NotFoundError("Interview", interview_id)
        return serialize_interview(interview)


async def list_application_interviews(application_id: str) -> List[Dict[str, Any]]:
    async with AsyncSessionLocal() as session:
        result = await session.execute(
            select(Interview)
            .where(Interview.application_id == application_id)
            .order_by(Interview.created_at.desc())
        )
        return [serialize_interview(i) for i in result.scalars().all()]


async def list_company_interviews(
    company_id: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    status: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> Dict[str, Any]:
    """List a company's interviews with filtering."""
    async with AsyncSessionLocal() as session:
        query = select(Interview).where(Interview.company_id == company_id)

        if start_date:
            query = query.where(Interview.interview_date >= start_date)
        if end_date:
            query = query.where(Interview.interview_date <= end_date)
        if status:
            try:
                query = query.where(Interview.status == InterviewStatus(status))
            except ValueError as e:
                raise InvalidInputError(f"Unknown interview status: {status}") from e

        count_query = select(func.count()).select_from(query.subquery())
        total = (await session.execute(count_query)).scalar() or 0

        query = query.order_by(Interview.interview_date, Interview.start_time)
        result = await session.execute(query.limit(limit).offset(offset))

        return {
            "interviews": [serialize_interview(i) for i in result.scalars().all()],
            "total": total,
            "limit": limit,
            "offset": offset,
        }


async def list_seeker_interviews(
    seeker_id: str,
    status: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> Dict[str, Any]:
    """A seeker's interviews across companies, most recent date first."""
    async with AsyncSessionLocal() as session:
        query = select(Interview).where(Interview.seeker_id == seeker_id)
        if status:
            try:
                query = query.where(Interview.status == InterviewStatus(status))
            except ValueError as e:
                raise InvalidInputError(f"Unknown interview status: {status}") from e

        count_query = select(func.count()).select_from(query.subquery())
        total = (await session.execute(count_query)).scalar() or 0

        query = query.order_by(
            Interview.interview_date.desc(), Interview.start_time.desc()
        )
        result = await session.execute(query.limit(limit).offset(offset))

        return {
            "interviews": [serialize_interview(i) for i in result.scalars().all()],
            "total": total,
            "limit": limit,
            "offset": offset,
        }


# ==================== Transitions ===================== #
async def _load_pair(
    session: AsyncSession, interview_id: str
) -> tuple[Interview, Application]:
    interview = await session.get(Interview, interview_id)
    if not interview:
        raise NotFoundError("Interview", interview_id)
    application = await session.get(Application, interview.application_id)
    if not application:
        raise NotFoundError("Application", interview.application_id)
    return interview, application


def _mirror_schedule(application: Application, interview: Interview) -> None:
    application.interview_date = interview.interview_date
    application.interview_start_time = interview.start_time
    application.interview_end_time = interview.end_time
    application.interview_duration = interview.duration


async def reschedule_interview(
    interview_id: str,
    new_date: str | date,
    new_start_time: str | time,
    reason: Optional[str] = None,
    actor: Optional[Actor] = None,
) -> Dict[str, Any]:
    """
    Move an interview to a new slot.

    The old schedule is archived in ``reschedule_history`` before the new one
    is applied. Conflicts are checked against the new slot, excluding the
    interview itself; any failure leaves the interview unchanged.

    Raises:
        RescheduleLimitExceededError: ``reschedule_count`` already at the limit
        SchedulingConflictError: New slot overlaps another interview
        InvalidTransitionError: Interview is completed, cancelled or no-show
    """
    actor = actor or SYSTEM_ACTOR

    async def _op(session: AsyncSession):
        interview, application = await _load_pair(session, interview_id)
        assert_interview_transition(
            interview.status, InterviewStatus.RESCHEDULED, "reschedule"
        )
        if interview.reschedule_count >= interview.max_reschedules:
            raise RescheduleLimitExceededError(
                interview.reschedule_count, interview.max_reschedules
            )

        parsed_date, parsed_start, parsed_end = parse_schedule(
            new_date, new_start_time, interview.duration
        )
        await assert_slot_free(
            session,
            interview.company_id,
            parsed_date,
            parsed_start,
            parsed_end,
            exclude_id=interview.id,
        )

        stamp = now()
        previous = {
            "date": interview.interview_date.isoformat(),
            "start_time": format_time(interview.start_time),
            "end_time": format_time(interview.end_time),
            "reason": reason,
            "rescheduled_at": stamp.isoformat(),
        }
        interview.reschedule_history = [*(interview.reschedule_history or []), previous]
        interview.interview_date = parsed_date
        interview.start_time = parsed_start
        interview.end_time = parsed_end
        interview.reschedule_count += 1
        interview.status = InterviewStatus.RESCHEDULED
        interview.confirmation_status = ConfirmationStatus.PENDING
        interview.updated_at = stamp

        if application.interview_id == interview.id:
            _mirror_schedule(application, interview)
            application.interview_status = ApplicationInterviewStatus.SCHEDULED
            application.interview_response = None
            application.updated_at = stamp

        await session.flush()
        return interview, application, previous

    interview, application, previous = await run_in_transaction(
        _op, label=f"reschedule interview {interview_id}"
    )
    logger.info(
        f"Interview {interview.id} rescheduled to {interview.interview_date} "
        f"{format_time(interview.start_time)} ({interview.reschedule_count}/{interview.max_reschedules})"
    )

    await track_action(
        application,
        "interview_rescheduled",
        application.status,
        application.status,
        actor,
        reason=reason,
        metadata={
            "interview_id": interview.id,
            "previous": previous,
            "interview_date": interview.interview_date.isoformat(),
            "start_time": format_time(interview.start_time),
            "reschedule_count": interview.reschedule_count,
        },
    )
    await notify_safely(
        "interview.rescheduled",
        {
            "interview_id": interview.id,
            "application_id": application.id,
            "seeker_id": interview.seeker_id,
            "company_id": interview.company_id,
            "interview_date": interview.interview_date.isoformat(),
            "start_time": format_time(interview.start_time),
        },
    )
    return serialize_interview(interview)


async def _transition_interview(
    interview_id: str,
    target: InterviewStatus,
    action: str,
    mutate,
    actor: Optional[Actor],
    reason: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> tuple[Interview, Application]:
    actor = actor or SYSTEM_ACTOR

    async def _op(session: AsyncSession):
        interview, application = await _load_pair(session, interview_id)
        assert_interview_transition(interview.status, target, action)
        stamp = now()
        interview.status = target
        interview.updated_at = stamp
        mutate(interview, application, stamp)
        application.updated_at = stamp
        await session.flush()
        return interview, application

    interview, application = await run_in_transaction(
        _op, label=f"{action} interview {interview_id}"
    )
    logger.info(f"Interview {interview.id} -> {target.value}")

    await track_action(
        application,
        f"interview_{target.value}",
        application.status,
        application.status,
        actor,
        reason=reason,
        metadata={"interview_id": interview.id, **(metadata or {})},
    )
    await notify_safely(
        f"interview.{target.value}",
        {
            "interview_id": interview.id,
            "application_id": application.id,
            "seeker_id": interview.seeker_id,
            "company_id": interview.company_id,
        },
    )
    return interview, application


def _mirrors(application: Application, interview: Interview) -> bool:
    return application.interview_id == interview.id


async def confirm_interview(
    interview_id: str, actor: Optional[Actor] = None
) -> Dict[str, Any]:
    """Seeker or company confirms attendance."""

    def mutate(interview, application, stamp):
        interview.confirmation_status = ConfirmationStatus.CONFIRMED
        interview.confirmed_at = stamp
        if _mirrors(application, interview):
            application.interview_status = ApplicationInterviewStatus.CONFIRMED

    interview, _ = await _transition_interview(
        interview_id, InterviewStatus.CONFIRMED, "confirm", mutate, actor
    )
    return serialize_interview(interview)


async def cancel_interview(
    interview_id: str, reason: Optional[str] = None, actor: Optional[Actor] = None
) -> Dict[str, Any]:
    """Cancel an interview and free its slot."""

    def mutate(interview, application, stamp):
        interview.cancellation_reason = reason
        interview.cancelled_at = stamp
        if _mirrors(application, interview):
            application.interview_status = ApplicationInterviewStatus.CANCELLED

    interview, _ = await _transition_interview(
        interview_id, InterviewStatus.CANCELLED, "cancel", mutate, actor, reason=reason
    )
    return serialize_interview(interview)


async def complete_interview(
    interview_id: str,
    rating: Optional[int] = None,
    feedback: Optional[str] = None,
    result: Optional[str] = None,
    next_steps: Optional[str] = None,
    actor: Optional[Actor] = None,
) -> Dict[str, Any]:
    """
    Mark an interview completed and record its outcome.

    This is the only operation that writes ``rating``, ``feedback``,
    ``result`` and ``next_steps``.
    """
    if rating is not None and not 1 <= rating <= 5:
        raise InvalidInputError("Rating must be between 1 and 5")
    try:
        parsed_result = InterviewResult(result) if result else InterviewResult.PENDING
    except ValueError as e:
        raise InvalidInputError(f"Unknown interview result: {result}") from e

    def mutate(interview, application, stamp):
        interview.rating = rating
        interview.feedback = feedback
        interview.result = parsed_result
        interview.next_steps = next_steps
        interview.completed_at = stamp
        if _mirrors(application, interview):
            application.interview_status = ApplicationInterviewStatus.COMPLETED

    interview, _ = await _transition_interview(
        interview_id,
        InterviewStatus.COMPLETED,
        "complete",
        mutate,
        actor,
        metadata={"rating": rating, "result": parsed_result.value},
    )
    return serialize_interview(interview)


async def mark_no_show(
    interview_id: str, actor: Optional[Actor] = None
) -> Dict[str, Any]:
    """Record that the seeker did not attend; reported to the reputation service."""

    def mutate(interview, application, stamp):
        interview.no_show_at = stamp
        if _mirrors(application, interview):
            application.interview_status = ApplicationInterviewStatus.NO_SHOW

    interview, application = await _transition_interview(
        interview_id, InterviewStatus.NO_SHOW, "mark no-show for", mutate, actor
    )
    await report_outcome_safely(
        interview.seeker_id,
        SeekerOutcome.NO_SHOW,
        {"interview_id": interview.id, "application_id": application.id},
    )
    return serialize_interview(interview)
