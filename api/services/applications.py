"""
Application service functions for API endpoints.

Implements the application lifecycle:

    applied         -> shortlisted | interviewed | hired | declined | withdrawn
    invited         -> invited_applied | withdrawn
    invited_applied -> shortlisted | interviewed | hired | declined | withdrawn
    shortlisted     -> interviewed | hired | declined | withdrawn
    interviewed     -> hired | declined | withdrawn
    hired           -> accepted | declined

Each write runs through ``run_in_transaction`` against the versioned
``Application`` row. History, chat provisioning and notifications follow the
commit and never undo it.
"""

from datetime import date, time
from typing import Any, Awaitable, Callable, Dict, Optional
import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from api.services.blocking import check_seeker_blocked
from api.services.history import track_action
from api.services.interviews import (
    assert_slot_free,
    cancel_active_interview,
    parse_schedule,
)
from api.services.side_effects import ensure_chat, notify_safely
from core.config import settings
from core.exceptions import InvalidInputError, InvalidTransitionError, NotFoundError
from core.utils.datetime import format_time, isoformat, now
from core.workflow.actors import Actor
from core.workflow.transitions import (
    SCHEDULE_SOURCE_STATUSES,
    TERMINAL_APPLICATION_STATUSES,
    assert_interview_transition,
    assert_source_status,
    assert_transition,
)
from database.engine import AsyncSessionLocal
from database.models.applications import (
    Application,
    ApplicationInterviewStatus,
    ApplicationSource,
    ApplicationStatus,
    DeclineReason,
    InterviewResponse,
    JobType,
)
from database.models.companies import Company
from database.models.interviews import (
    ConfirmationStatus,
    Interview,
    InterviewStatus,
    InterviewType,
    generate_interview_id,
)
from database.models.jobs import Job
from database.transactions import run_in_transaction

logger = logging.getLogger(__name__)


def serialize_application(application: Application) -> Dict[str, Any]:
    return {
        "id": application.id,
        "job_id": application.job_id,
        "seeker_id": application.seeker_id,
        "company_id": application.company_id,
        "status": application.status.value,
        "application_source": application.application_source.value,
        "job_title": application.job_title,
        "job_type": application.job_type.value,
        "hire_status": application.hire_status.value if application.hire_status else None,
        "hire_response": application.hire_response.value if application.hire_response else None,
        "hire_requested_at": isoformat(application.hire_requested_at),
        "hire_responded_at": isoformat(application.hire_responded_at),
        "interview_id": application.interview_id,
        "interview_status": (
            application.interview_status.value if application.interview_status else None
        ),
        "interview_response": (
            application.interview_response.value if application.interview_response else None
        ),
        "interview_date": isoformat(application.interview_date),
        "interview_start_time": format_time(application.interview_start_time),
        "interview_end_time": format_time(application.interview_end_time),
        "interview_duration": application.interview_duration,
        "reporting_enabled": application.reporting_enabled,
        "report_history": list(application.report_history or []),
        "engagement_completed_at": isoformat(application.engagement_completed_at),
        "chat_id": application.chat_id,
        "chat_initiated": application.chat_initiated,
        "decline_reason": application.decline_reason,
        "declined_at": isoformat(application.declined_at),
        "withdrawal_reason": application.withdrawal_reason,
        "applied_at": isoformat(application.applied_at),
        "status_changed_at": isoformat(application.status_changed_at),
        "updated_at": isoformat(application.updated_at),
        "version": application.version,
    }


# ==================== Internal helpers ===================== #
async def load_application(session: AsyncSession, application_id: str) -> Application:
    application = await session.get(Application, application_id)
    if not application:
        raise NotFoundError("Application", application_id)
    return application


def move_status(
    application: Application, target: ApplicationStatus, action: str
) -> ApplicationStatus:
    """Apply a legal status change in memory and return the previous status."""
    assert_transition(application.status, target, action)
    previous = application.status
    stamp = now()
    application.status = target
    application.status_changed_at = stamp
    application.updated_at = stamp
    return previous


async def run_application_write(
    application_id: str,
    label: str,
    mutate: Callable[[AsyncSession, Application], Awaitable[Any]],
) -> tuple[Application, ApplicationStatus, Any]:
    """
    Load, mutate and commit one application under optimistic concurrency.

    Returns:
        The committed application, its status before the write, and whatever
        ``mutate`` returned
    """

    async def _op(session: AsyncSession):
        application = await load_application(session, application_id)
        previous = application.status
        extra = await mutate(session, application)
        application.updated_at = now()
        await session.flush()
        return application, previous, extra

    return await run_in_transaction(_op, label=f"{label} {application_id}")


def event_payload(application: Application, **extra: Any) -> Dict[str, Any]:
    return {
        "application_id": application.id,
        "job_id": application.job_id,
        "job_title": application.job_title,
        "seeker_id": application.seeker_id,
        "company_id": application.company_id,
        "status": application.status.value,
        **extra,
    }


# ==================== Creation ===================== #
async def create_application(
    seeker_id: str,
    company_id: str,
    job_id: str,
    source: str = ApplicationSource.APPLIED.value,
    actor: Optional[Actor] = None,
) -> Dict[str, Any]:
    """
    Create an application, either a seeker applying or a company inviting.

    Args:
        seeker_id: Seeker the application belongs to
        company_id: Company that owns the job
        job_id: Job applied to
        source: ``applied`` or ``invited``
        actor: Who created it

    Raises:
        BlockedError: The company blocks the seeker
        NotFoundError: The job does not exist
        InvalidInputError: Unknown source, wrong company, or an open
            application already exists for this seeker and job
    """
    try:
        parsed_source = ApplicationSource(source)
    except ValueError as e:
        raise InvalidInputError(f"Unknown application source: {source}") from e
    if parsed_source == ApplicationSource.INVITED_APPLIED:
        raise InvalidInputError("Applications cannot be created as invited_applied")

    if actor is None:
        actor = (
            Actor.company(company_id)
            if parsed_source == ApplicationSource.INVITED
            else Actor.seeker(seeker_id)
        )

    await check_seeker_blocked(company_id, seeker_id)

    async def _op(session: AsyncSession):
        job = await session.get(Job, job_id)
        if not job:
            raise NotFoundError("Job", job_id)
        if job.company_id != company_id:
            raise InvalidInputError("Job does not belong to this company")

        existing = await session.execute(
            select(Application.id).where(
                Application.seeker_id == seeker_id,
                Application.job_id == job_id,
                Application.status.not_in(TERMINAL_APPLICATION_STATUSES),
            )
        )
        if existing.first():
            raise InvalidInputError("Seeker already has an open application for this job")

        application = Application(
            job_id=job_id,
            seeker_id=seeker_id,
            company_id=company_id,
            status=(
                ApplicationStatus.INVITED
                if parsed_source == ApplicationSource.INVITED
                else ApplicationStatus.APPLIED
            ),
            application_source=parsed_source,
            job_title=job.title,
            job_type=job.hiring_type,
            report_history=[],
        )
        session.add(application)
        await session.flush()
        return application

    application = await run_in_transaction(_op, label=f"create application {seeker_id}/{job_id}")
    logger.info(
        f"Application {application.id} created ({application.status.value}) "
        f"for seeker {seeker_id} on job {job_id}"
    )

    await track_action(
        application,
        "invited" if parsed_source == ApplicationSource.INVITED else "applied",
        None,
        application.status,
        actor,
    )
    if parsed_source == ApplicationSource.INVITED:
        await notify_safely("application.invited", event_payload(application))
    else:
        await notify_safely("application.submitted", event_payload(application))

    return serialize_application(application)


async def invite_seeker(
    company_id: str, seeker_id: str, job_id: str, actor: Optional[Actor] = None
) -> Dict[str, Any]:
    """Company invites a seeker to apply."""
    return await create_application(
        seeker_id,
        company_id,
        job_id,
        source=ApplicationSource.INVITED.value,
        actor=actor or Actor.company(company_id),
    )


# ==================== Invitation responses ===================== #
async def accept_invitation(
    application_id: str, actor: Optional[Actor] = None
) -> Dict[str, Any]:
    """Seeker accepts an invitation; the application now counts as applied."""

    async def mutate(session, application):
        move_status(application, ApplicationStatus.INVITED_APPLIED, "accept invitation")
        application.application_source = ApplicationSource.INVITED_APPLIED

    application, previous, _ = await run_application_write(
        application_id, "accept invitation", mutate
    )
    actor = actor or Actor.seeker(application.seeker_id)

    await track_action(
        application,
        "applied",
        previous,
        application.status,
        actor,
        metadata={"via": "invitation"},
    )
    await notify_safely("application.invitation_accepted", event_payload(application))
    return serialize_application(application)


async def decline_invitation(
    application_id: str, reason: Optional[str] = None, actor: Optional[Actor] = None
) -> Dict[str, Any]:
    """Seeker turns an invitation down."""

    async def mutate(session, application):
        if application.status != ApplicationStatus.INVITED:
            raise InvalidTransitionError(
                "Only pending invitations can be declined",
                current_status=application.status.value,
                action="decline invitation",
            )
        move_status(application, ApplicationStatus.WITHDRAWN, "decline invitation")
        application.withdrawal_reason = reason

    application, previous, _ = await run_application_write(
        application_id, "decline invitation", mutate
    )
    actor = actor or Actor.seeker(application.seeker_id)

    await track_action(
        application, "invitation_declined", previous, application.status, actor, reason=reason
    )
    await notify_safely("application.invitation_declined", event_payload(application))
    return serialize_application(application)


# ==================== Company-side moves ===================== #
async def shortlist_application(
    application_id: str, actor: Optional[Actor] = None, notes: Optional[str] = None
) -> Dict[str, Any]:
    async def mutate(session, application):
        move_status(application, ApplicationStatus.SHORTLISTED, "shortlist")

    application, previous, _ = await run_application_write(
        application_id, "shortlist", mutate
    )
    actor = actor or Actor.company(application.company_id)

    await track_action(
        application, "shortlisted", previous, application.status, actor, notes=notes
    )
    await notify_safely("application.shortlisted", event_payload(application))
    return serialize_application(application)


async def schedule_interview(
    application_id: str,
    interview_date: str | date,
    start_time: str | time,
    duration: Optional[int] = None,
    interview_type: str = InterviewType.IN_PERSON.value,
    location: Optional[str] = None,
    notes: Optional[str] = None,
    time_zone: Optional[str] = None,
    actor: Optional[Actor] = None,
) -> Dict[str, Any]:
    """
    Schedule the interview for an interview-first application.

    The slot check and the writes happen in one transaction guarded by the
    company's calendar day, so two overlapping requests cannot both succeed.

    Raises:
        InvalidTransitionError: Job is instant-hire or status does not allow it
        SchedulingConflictError: Slot overlaps another interview of the company
        InvalidInputError: Malformed date, time, duration or type
    """
    duration = duration or settings.default_interview_duration
    parsed_date, parsed_start, parsed_end = parse_schedule(
        interview_date, start_time, duration
    )
    try:
        parsed_type = InterviewType(interview_type)
    except ValueError as e:
        raise InvalidInputError(f"Unknown interview type: {interview_type}") from e

    async def mutate(session, application):
        if application.job_type != JobType.INTERVIEW_FIRST:
            raise InvalidTransitionError(
                "Interviews can only be scheduled for interview-first jobs",
                current_status=application.status.value,
                action="schedule interview",
            )
        assert_source_status(
            application.status, SCHEDULE_SOURCE_STATUSES, "schedule an interview for"
        )

        await assert_slot_free(
            session, application.company_id, parsed_date, parsed_start, parsed_end
        )

        interview = Interview(
            id=generate_interview_id(),
            application_id=application.id,
            job_id=application.job_id,
            seeker_id=application.seeker_id,
            company_id=application.company_id,
            interview_date=parsed_date,
            start_time=parsed_start,
            end_time=parsed_end,
            duration=duration,
            time_zone=time_zone or settings.default_time_zone,
            interview_type=parsed_type,
            location=location,
            notes=notes,
            status=InterviewStatus.SCHEDULED,
            confirmation_status=ConfirmationStatus.PENDING,
            reschedule_count=0,
            max_reschedules=settings.max_reschedules,
            reschedule_history=[],
            scheduled_by=actor.id if actor else None,
        )
        session.add(interview)

        move_status(application, ApplicationStatus.INTERVIEWED, "schedule an interview for")
        application.interview_id = interview.id
        application.interview_status = ApplicationInterviewStatus.SCHEDULED
        application.interview_response = None
        application.interview_date = parsed_date
        application.interview_start_time = parsed_start
        application.interview_end_time = parsed_end
        application.interview_duration = duration
        return interview

    application, previous, interview = await run_application_write(
        application_id, "schedule interview", mutate
    )
    actor = actor or Actor.company(application.company_id)
    logger.info(
        f"Interview {interview.id} scheduled for application {application.id} "
        f"on {parsed_date} {format_time(parsed_start)}-{format_time(parsed_end)}"
    )

    await track_action(
        application,
        "interview_scheduled",
        previous,
        application.status,
        actor,
        notes=notes,
        metadata={
            "interview_id": interview.id,
            "interview_date": parsed_date.isoformat(),
            "start_time": format_time(parsed_start),
            "end_time": format_time(parsed_end),
            "duration": duration,
        },
    )
    await ensure_chat(
        application,
        f"Interview scheduled for {parsed_date.isoformat()} at {format_time(parsed_start)}.",
    )
    await notify_safely(
        "interview.scheduled",
        event_payload(
            application,
            interview_id=interview.id,
            interview_date=parsed_date.isoformat(),
            start_time=format_time(parsed_start),
            end_time=format_time(parsed_end),
        ),
    )

    result = serialize_application(application)
    result["interview"] = {
        "id": interview.id,
        "interview_date": parsed_date.isoformat(),
        "start_time": format_time(parsed_start),
        "end_time": format_time(parsed_end),
        "duration": duration,
        "status": interview.status.value,
    }
    return result


async def respond_to_interview(
    application_id: str, response: str, actor: Optional[Actor] = None
) -> Dict[str, Any]:
    """
    Seeker accepts or declines the scheduled interview.

    Accepting confirms the interview. Declining cancels it, which frees the
    slot; the application keeps its status.
    """
    try:
        parsed = InterviewResponse(response)
    except ValueError as e:
        raise InvalidInputError("Response must be 'accepted' or 'declined'") from e

    async def mutate(session, application):
        interview = (
            await session.get(Interview, application.interview_id)
            if application.interview_id
            else None
        )
        if interview is None:
            raise InvalidTransitionError(
                "Application has no interview to respond to",
                current_status=application.status.value,
                action="respond to interview",
            )
        if interview.confirmation_status != ConfirmationStatus.PENDING:
            raise InvalidTransitionError(
                "Interview has already been answered",
                current_status=interview.status.value,
                action="respond to interview",
            )

        stamp = now()
        if parsed == InterviewResponse.ACCEPTED:
            assert_interview_transition(interview.status, InterviewStatus.CONFIRMED, "accept")
            interview.status = InterviewStatus.CONFIRMED
            interview.confirmation_status = ConfirmationStatus.CONFIRMED
            interview.confirmed_at = stamp
            application.interview_status = ApplicationInterviewStatus.CONFIRMED
        else:
            assert_interview_transition(interview.status, InterviewStatus.CANCELLED, "decline")
            interview.status = InterviewStatus.CANCELLED
            interview.confirmation_status = ConfirmationStatus.DECLINED
            interview.cancellation_reason = "Declined by seeker"
            interview.cancelled_at = stamp
            application.interview_status = ApplicationInterviewStatus.DECLINED
        interview.updated_at = stamp
        application.interview_response = parsed
        return interview

    application, previous, interview = await run_application_write(
        application_id, "respond to interview", mutate
    )
    actor = actor or Actor.seeker(application.seeker_id)

    await track_action(
        application,
        f"interview_{parsed.value}",
        previous,
        application.status,
        actor,
        metadata={"interview_id": interview.id},
    )
    await notify_safely(
        f"interview.{parsed.value}",
        event_payload(application, interview_id=interview.id),
    )
    return serialize_application(application)


# ==================== Terminal moves ===================== #
async def decline_application(
    application_id: str,
    reason: Optional[str] = None,
    actor: Optional[Actor] = None,
    notes: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Company declines the application.

    Unrecognized reasons are coerced to "Another candidate selected". A linked
    interview still holding its slot is cancelled in the same write.
    """
    decline_reason = DeclineReason.coerce(reason)

    async def mutate(session, application):
        move_status(application, ApplicationStatus.DECLINED, "decline")
        application.decline_reason = decline_reason.value
        application.declined_at = application.status_changed_at
        await cancel_active_interview(session, application, "Application declined")

    application, previous, _ = await run_application_write(
        application_id, "decline", mutate
    )
    actor = actor or Actor.company(application.company_id)

    await track_action(
        application,
        "declined",
        previous,
        application.status,
        actor,
        reason=decline_reason.value,
        notes=notes,
    )
    await notify_safely(
        "application.declined",
        event_payload(application, reason=decline_reason.value),
    )
    return serialize_application(application)


async def withdraw_application(
    application_id: str, reason: Optional[str] = None, actor: Optional[Actor] = None
) -> Dict[str, Any]:
    """Seeker withdraws; a linked active interview is cancelled."""

    async def mutate(session, application):
        move_status(application, ApplicationStatus.WITHDRAWN, "withdraw")
        application.withdrawal_reason = reason
        await cancel_active_interview(session, application, "Application withdrawn")

    application, previous, _ = await run_application_write(
        application_id, "withdraw", mutate
    )
    actor = actor or Actor.seeker(application.seeker_id)

    await track_action(
        application, "withdrawn", previous, application.status, actor, reason=reason
    )
    await notify_safely("application.withdrawn", event_payload(application))
    return serialize_application(application)


# ==================== Reads ===================== #
async def get_application(application_id: str, populate: bool = False) -> Dict[str, Any]:
    """
    Get an application.

    Args:
        application_id: The application ID
        populate: Attach job and company snapshots

    Raises:
        NotFoundError: Application does not exist
    """
    async with AsyncSessionLocal() as session:
        application = await load_application(session, application_id)
        data = serialize_application(application)

        if populate:
            job = await session.get(Job, application.job_id)
            company = await session.get(Company, application.company_id)
            data["job"] = (
                {"id": job.id, "title": job.title, "hiring_type": job.hiring_type.value}
                if job
                else None
            )
            data["company"] = {"id": company.id, "name": company.name} if company else None

        return data


async def list_applications(
    job_id: Optional[str] = None,
    seeker_id: Optional[str] = None,
    company_id: Optional[str] = None,
    status: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> Dict[str, Any]:
    """List applications with filtering, newest first."""
    async with AsyncSessionLocal() as session:
        query = select(Application)

        if job_id:
            query = query.where(Application.job_id == job_id)
        if seeker_id:
            query = query.where(Application.seeker_id == seeker_id)
        if company_id:
            query = query.where(Application.company_id == company_id)
        if status:
            try:
                query = query.where(Application.status == ApplicationStatus(status))
            except ValueError as e:
                raise InvalidInputError(f"Unknown application status: {status}") from e

        count_query = select(func.count()).select_from(query.subquery())
        total = (await session.execute(count_query)).scalar() or 0

        query = query.order_by(Application.applied_at.desc()).limit(limit).offset(offset)
        result = await session.execute(query)

        return {
            "applications": [serialize_application(a) for a in result.scalars().all()],
            "total": total,
            "limit": limit,
            "offset": offset,
        }


async def get_job_application_stats(job_id: str) -> Dict[str, Any]:
    """Count a job's applications by status."""
    async with AsyncSessionLocal() as session:
        result = await session.execute(
            select(Application.status, func.count())
            .where(Application.job_id == job_id)
            .group_by(Application.status)
        )
        counts = {status.value: 0 for status in ApplicationStatus}
        for status, count in result.all():
            counts[status.value] = count

    return {"job_id": job_id, "total": sum(counts.values()), "by_status": counts}

