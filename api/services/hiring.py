"""
Hire negotiation and post-hire reporting.

A company sends at most one pending hire request per application. Once the
seeker accepts, attendance reporting is enabled until the engagement is
completed.
"""

from datetime import date
from typing import Any, Dict, List, Optional
import logging

from api.services.applications import (
    load_application,
    move_status,
    run_application_write,
    serialize_application,
    event_payload,
)
from api.services.history import track_action
from api.services.side_effects import ensure_chat, notify_safely, report_outcome_safely
from core.exceptions import AlreadyPendingError, InvalidInputError, InvalidTransitionError
from core.integrations.reputation import SeekerOutcome
from core.utils.datetime import now, parse_date, today
from core.workflow.actors import Actor
from core.workflow.transitions import HIRE_SOURCE_STATUSES, assert_source_status
from database.engine import AsyncSessionLocal
from database.models.applications import (
    ApplicationStatus,
    AttendanceStatus,
    HireResponse,
    HireStatus,
)

logger = logging.getLogger(__name__)


async def hire_now(application_id: str, actor: Optional[Actor] = None) -> Dict[str, Any]:
    """
    Send a hire request to the seeker.

    Raises:
        AlreadyPendingError: A hire request is already awaiting a response
        InvalidTransitionError: Status does not allow hiring
    """

    async def mutate(session, application):
        if application.hire_status == HireStatus.PENDING:
            raise AlreadyPendingError(
                "A hire request is already pending for this application",
                current_status=application.status.value,
                action="hire",
            )
        assert_source_status(application.status, HIRE_SOURCE_STATUSES, "hire")
        move_status(application, ApplicationStatus.HIRED, "hire")
        application.hire_status = HireStatus.PENDING
        application.hire_response = None
        application.hire_requested_at = application.status_changed_at

    application, previous, _ = await run_application_write(application_id, "hire", mutate)
    actor = actor or Actor.company(application.company_id)
    logger.info(f"Hire request sent for application {application.id}")

    await track_action(application, "hired", previous, application.status, actor)
    await ensure_chat(application, "You have received a hire request.")
    await notify_safely("application.hire_requested", event_payload(application))
    return serialize_application(application)


send_hire_request = hire_now


async def respond_to_hire_request(
    application_id: str,
    response: str,
    actor: Optional[Actor] = None,
    notes: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Seeker accepts or rejects the pending hire request.

    Accepting moves the application to ``accepted`` and enables attendance
    reporting. Rejecting records the answer but leaves the status at
    ``hired``.
    """
    try:
        parsed = HireResponse(response)
    except ValueError as e:
        raise InvalidInputError("Response must be 'accepted' or 'rejected'") from e

    async def mutate(session, application):
        if application.hire_status != HireStatus.PENDING:
            raise InvalidTransitionError(
                "No pending hire request to respond to",
                current_status=application.status.value,
                action="respond to hire request",
            )
        if parsed == HireResponse.ACCEPTED:
            move_status(application, ApplicationStatus.ACCEPTED, "accept hire for")
            application.hire_status = HireStatus.ACCEPTED
            application.reporting_enabled = True
        else:
            application.hire_status = HireStatus.REJECTED
        application.hire_response = parsed
        application.hire_responded_at = now()

    application, previous, _ = await run_application_write(
        application_id, "respond to hire", mutate
    )
    actor = actor or Actor.seeker(application.seeker_id)
    logger.info(f"Hire request for application {application.id} {parsed.value}")

    await track_action(
        application,
        f"hire_{parsed.value}",
        previous,
        application.status,
        actor,
        notes=notes,
    )
    if parsed == HireResponse.ACCEPTED:
        await ensure_chat(application, "The hire has been accepted.")
        await report_outcome_safely(
            application.seeker_id,
            SeekerOutcome.HIRED,
            {"application_id": application.id, "job_id": application.job_id},
        )
    await notify_safely(f"application.hire_{parsed.value}", event_payload(application))
    return serialize_application(application)


async def report_attendance(
    application_id: str,
    status: str,
    report_date: Optional[str | date] = None,
    reason: Optional[str] = None,
    notes: Optional[str] = None,
    actor: Optional[Actor] = None,
) -> Dict[str, Any]:
    """
    Append an attendance report for an accepted hire.

    Args:
        application_id: The application ID
        status: ``present``, ``absent`` or ``late``
        report_date: Day the report covers (defaults to today)
        reason: Why the seeker was absent or late
        notes: Free-text notes
        actor: Who reports

    Raises:
        InvalidTransitionError: Reporting is not enabled or the engagement is completed
        InvalidInputError: Unknown status or malformed date
    """
    try:
        parsed_status = AttendanceStatus(status)
        parsed_date = parse_date(report_date) if report_date else today()
    except ValueError as e:
        raise InvalidInputError(str(e)) from e

    async def mutate(session, application):
        if not application.reporting_enabled:
            raise InvalidTransitionError(
                "Attendance reporting is not enabled for this application",
                current_status=application.status.value,
                action="report attendance",
            )
        if application.engagement_completed_at is not None:
            raise InvalidTransitionError(
                "The engagement has already been completed",
                current_status=application.status.value,
                action="report attendance",
            )
        reporter = actor or Actor.company(application.company_id)
        entry = {
            "date": parsed_date.isoformat(),
            "status": parsed_status.value,
            "reason": reason,
            "notes": notes,
            "reported_by": reporter.id,
            "reported_by_type": reporter.type.value,
            "reported_at": now().isoformat(),
        }
        application.report_history = [*(application.report_history or []), entry]
        return entry

    application, previous, entry = await run_application_write(
        application_id, "report attendance", mutate
    )
    actor = actor or Actor.company(application.company_id)

    await track_action(
        application,
        "attendance_reported",
        previous,
        application.status,
        actor,
        reason=reason,
        notes=notes,
        metadata=entry,
    )
    if parsed_status in (AttendanceStatus.ABSENT, AttendanceStatus.LATE):
        await report_outcome_safely(
            application.seeker_id,
            SeekerOutcome(parsed_status.value),
            {"application_id": application.id, "date": entry["date"]},
        )
    await notify_safely(
        "application.attendance_reported", event_payload(application, report=entry)
    )
    return serialize_application(application)


async def report_absence(
    application_id: str,
    reason: Optional[str] = None,
    report_date: Optional[str | date] = None,
    notes: Optional[str] = None,
    status: str = AttendanceStatus.ABSENT.value,
    actor: Optional[Actor] = None,
) -> Dict[str, Any]:
    return await report_attendance(
        application_id,
        status,
        report_date=report_date,
        reason=reason,
        notes=notes,
        actor=actor,
    )


async def complete_engagement(
    application_id: str,
    rating: Optional[int] = None,
    feedback: Optional[str] = None,
    notes: Optional[str] = None,
    actor: Optional[Actor] = None,
) -> Dict[str, Any]:
    """Close out an accepted hire; attendance reports are refused afterwards."""
    if rating is not None and not 1 <= rating <= 5:
        raise InvalidInputError("Rating must be between 1 and 5")

    async def mutate(session, application):
        if application.status != ApplicationStatus.ACCEPTED:
            raise InvalidTransitionError(
                "Only accepted hires can be completed",
                current_status=application.status.value,
                action="complete",
            )
        if application.engagement_completed_at is not None:
            raise InvalidTransitionError(
                "The engagement has already been completed",
                current_status=application.status.value,
                action="complete",
            )
        application.engagement_completed_at = now()

    application, previous, _ = await run_application_write(
        application_id, "complete engagement", mutate
    )
    actor = actor or Actor.company(application.company_id)

    await track_action(
        application,
        "completed",
        previous,
        application.status,
        actor,
        notes=notes,
        metadata={"rating": rating, "feedback": feedback},
    )
    await report_outcome_safely(
        application.seeker_id,
        SeekerOutcome.COMPLETED,
        {"application_id": application.id, "rating": rating},
    )
    await notify_safely("application.completed", event_payload(application))
    return serialize_application(application)


async def get_report_history(application_id: str) -> List[Dict[str, Any]]:
    async with AsyncSessionLocal() as session:
        application = await load_application(session, application_id)
        return list(application.report_history or [])


def summarize_reports(reports: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Counts of each attendance status plus the most recent report date."""
    counts = {status.value: 0 for status in AttendanceStatus}
    for report in reports:
        if report.get("status") in counts:
            counts[report["status"]] += 1
    latest = max((r["date"] for r in reports if r.get("date")), default=None)
    return {"total": len(reports), "by_status": counts, "latest_date": latest}
