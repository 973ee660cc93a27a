"""
Application workflow endpoints.

Thin adapters over the application, hiring and history services. Domain
errors propagate to the registered exception handlers.
"""

from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Path, Query
from pydantic import BaseModel, Field

from api.dependencies import Pagination, get_actor
from api.services import applications as application_service
from api.services import hiring as hiring_service
from api.services import history as history_service
from core.workflow.actors import Actor

router = APIRouter(prefix="/applications", tags=["applications"])


class CreateApplicationRequest(BaseModel):
    """Request model for applying to a job or inviting a seeker."""
    seeker_id: str = Field(..., description="Seeker the application belongs to")
    company_id: str = Field(..., description="Company that owns the job")
    job_id: str = Field(..., description="Job being applied to")
    source: Literal["applied", "invited"] = Field("applied", description="How the application starts")


class ReasonRequest(BaseModel):
    reason: Optional[str] = Field(None, description="Free-text reason")


class DeclineRequest(BaseModel):
    reason: Optional[str] = Field(
        None,
        description="One of: Another candidate selected, Not the right fit, "
        "Limited experience, Position filled",
    )
    notes: Optional[str] = None


class ScheduleInterviewRequest(BaseModel):
    """Request model for scheduling an interview."""
    interview_date: date = Field(..., description="Interview date (YYYY-MM-DD)")
    start_time: str = Field(..., pattern=r"^\d{2}:\d{2}$", description="Start time (HH:MM)")
    duration: Optional[int] = Field(None, ge=5, le=480, description="Duration in minutes")
    interview_type: Literal["in_person", "phone", "video", "group"] = "in_person"
    location: Optional[str] = Field(None, description="Address or meeting link")
    notes: Optional[str] = None
    time_zone: Optional[str] = Field(None, description="IANA time zone name")


class InterviewResponseRequest(BaseModel):
    response: Literal["accepted", "declined"]


class HireResponseRequest(BaseModel):
    response: Literal["accepted", "rejected"]
    notes: Optional[str] = None


class AttendanceReportRequest(BaseModel):
    """Request model for an attendance report."""
    status: Literal["present", "absent", "late"] = "absent"
    report_date: Optional[date] = Field(None, alias="date", description="Day covered, defaults to today")
    reason: Optional[str] = None
    notes: Optional[str] = None


class CompleteEngagementRequest(BaseModel):
    rating: Optional[int] = Field(None, ge=1, le=5)
    feedback: Optional[str] = None
    notes: Optional[str] = None


@router.post("", status_code=201, summary="Create Application")
async def create_application(
    request: CreateApplicationRequest,
    actor: Actor = Depends(get_actor),
):
    """Seeker applies to a job, or a company invites a seeker."""
    return await application_service.create_application(
        seeker_id=request.seeker_id,
        company_id=request.company_id,
        job_id=request.job_id,
        source=request.source,
        actor=None if actor.id is None else actor,
    )


@router.get("", summary="List Applications")
async def list_applications(
    job_id: Optional[str] = Query(None, description="Filter by job"),
    seeker_id: Optional[str] = Query(None, description="Filter by seeker"),
    company_id: Optional[str] = Query(None, description="Filter by company"),
    status: Optional[str] = Query(None, description="Filter by status"),
    pagination: Pagination = Depends(),
):
    return await application_service.list_applications(
        job_id=job_id,
        seeker_id=seeker_id,
        company_id=company_id,
        status=status,
        limit=pagination.limit,
        offset=pagination.offset,
    )


@router.get("/{application_id}", summary="Get Application")
async def get_application(
    application_id: str = Path(..., description="Application ID"),
    populate: bool = Query(False, description="Attach job and company snapshots"),
):
    return await application_service.get_application(application_id, populate=populate)


@router.post("/{application_id}/accept-invitation", summary="Accept Invitation")
async def accept_invitation(application_id: str, actor: Actor = Depends(get_actor)):
    return await application_service.accept_invitation(application_id, actor=actor)


@router.post("/{application_id}/decline-invitation", summary="Decline Invitation")
async def decline_invitation(
    application_id: str,
    request: ReasonRequest = ReasonRequest(),
    actor: Actor = Depends(get_actor),
):
    return await application_service.decline_invitation(
        application_id, reason=request.reason, actor=actor
    )


@router.post("/{application_id}/shortlist", summary="Shortlist Application")
async def shortlist_application(application_id: str, actor: Actor = Depends(get_actor)):
    return await application_service.shortlist_application(application_id, actor=actor)


@router.post("/{application_id}/decline", summary="Decline Application")
async def decline_application(
    application_id: str,
    request: DeclineRequest = DeclineRequest(),
    actor: Actor = Depends(get_actor),
):
    """Company declines; unknown reasons fall back to "Another candidate selected"."""
    return await application_service.decline_application(
        application_id, reason=request.reason, notes=request.notes, actor=actor
    )


@router.post("/{application_id}/withdraw", summary="Withdraw Application")
async def withdraw_application(
    application_id: str,
    request: ReasonRequest = ReasonRequest(),
    actor: Actor = Depends(get_actor),
):
    return await application_service.withdraw_application(
        application_id, reason=request.reason, actor=actor
    )


@router.post("/{application_id}/interview", status_code=201, summary="Schedule Interview")
async def schedule_interview(
    application_id: str,
    request: ScheduleInterviewRequest,
    actor: Actor = Depends(get_actor),
):
    """Schedule the interview; 409 if the slot conflicts with another interview."""
    return await application_service.schedule_interview(
        application_id,
        interview_date=request.interview_date,
        start_time=request.start_time,
        duration=request.duration,
        interview_type=request.interview_type,
        location=request.location,
        notes=request.notes,
        time_zone=request.time_zone,
        actor=actor,
    )


@router.post("/{application_id}/interview-response", summary="Respond to Interview")
async def respond_to_interview(
    application_id: str,
    request: InterviewResponseRequest,
    actor: Actor = Depends(get_actor),
):
    return await application_service.respond_to_interview(
        application_id, request.response, actor=actor
    )


@router.post("/{application_id}/hire", summary="Send Hire Request")
async def hire(application_id: str, actor: Actor = Depends(get_actor)):
    return await hiring_service.hire_now(application_id, actor=actor)


@router.post("/{application_id}/hire-response", summary="Respond to Hire Request")
async def respond_to_hire(
    application_id: str,
    request: HireResponseRequest,
    actor: Actor = Depends(get_actor),
):
    return await hiring_service.respond_to_hire_request(
        application_id, request.response, actor=actor, notes=request.notes
    )


@router.post("/{application_id}/reports", status_code=201, summary="Report Attendance")
async def report_attendance(
    application_id: str,
    request: AttendanceReportRequest,
    actor: Actor = Depends(get_actor),
):
    return await hiring_service.report_attendance(
        application_id,
        request.status,
        report_date=request.report_date,
        reason=request.reason,
        notes=request.notes,
        actor=actor,
    )


@router.get("/{application_id}/reports", summary="Attendance Report History")
async def get_reports(application_id: str):
    reports = await hiring_service.get_report_history(application_id)
    return {"reports": reports, "summary": hiring_service.summarize_reports(reports)}


@router.post("/{application_id}/complete", summary="Complete Engagement")
async def complete_engagement(
    application_id: str,
    request: CompleteEngagementRequest = CompleteEngagementRequest(),
    actor: Actor = Depends(get_actor),
):
    return await hiring_service.complete_engagement(
        application_id,
        rating=request.rating,
        feedback=request.feedback,
        notes=request.notes,
        actor=actor,
    )


@router.get("/{application_id}/history", summary="Application History")
async def get_history(
    application_id: str,
    limit: int = Query(history_service.APPLICATION_HISTORY_LIMIT, ge=1, le=500),
):
    return {"history": await history_service.get_application_history(application_id, limit)}


@router.get("/{application_id}/stats", summary="Application Stats")
async def get_stats(application_id: str):
    await application_service.get_application(application_id)
    return await history_service.get_application_stats(application_id)
