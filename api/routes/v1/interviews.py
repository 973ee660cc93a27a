"""
Interview management endpoints.

Rescheduling, confirmation, cancellation, completion and no-show marking.
Scheduling itself starts from the application (``POST /applications/{id}/interview``).
"""

from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Path
from pydantic import BaseModel, Field

from api.dependencies import get_actor
from api.services import interviews as interview_service
from core.workflow.actors import Actor

router = APIRouter(prefix="/interviews", tags=["interviews"])


class RescheduleRequest(BaseModel):
    """Request model for rescheduling an interview."""
    new_date: date = Field(..., description="New interview date")
    new_time: str = Field(..., pattern=r"^\d{2}:\d{2}$", description="New start time (HH:MM)")
    reason: Optional[str] = Field(None, description="Reason for rescheduling")


class CancelRequest(BaseModel):
    reason: Optional[str] = Field(None, description="Reason for cancellation")


class CompleteRequest(BaseModel):
    """Request model for recording interview results."""
    rating: Optional[int] = Field(None, ge=1, le=5)
    feedback: Optional[str] = None
    result: Optional[Literal["pass", "fail", "pending"]] = None
    next_steps: Optional[str] = None


@router.get("/{interview_id}", summary="Get Interview")
async def get_interview(interview_id: str = Path(..., description="Interview ID")):
    return await interview_service.get_interview(interview_id)


@router.post("/{interview_id}/reschedule", summary="Reschedule Interview")
async def reschedule_interview(
    interview_id: str,
    request: RescheduleRequest,
    actor: Actor = Depends(get_actor),
):
    """Move the interview; 409 on conflict or when the reschedule limit is reached."""
    return await interview_service.reschedule_interview(
        interview_id,
        new_date=request.new_date,
        new_start_time=request.new_time,
        reason=request.reason,
        actor=actor,
    )


@router.post("/{interview_id}/confirm", summary="Confirm Interview")
async def confirm_interview(interview_id: str, actor: Actor = Depends(get_actor)):
    return await interview_service.confirm_interview(interview_id, actor=actor)


@router.post("/{interview_id}/cancel", summary="Cancel Interview")
async def cancel_interview(
    interview_id: str,
    request: CancelRequest = CancelRequest(),
    actor: Actor = Depends(get_actor),
):
    return await interview_service.cancel_interview(
        interview_id, reason=request.reason, actor=actor
    )


@router.post("/{interview_id}/complete", summary="Complete Interview")
async def complete_interview(
    interview_id: str,
    request: CompleteRequest = CompleteRequest(),
    actor: Actor = Depends(get_actor),
):
    return await interview_service.complete_interview(
        interview_id,
        rating=request.rating,
        feedback=request.feedback,
        result=request.result,
        next_steps=request.next_steps,
        actor=actor,
    )


@router.post("/{interview_id}/no-show", summary="Mark No-Show")
async def mark_no_show(interview_id: str, actor: Actor = Depends(get_actor)):
    return await interview_service.mark_no_show(interview_id, actor=actor)
