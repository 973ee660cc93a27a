"""Company-scoped endpoints: calendar, block list, history and job stats."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from api.dependencies import Pagination, get_actor
from api.services import applications as application_service
from api.services import blocking as blocking_service
from api.services import history as history_service
from api.services import interviews as interview_service
from core.workflow.actors import Actor

router = APIRouter(tags=["companies"])


class BlockRequest(BaseModel):
    reason: Optional[str] = Field(None, description="Why the seeker is blocked")


@router.get("/companies/{company_id}/available-slots", summary="Available Interview Slots")
async def get_available_slots(
    company_id: str,
    interview_date: date = Query(..., alias="date", description="Date to inspect"),
    duration: Optional[int] = Query(None, ge=5, le=480, description="Slot length in minutes"),
):
    return await interview_service.get_available_time_slots(
        company_id, interview_date, duration
    )


@router.get("/companies/{company_id}/interview-conflicts", summary="Check Interview Conflicts")
async def check_interview_conflicts(
    company_id: str,
    interview_date: date = Query(..., alias="date", description="Proposed date"),
    start_time: str = Query(..., description="Proposed start time (HH:MM)"),
    duration: Optional[int] = Query(None, ge=5, le=480, description="Slot length in minutes"),
    exclude_interview_id: Optional[str] = Query(None),
):
    return await interview_service.check_conflicts(
        company_id,
        interview_date,
        start_time,
        duration,
        exclude_interview_id=exclude_interview_id,
    )


@router.get("/companies/{company_id}/interviews", summary="List Company Interviews")
async def list_company_interviews(
    company_id: str,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    status: Optional[str] = Query(None),
    pagination: Pagination = Depends(),
):
    return await interview_service.list_company_interviews(
        company_id,
        start_date=start_date,
        end_date=end_date,
        status=status,
        limit=pagination.limit,
        offset=pagination.offset,
    )


@router.get("/companies/{company_id}/blocks", summary="List Blocked Seekers")
async def list_blocks(company_id: str):
    return {"blocks": await blocking_service.list_blocked_seekers(company_id)}


@router.put("/companies/{company_id}/blocks/{seeker_id}", summary="Block Seeker")
async def block_seeker(
    company_id: str,
    seeker_id: str,
    request: BlockRequest = BlockRequest(),
    actor: Actor = Depends(get_actor),
):
    return await blocking_service.block_seeker(
        company_id, seeker_id, reason=request.reason, blocked_by=actor.id
    )


@router.delete("/companies/{company_id}/blocks/{seeker_id}", summary="Unblock Seeker")
async def unblock_seeker(
    company_id: str,
    seeker_id: str,
    reason: Optional[str] = Query(None),
):
    return await blocking_service.unblock_seeker(company_id, seeker_id, reason=reason)


@router.get("/companies/{company_id}/history", summary="Company History")
async def company_history(
    company_id: str,
    limit: int = Query(history_service.COMPANY_HISTORY_LIMIT, ge=1, le=500),
):
    return {"history": await history_service.get_company_history(company_id, limit)}


@router.get("/seekers/{seeker_id}/history", summary="Seeker History")
async def seeker_history(
    seeker_id: str,
    limit: int = Query(history_service.SEEKER_HISTORY_LIMIT, ge=1, le=500),
):
    return {"history": await history_service.get_seeker_history(seeker_id, limit)}


@router.get("/seekers/{seeker_id}/interviews", summary="List Seeker Interviews")
async def list_seeker_interviews(
    seeker_id: str,
    status: Optional[str] = Query(None),
    pagination: Pagination = Depends(),
):
    return await interview_service.list_seeker_interviews(
        seeker_id,
        status=status,
        limit=pagination.limit,
        offset=pagination.offset,
    )


@router.get("/jobs/{job_id}/application-stats", summary="Job Application Stats")
async def job_application_stats(job_id: str):
    return await application_service.get_job_application_stats(job_id)
