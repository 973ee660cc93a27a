"""
Application history (audit trail) service functions.

Writes are best-effort from the caller's point of view: ``track_action`` logs
and swallows its own failures so an audit hiccup never undoes a committed
workflow transition.
"""

from collections import Counter
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import select

from core.utils.datetime import days_between, isoformat
from core.workflow.actors import Actor, SYSTEM_ACTOR
from database.engine import AsyncSessionLocal
from database.models.applications import Application
from database.models.history import ApplicationHistory

logger = logging.getLogger(__name__)

APPLICATION_HISTORY_LIMIT = 50
SEEKER_HISTORY_LIMIT = 100
COMPANY_HISTORY_LIMIT = 200


def _status_value(status: Any) -> Optional[str]:
    if status is None:
        return None
    return status.value if hasattr(status, "value") else str(status)


def serialize_history(entry: ApplicationHistory) -> Dict[str, Any]:
    return {
        "id": entry.history_id,
        "sequence": entry.id,
        "application_id": entry.application_id,
        "job_id": entry.job_id,
        "seeker_id": entry.seeker_id,
        "company_id": entry.company_id,
        "action": entry.action,
        "from_status": entry.from_status,
        "to_status": entry.to_status,
        "action_by": entry.action_by.value,
        "action_by_id": entry.action_by_id,
        "reason": entry.reason,
        "notes": entry.notes,
        "metadata": entry.extra_metadata or {},
        "action_at": isoformat(entry.action_at),
    }


async def track_action(
    application: Application,
    action: str,
    from_status: Any = None,
    to_status: Any = None,
    actor: Optional[Actor] = None,
    reason: Optional[str] = None,
    notes: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Optional[str]:
    """
    Append one immutable history record for an application.

    Args:
        application: Application the action was performed on
        action: Action name (applied, hired, interview_scheduled, ...)
        from_status: Status before the action
        to_status: Status after the action
        actor: Who performed the action (defaults to the system)
        reason: Free-text reason
        notes: Free-text notes
        metadata: Extra structured context

    Returns:
        The new history id, or None if the write failed
    """
    actor = actor or SYSTEM_ACTOR
    try:
        async with AsyncSessionLocal() as session:
            entry = ApplicationHistory(
                application_id=application.id,
                job_id=application.job_id,
                seeker_id=application.seeker_id,
                company_id=application.company_id,
                action=action,
                from_status=_status_value(from_status),
                to_status=_status_value(to_status),
                action_by=actor.type,
                action_by_id=actor.id,
                reason=reason,
                notes=notes,
                extra_metadata=metadata or {},
            )
            session.add(entry)
            await session.commit()
            return entry.history_id
    except Exception:
        logger.error(
            f"Failed to record history action {action} for application {application.id}",
            exc_info=True,
        )
        return None


async def _query_history(column, value: str, limit: int) -> List[Dict[str, Any]]:
    async with AsyncSessionLocal() as session:
        result = await session.execute(
            select(ApplicationHistory)
            .where(column == value)
            .order_by(ApplicationHistory.action_at.desc(), ApplicationHistory.id.desc())
            .limit(limit)
        )
        return [serialize_history(entry) for entry in result.scalars().all()]


async def get_application_history(
    application_id: str, limit: int = APPLICATION_HISTORY_LIMIT
) -> List[Dict[str, Any]]:
    """History for one application, newest first."""
    return await _query_history(ApplicationHistory.application_id, application_id, limit)


async def get_seeker_history(
    seeker_id: str, limit: int = SEEKER_HISTORY_LIMIT
) -> List[Dict[str, Any]]:
    """History across a seeker's applications, newest first."""
    return await _query_history(ApplicationHistory.seeker_id, seeker_id, limit)


async def get_company_history(
    company_id: str, limit: int = COMPANY_HISTORY_LIMIT
) -> List[Dict[str, Any]]:
    """History across a company's applications, newest first."""
    return await _query_history(ApplicationHistory.company_id, company_id, limit)


async def get_application_stats(application_id: str) -> Dict[str, Any]:
    """
    Aggregate an application's history.

    ``time_to_hire`` is the number of days, rounded, between the first
    ``applied`` action and the first ``hired`` action; it is None unless both
    exist.
    """
    async with AsyncSessionLocal() as session:
        result = await session.execute(
            select(ApplicationHistory)
            .where(ApplicationHistory.application_id == application_id)
            .order_by(ApplicationHistory.action_at.asc(), ApplicationHistory.id.asc())
        )
        entries = result.scalars().all()

    action_counts = Counter(entry.action for entry in entries)
    applied = next((e for e in entries if e.action == "applied"), None)
    hired = next((e for e in entries if e.action == "hired"), None)

    time_to_hire = None
    if applied and hired:
        time_to_hire = round(days_between(applied.action_at, hired.action_at))

    timeline = [
        {
            "action": entry.action,
            "from_status": entry.from_status,
            "to_status": entry.to_status,
            "action_by": entry.action_by.value,
            "action_at": isoformat(entry.action_at),
        }
        for entry in entries
    ]

    return {
        "application_id": application_id,
        "total_actions": len(entries),
        "action_counts": dict(action_counts),
        "timeline": timeline,
        "last_action": timeline[-1] if timeline else None,
        "time_to_hire": time_to_hire,
    }
