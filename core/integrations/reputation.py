"""Seeker reputation reporting.

Score and strike bookkeeping lives in an external service; the workflow
engine only reports outcomes to it.
"""

from enum import Enum
from typing import Any, Dict, Optional, Protocol
import asyncio
import logging

from core.config import settings

logger = logging.getLogger(__name__)


class SeekerOutcome(str, Enum):
    NO_SHOW = "no_show"
    ABSENT = "absent"
    LATE = "late"
    HIRED = "hired"
    COMPLETED = "completed"


class ReputationService(Protocol):
    async def report_outcome(
        self,
        seeker_id: str,
        outcome: SeekerOutcome,
        context: Optional[Dict[str, Any]] = None,
    ) -> None: ...


class LoggingReputationService:
    async def report_outcome(
        self,
        seeker_id: str,
        outcome: SeekerOutcome,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        logger.info(f"Seeker {seeker_id} outcome {outcome.value}: {context or {}}")


class CeleryReputationService:
    async def report_outcome(
        self,
        seeker_id: str,
        outcome: SeekerOutcome,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        from workers.tasks.notifications import report_seeker_outcome

        await asyncio.to_thread(
            report_seeker_outcome.apply_async,
            kwargs={"seeker_id": seeker_id, "outcome": outcome.value, "context": context},
            retry=False,
        )


_reputation_service: Optional[ReputationService] = None


def get_reputation_service() -> ReputationService:
    """Get or create global reputation service instance."""
    global _reputation_service
    if _reputation_service is None:
        if settings.reputation_service_url:
            _reputation_service = CeleryReputationService()
        else:
            _reputation_service = LoggingReputationService()
    return _reputation_service


def set_reputation_service(service: Optional[ReputationService]) -> None:
    global _reputation_service
    _reputation_service = service
