"""
Post-commit side effects of workflow transitions.

Everything here runs after the authoritative state write has committed.
Failures are logged and never propagated to the caller.
"""

from typing import Any, Dict, Optional
import logging

from sqlalchemy import update

from core.integrations.chat import get_chat_provisioner
from core.integrations.notifications import get_notifier
from core.integrations.reputation import SeekerOutcome, get_reputation_service
from core.utils.datetime import now
from database.engine import AsyncSessionLocal
from database.models.applications import Application

logger = logging.getLogger(__name__)


async def notify_safely(event_type: str, payload: Dict[str, Any]) -> None:
    try:
        await get_notifier().notify(event_type, payload)
    except Exception:
        logger.warning(f"Notification {event_type} could not be dispatched", exc_info=True)


async def report_outcome_safely(
    seeker_id: str, outcome: SeekerOutcome, context: Optional[Dict[str, Any]] = None
) -> None:
    try:
        await get_reputation_service().report_outcome(seeker_id, outcome, context)
    except Exception:
        logger.warning(
            f"Reputation outcome {outcome.value} for seeker {seeker_id} was not reported",
            exc_info=True,
        )


async def ensure_chat(application: Application, welcome_message: str) -> Optional[str]:
    """
    Provision the application's chat channel once.

    The channel id is stored with a conditional update on ``chat_initiated``,
    so only the first caller flips the flag and sends the welcome message.
    The in-memory ``application`` is updated to match.

    Returns:
        The chat id, or None if provisioning failed
    """
    if application.chat_initiated:
        return application.chat_id

    try:
        provisioner = get_chat_provisioner()
        chat_id = await provisioner.create_chat(
            application.company_id,
            application.seeker_id,
            application.job_id,
            application.job_title,
        )

        async with AsyncSessionLocal() as session:
            result = await session.execute(
                update(Application)
                .where(
                    Application.id == application.id,
                    Application.chat_initiated.is_(False),
                )
                .values(
                    chat_id=chat_id,
                    chat_initiated=True,
                    updated_at=now(),
                    version=Application.version + 1,
                )
                .execution_options(synchronize_session=False)
            )
            await session.commit()
            first = result.rowcount == 1

        application.chat_id = chat_id
        application.chat_initiated = True
        if first:
            application.version += 1
            await provisioner.send_system_message(chat_id, welcome_message)
            logger.info(f"Chat {chat_id} linked to application {application.id}")
        return chat_id
    except Exception:
        logger.error(
            f"Chat provisioning failed for application {application.id}", exc_info=True
        )
        return None
