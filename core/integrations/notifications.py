"""Notification dispatch for workflow events.

Dispatch is fire-and-forget: callers catch and log anything raised here, and
no return value is relied upon.
"""

from typing import Any, Dict, Optional, Protocol
import asyncio
import logging

from core.config import settings

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    async def notify(self, event_type: str, payload: Dict[str, Any]) -> None: ...


class LoggingNotifier:
    """Writes notifications to the log; used when no endpoint is configured."""

    async def notify(self, event_type: str, payload: Dict[str, Any]) -> None:
        logger.info(f"Notification {event_type}: {payload}")


class CeleryNotifier:
    """Queues notifications for delivery by the Celery worker."""

    async def notify(self, event_type: str, payload: Dict[str, Any]) -> None:
        from workers.tasks.notifications import deliver_notification

        await asyncio.to_thread(
            deliver_notification.apply_async,
            kwargs={"event_type": event_type, "payload": payload},
            retry=False,
        )


# Global notifier instance
_notifier: Optional[Notifier] = None


def get_notifier() -> Notifier:
    """Get or create global notifier instance."""
    global _notifier
    if _notifier is None:
        if settings.notification_webhook_url:
            _notifier = CeleryNotifier()
        else:
            _notifier = LoggingNotifier()
    return _notifier


def set_notifier(notifier: Optional[Notifier]) -> None:
    """Replace the global notifier (``None`` restores the default)."""
    global _notifier
    _notifier = notifier
