"""Outbound delivery tasks: workflow notifications and reputation outcomes."""

from typing import Dict, Any, Optional
import logging

from celery import Task
import httpx

from core.config import settings
from workers.celery_app import celery_app

logger = logging.getLogger(__name__)


def _post_json(url: str, payload: Dict[str, Any], headers: Dict[str, str]) -> int:
    with httpx.Client(timeout=30.0) as client:
        response = client.post(url, json=payload, headers=headers)
        response.raise_for_status()
    return response.status_code


@celery_app.task(name="workers.tasks.notifications.deliver_notification", bind=True)
def deliver_notification(
    self: Task,
    event_type: str,
    payload: Dict[str, Any],
    webhook_url: Optional[str] = None,
) -> dict:
    """Deliver a workflow notification to the notification service.

    Args:
        event_type: Event name (application.submitted, interview.scheduled, ...)
        payload: Event payload
        webhook_url: Override for the configured notification endpoint

    Returns:
        Dictionary with delivery status
    """
    url = webhook_url or settings.notification_webhook_url
    if not url:
        logger.info(f"No notification endpoint configured, dropping {event_type}")
        return {"status": "skipped", "event_type": event_type}

    try:
        status_code = _post_json(
            url,
            {"event": event_type, "data": payload},
            {"Content-Type": "application/json", "X-Webhook-Event": event_type},
        )
        return {"status": "delivered", "status_code": status_code, "event_type": event_type}
    except httpx.HTTPError as e:
        # Retry with exponential backoff
        raise self.retry(exc=e, countdown=2 ** self.request.retries * 60, max_retries=5)


@celery_app.task(name="workers.tasks.notifications.report_seeker_outcome", bind=True)
def report_seeker_outcome(
    self: Task,
    seeker_id: str,
    outcome: str,
    context: Optional[Dict[str, Any]] = None,
) -> dict:
    """Forward a seeker outcome (no_show, absent, late, ...) to the reputation service."""
    url = settings.reputation_service_url
    if not url:
        logger.info(f"No reputation service configured, dropping {outcome} for {seeker_id}")
        return {"status": "skipped", "outcome": outcome}

    try:
        status_code = _post_json(
            url,
            {"seeker_id": seeker_id, "outcome": outcome, "context": context or {}},
            {"Content-Type": "application/json"},
        )
        return {"status": "reported", "status_code": status_code, "outcome": outcome}
    except httpx.HTTPError as e:
        raise self.retry(exc=e, countdown=2 ** self.request.retries * 30, max_retries=5)
