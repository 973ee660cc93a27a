"""
Domain errors raised by the workflow engine.

Every error carries an ``error_code`` and an HTTP ``status_code`` so the
error-handling layer can render it without knowing the concrete type.
Persistence and infrastructure errors are not wrapped here; they surface as-is.
"""

from typing import Any, Iterable


class WorkflowError(Exception):
    """Base class for workflow domain errors."""

    error_code = "WORKFLOW_ERROR"
    status_code = 400

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.error_code, "message": self.message, **self.details}


class InvalidTransitionError(WorkflowError):
    """Current status does not permit the requested action."""

    error_code = "INVALID_TRANSITION"
    status_code = 409

    def __init__(
        self,
        message: str,
        current_status: str | None = None,
        action: str | None = None,
    ):
        details = {}
        if current_status is not None:
            details["current_status"] = current_status
        if action is not None:
            details["action"] = action
        super().__init__(message, details)
        self.current_status = current_status
        self.action = action


class AlreadyPendingError(InvalidTransitionError):
    """A hire request is already awaiting the seeker's response."""

    error_code = "ALREADY_PENDING"


class SchedulingConflictError(WorkflowError):
    """The requested slot overlaps interviews already holding it."""

    error_code = "SCHEDULING_CONFLICT"
    status_code = 409

    def __init__(self, conflicting_ids: Iterable[str], message: str | None = None):
        self.conflicting_ids = list(conflicting_ids)
        self.conflict_count = len(self.conflicting_ids)
        super().__init__(
            message
            or f"Time slot conflicts with {self.conflict_count} existing interview(s)",
            {
                "conflict_count": self.conflict_count,
                "conflicting_interview_ids": self.conflicting_ids,
            },
        )


class RescheduleLimitExceededError(WorkflowError):
    """The interview has used up all of its reschedules."""

    error_code = "RESCHEDULE_LIMIT_EXCEEDED"
    status_code = 409

    def __init__(self, reschedule_count: int, max_reschedules: int):
        self.reschedule_count = reschedule_count
        self.max_reschedules = max_reschedules
        super().__init__(
            f"Maximum reschedules ({max_reschedules}) reached",
            {"reschedule_count": reschedule_count, "max_reschedules": max_reschedules},
        )


class BlockedError(WorkflowError):
    """The seeker is blocked by the company."""

    error_code = "BLOCKED"
    status_code = 403

    def __init__(self, reason: str | None = None):
        self.reason = reason
        super().__init__(
            "Seeker is blocked by this company",
            {"reason": reason} if reason else None,
        )


class NotFoundError(WorkflowError):
    """A referenced application, interview or job does not exist."""

    error_code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource: str, resource_id: Any):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(
            f"{resource} not found",
            {"resource": resource, "resource_id": str(resource_id)},
        )


class InvalidInputError(WorkflowError):
    """Malformed input to a workflow operation."""

    error_code = "INVALID_INPUT"
    status_code = 400


class ConcurrentModificationError(WorkflowError):
    """A write kept losing optimistic-concurrency races and was abandoned."""

    error_code = "CONCURRENT_MODIFICATION"
    status_code = 409
