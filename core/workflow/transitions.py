"""
Status transition tables for applications and interviews.

These are the only edges the services may move along; anything else is an
``InvalidTransitionError`` and leaves the record untouched.
"""

from core.exceptions import InvalidTransitionError
from database.models.applications import ApplicationStatus
from database.models.interviews import InterviewStatus

APPLICATION_TRANSITIONS: dict[ApplicationStatus, frozenset[ApplicationStatus]] = {
    ApplicationStatus.APPLIED: frozenset({
        ApplicationStatus.SHORTLISTED,
        ApplicationStatus.INTERVIEWED,
        ApplicationStatus.HIRED,
        ApplicationStatus.DECLINED,
        ApplicationStatus.WITHDRAWN,
    }),
    ApplicationStatus.INVITED: frozenset({
        ApplicationStatus.INVITED_APPLIED,
        ApplicationStatus.WITHDRAWN,
    }),
    ApplicationStatus.INVITED_APPLIED: frozenset({
        ApplicationStatus.SHORTLISTED,
        ApplicationStatus.INTERVIEWED,
        ApplicationStatus.HIRED,
        ApplicationStatus.DECLINED,
        ApplicationStatus.WITHDRAWN,
    }),
    ApplicationStatus.SHORTLISTED: frozenset({
        ApplicationStatus.INTERVIEWED,
        ApplicationStatus.HIRED,
        ApplicationStatus.DECLINED,
        ApplicationStatus.WITHDRAWN,
    }),
    ApplicationStatus.INTERVIEWED: frozenset({
        ApplicationStatus.HIRED,
        ApplicationStatus.DECLINED,
        ApplicationStatus.WITHDRAWN,
    }),
    ApplicationStatus.HIRED: frozenset({
        ApplicationStatus.ACCEPTED,
        ApplicationStatus.DECLINED,
    }),
    ApplicationStatus.DECLINED: frozenset(),
    ApplicationStatus.WITHDRAWN: frozenset(),
    ApplicationStatus.ACCEPTED: frozenset(),
}

TERMINAL_APPLICATION_STATUSES = frozenset(
    status for status, targets in APPLICATION_TRANSITIONS.items() if not targets
)

# Statuses the hire and schedule actions may start from
HIRE_SOURCE_STATUSES = frozenset({
    ApplicationStatus.APPLIED,
    ApplicationStatus.INVITED_APPLIED,
    ApplicationStatus.INTERVIEWED,
})
SCHEDULE_SOURCE_STATUSES = frozenset({
    ApplicationStatus.APPLIED,
    ApplicationStatus.INVITED_APPLIED,
})

INTERVIEW_TRANSITIONS: dict[InterviewStatus, frozenset[InterviewStatus]] = {
    InterviewStatus.SCHEDULED: frozenset({
        InterviewStatus.CONFIRMED,
        InterviewStatus.RESCHEDULED,
        InterviewStatus.COMPLETED,
        InterviewStatus.CANCELLED,
        InterviewStatus.NO_SHOW,
    }),
    InterviewStatus.CONFIRMED: frozenset({
        InterviewStatus.RESCHEDULED,
        InterviewStatus.COMPLETED,
        InterviewStatus.CANCELLED,
        InterviewStatus.NO_SHOW,
    }),
    InterviewStatus.RESCHEDULED: frozenset({
        InterviewStatus.CONFIRMED,
        InterviewStatus.RESCHEDULED,
        InterviewStatus.COMPLETED,
        InterviewStatus.CANCELLED,
        InterviewStatus.NO_SHOW,
    }),
    InterviewStatus.COMPLETED: frozenset(),
    InterviewStatus.CANCELLED: frozenset(),
    InterviewStatus.NO_SHOW: frozenset(),
}

# Interviews in these statuses occupy their slot on the company calendar
ACTIVE_INTERVIEW_STATUSES = frozenset({
    InterviewStatus.SCHEDULED,
    InterviewStatus.CONFIRMED,
    InterviewStatus.RESCHEDULED,
})


def can_transition(current: ApplicationStatus, target: ApplicationStatus) -> bool:
    return target in APPLICATION_TRANSITIONS.get(current, frozenset())


def assert_transition(
    current: ApplicationStatus, target: ApplicationStatus, action: str
) -> None:
    """Raise ``InvalidTransitionError`` unless ``current -> target`` is an edge."""
    if not can_transition(current, target):
        raise InvalidTransitionError(
            f"Cannot {action} an application in status '{current.value}'",
            current_status=current.value,
            action=action,
        )


def assert_source_status(
    current: ApplicationStatus, allowed: frozenset[ApplicationStatus], action: str
) -> None:
    """Raise ``InvalidTransitionError`` unless ``action`` may start from ``current``."""
    if current not in allowed:
        raise InvalidTransitionError(
            f"Cannot {action} an application in status '{current.value}'",
            current_status=current.value,
            action=action,
        )


def assert_interview_transition(
    current: InterviewStatus, target: InterviewStatus, action: str
) -> None:
    if target not in INTERVIEW_TRANSITIONS.get(current, frozenset()):
        raise InvalidTransitionError(
            f"Cannot {action} an interview in status '{current.value}'",
            current_status=current.value,
            action=action,
        )
