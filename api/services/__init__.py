"""
API Services Layer.

Workflow operations over the database, shared by the HTTP routes and any
other caller (workers, scripts).
"""

from api.services.applications import (
    create_application,
    invite_seeker,
    accept_invitation,
    decline_invitation,
    shortlist_application,
    schedule_interview,
    respond_to_interview,
    decline_application,
    withdraw_application,
    get_application,
    list_applications,
    get_job_application_stats,
)

from api.services.hiring import (
    hire_now,
    send_hire_request,
    respond_to_hire_request,
    report_attendance,
    report_absence,
    complete_engagement,
    get_report_history,
)

from api.services.interviews import (
    get_available_time_slots,
    check_conflicts,
    get_interview,
    list_application_interviews,
    list_company_interviews,
    list_seeker_interviews,
    reschedule_interview,
    confirm_interview,
    cancel_interview,
    complete_interview,
    mark_no_show,
)

from api.services.history import (
    track_action,
    get_application_history,
    get_seeker_history,
    get_company_history,
    get_application_stats,
)

from api.services.blocking import (
    check_seeker_blocked,
    block_seeker,
    unblock_seeker,
    list_blocked_seekers,
)

__all__ = [
    # Applications
    "create_application",
    "invite_seeker",
    "accept_invitation",
    "decline_invitation",
    "shortlist_application",
    "schedule_interview",
    "respond_to_interview",
    "decline_application",
    "withdraw_application",
    "get_application",
    "list_applications",
    "get_job_application_stats",
    # Hiring
    "hire_now",
    "send_hire_request",
    "respond_to_hire_request",
    "report_attendance",
    "report_absence",
    "complete_engagement",
    "get_report_history",
    # Interviews
    "get_available_time_slots",
    "check_conflicts",
    "get_interview",
    "list_application_interviews",
    "list_company_interviews",
    "list_seeker_interviews",
    "reschedule_interview",
    "confirm_interview",
    "cancel_interview",
    "complete_interview",
    "mark_no_show",
    # History
    "track_action",
    "get_application_history",
    "get_seeker_history",
    "get_company_history",
    "get_application_stats",
    # Blocking
    "check_seeker_blocked",
    "block_seeker",
    "unblock_seeker",
    "list_blocked_seekers",
]
