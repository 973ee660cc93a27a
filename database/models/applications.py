"""
Application Models

A seeker's candidacy for one job at one company: lifecycle status, the hire
negotiation sub-state, a mirror of the linked interview, attendance reports
and chat linkage. Rows are never deleted, only moved to a terminal status.
"""

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    String,
    Boolean,
    Integer,
    DateTime,
    Date,
    Time,
    Text,
    JSON,
    Enum as SQLEnum,
    Index,
    text,
)
from database.engine import Base
from core.utils.datetime import now
from datetime import datetime, date, time
from enum import Enum as PyEnum
from typing import Any
import uuid


# ==================== Application Enums ===================== #
class ApplicationStatus(str, PyEnum):
    """Primary lifecycle status of an application."""

    APPLIED = "applied"
    INVITED = "invited"
    INVITED_APPLIED = "invited_applied"
    SHORTLISTED = "shortlisted"
    INTERVIEWED = "interviewed"
    HIRED = "hired"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    WITHDRAWN = "withdrawn"


class ApplicationSource(str, PyEnum):
    """How the application came into existence."""

    APPLIED = "applied"
    INVITED = "invited"
    INVITED_APPLIED = "invited_applied"


class HireStatus(str, PyEnum):
    """Hire negotiation sub-state."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class HireResponse(str, PyEnum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class ApplicationInterviewStatus(str, PyEnum):
    """Interview state as mirrored onto the application."""

    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    DECLINED = "declined"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class InterviewResponse(str, PyEnum):
    """Seeker's answer to an interview invitation."""

    ACCEPTED = "accepted"
    DECLINED = "declined"


class DeclineReason(str, PyEnum):
    """Fixed set of reasons a company may give when declining."""

    ANOTHER_CANDIDATE_SELECTED = "Another candidate selected"
    NOT_THE_RIGHT_FIT = "Not the right fit"
    LIMITED_EXPERIENCE = "Limited experience"
    POSITION_FILLED = "Position filled"

    @classmethod
    def coerce(cls, value: str | None) -> "DeclineReason":
        """Map free text onto the enumerated set, falling back to the default."""
        if value:
            for reason in cls:
                if value == reason.value or value == reason.name:
                    return reason
        return cls.ANOTHER_CANDIDATE_SELECTED


class AttendanceStatus(str, PyEnum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"


class JobType(str, PyEnum):
    """Hiring policy of the job the application belongs to."""

    INSTANT_HIRE = "instant_hire"
    INTERVIEW_FIRST = "interview_first"


def generate_application_id() -> str:
    return f"APP-{uuid.uuid4().hex}"


# Enum names as stored; terminal applications do not block a new one
OPEN_APPLICATION_FILTER = "status NOT IN ('DECLINED', 'WITHDRAWN', 'ACCEPTED')"


# ==================== Application Model ===================== #
class Application(Base):
    """Job application aggregate.

    ``version`` is the optimistic concurrency counter: every UPDATE is
    conditioned on the version read, so two racing transitions on the same
    application cannot both commit.
    """

    __tablename__ = "applications"

    id: Mapped[str] = mapped_column(
        String(64), primary_key=True, default=generate_application_id
    )
    job_id: Mapped[str] = mapped_column(String(64), nullable=False)
    seeker_id: Mapped[str] = mapped_column(String(64), nullable=False)
    company_id: Mapped[str] = mapped_column(String(64), nullable=False)

    # Status tracking
    status: Mapped[ApplicationStatus] = mapped_column(
        SQLEnum(ApplicationStatus, native_enum=False, length=50),
        nullable=False,
        default=ApplicationStatus.APPLIED,
        index=True,
    )
    application_source: Mapped[ApplicationSource] = mapped_column(
        SQLEnum(ApplicationSource, native_enum=False, length=50),
        nullable=False,
        default=ApplicationSource.APPLIED,
    )

    # Denormalized job context
    job_title: Mapped[str | None] = mapped_column(String(255))
    job_type: Mapped[JobType] = mapped_column(
        SQLEnum(JobType, native_enum=False, length=50),
        nullable=False,
        default=JobType.INSTANT_HIRE,
    )

    # Hire negotiation
    hire_status: Mapped[HireStatus | None] = mapped_column(
        SQLEnum(HireStatus, native_enum=False, length=50)
    )
    hire_response: Mapped[HireResponse | None] = mapped_column(
        SQLEnum(HireResponse, native_enum=False, length=50)
    )
    hire_requested_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    hire_responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Interview mirror
    interview_id: Mapped[str | None] = mapped_column(String(64))
    interview_status: Mapped[ApplicationInterviewStatus | None] = mapped_column(
        SQLEnum(ApplicationInterviewStatus, native_enum=False, length=50)
    )
    interview_response: Mapped[InterviewResponse | None] = mapped_column(
        SQLEnum(InterviewResponse, native_enum=False, length=50)
    )
    interview_date: Mapped[date | None] = mapped_column(Date)
    interview_start_time: Mapped[time | None] = mapped_column(Time)
    interview_end_time: Mapped[time | None] = mapped_column(Time)
    interview_duration: Mapped[int | None] = mapped_column(Integer)

    # Attendance reporting (enabled once the hire is accepted)
    reporting_enabled: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    report_history: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=list
    )
    engagement_completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True)
    )

    # Chat linkage
    chat_id: Mapped[str | None] = mapped_column(String(64))
    chat_initiated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Decline details
    decline_reason: Mapped[str | None] = mapped_column(String(100))
    declined_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    withdrawal_reason: Mapped[str | None] = mapped_column(Text)

    # Timestamps
    applied_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now
    )
    status_changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("idx_application_job_status", "job_id", "status"),
        Index("idx_application_seeker", "seeker_id", "applied_at"),
        Index("idx_application_company", "company_id", "applied_at"),
        Index("idx_application_seeker_job", "seeker_id", "job_id"),
        Index(
            "uq_application_open_seeker_job",
            "seeker_id",
            "job_id",
            unique=True,
            sqlite_where=text(OPEN_APPLICATION_FILTER),
            postgresql_where=text(OPEN_APPLICATION_FILTER),
        ),
    )

    def __repr__(self) -> str:
        return f"<Application(id={self.id}, status={self.status})>"
