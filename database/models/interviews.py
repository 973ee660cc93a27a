"""
Interview Models

Interviews attached to applications, plus the per-company calendar day row
that serializes scheduling writes for one company on one date.
"""

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    String,
    Integer,
    DateTime,
    Date,
    Time,
    Text,
    JSON,
    Enum as SQLEnum,
    Index,
    UniqueConstraint,
)
from database.engine import Base
from core.utils.datetime import now
from datetime import datetime, date, time
from enum import Enum as PyEnum
from typing import Any
import uuid


class InterviewStatus(str, PyEnum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    RESCHEDULED = "rescheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class ConfirmationStatus(str, PyEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    DECLINED = "declined"


class InterviewType(str, PyEnum):
    IN_PERSON = "in_person"
    PHONE = "phone"
    VIDEO = "video"
    GROUP = "group"


class InterviewResult(str, PyEnum):
    PASS = "pass"
    FAIL = "fail"
    PENDING = "pending"


def generate_interview_id() -> str:
    return f"INT-{uuid.uuid4().hex}"


class Interview(Base):
    """A scheduled conversation between a company and a seeker."""

    __tablename__ = "interviews"

    id: Mapped[str] = mapped_column(
        String(64), primary_key=True, default=generate_interview_id
    )
    application_id: Mapped[str] = mapped_column(String(64), nullable=False)
    job_id: Mapped[str] = mapped_column(String(64), nullable=False)
    seeker_id: Mapped[str] = mapped_column(String(64), nullable=False)
    company_id: Mapped[str] = mapped_column(String(64), nullable=False)

    # Schedule
    interview_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    time_zone: Mapped[str] = mapped_column(String(64), nullable=False)

    interview_type: Mapped[InterviewType] = mapped_column(
        SQLEnum(InterviewType, native_enum=False, length=50),
        nullable=False,
        default=InterviewType.IN_PERSON,
    )
    location: Mapped[str | None] = mapped_column(Text)
    notes: Mapped[str | None] = mapped_column(Text)

    status: Mapped[InterviewStatus] = mapped_column(
        SQLEnum(InterviewStatus, native_enum=False, length=50),
        nullable=False,
        default=InterviewStatus.SCHEDULED,
        index=True,
    )
    confirmation_status: Mapped[ConfirmationStatus] = mapped_column(
        SQLEnum(ConfirmationStatus, native_enum=False, length=50),
        nullable=False,
        default=ConfirmationStatus.PENDING,
    )

    # Rescheduling
    reschedule_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_reschedules: Mapped[int] = mapped_column(Integer, nullable=False, default=2)
    reschedule_history: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=list
    )

    # Results (written only on completion)
    rating: Mapped[int | None] = mapped_column(Integer)
    feedback: Mapped[str | None] = mapped_column(Text)
    result: Mapped[InterviewResult | None] = mapped_column(
        SQLEnum(InterviewResult, native_enum=False, length=50)
    )
    next_steps: Mapped[str | None] = mapped_column(Text)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    cancellation_reason: Mapped[str | None] = mapped_column(Text)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    no_show_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    scheduled_by: Mapped[str | None] = mapped_column(String(64))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("idx_interview_company_date", "company_id", "interview_date", "status"),
        Index("idx_interview_application", "application_id"),
        Index("idx_interview_seeker", "seeker_id", "interview_date"),
    )

    def __repr__(self) -> str:
        return f"<Interview(id={self.id}, date={self.interview_date}, status={self.status})>"


class InterviewCalendarDay(Base):
    """Version row for one company's interview set on one date.

    Every schedule or reschedule touching a date bumps this row before
    checking for conflicts, so a concurrent writer on the same date loses its
    version check and retries against the committed interviews.
    """

    __tablename__ = "interview_calendar_days"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    company_id: Mapped[str] = mapped_column(String(64), nullable=False)
    interview_date: Mapped[date] = mapped_column(Date, nullable=False)
    last_claimed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        UniqueConstraint(
            "company_id", "interview_date", name="uq_calendar_day_company_date"
        ),
    )
