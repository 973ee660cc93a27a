"""Job postings, reduced to the fields the workflow engine reads."""

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, DateTime, Enum as SQLEnum, Index
from database.engine import Base
from database.models.applications import JobType
from core.utils.datetime import now
from datetime import datetime
import uuid


class Job(Base):
    __tablename__ = "jobs"

    id: Mapped[str] = mapped_column(
        String(64), primary_key=True, default=lambda: uuid.uuid4().hex
    )
    company_id: Mapped[str] = mapped_column(String(64), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    hiring_type: Mapped[JobType] = mapped_column(
        SQLEnum(JobType, native_enum=False, length=50),
        nullable=False,
        default=JobType.INSTANT_HIRE,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now
    )

    __table_args__ = (Index("idx_job_company", "company_id"),)
