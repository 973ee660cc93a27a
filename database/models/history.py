"""
Application history (audit trail).

Append-only: rows are inserted by the history service and never updated or
deleted. ``id`` is the insertion sequence and breaks ties between rows that
share the same ``action_at``.
"""

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    String,
    BigInteger,
    Integer,
    DateTime,
    Text,
    JSON,
    Enum as SQLEnum,
    Index,
)
from database.engine import Base
from core.utils.datetime import now
from datetime import datetime
from enum import Enum as PyEnum
from typing import Any
import uuid


class ActorType(str, PyEnum):
    SEEKER = "seeker"
    COMPANY = "company"
    SYSTEM = "system"


def generate_history_id() -> str:
    return f"HIST-{uuid.uuid4().hex}"


class ApplicationHistory(Base):
    __tablename__ = "application_history"

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    history_id: Mapped[str] = mapped_column(
        String(64), unique=True, nullable=False, default=generate_history_id
    )
    application_id: Mapped[str] = mapped_column(String(64), nullable=False)
    job_id: Mapped[str | None] = mapped_column(String(64))
    seeker_id: Mapped[str | None] = mapped_column(String(64))
    company_id: Mapped[str | None] = mapped_column(String(64))

    action: Mapped[str] = mapped_column(String(50), nullable=False)
    from_status: Mapped[str | None] = mapped_column(String(50))
    to_status: Mapped[str | None] = mapped_column(String(50))
    action_by: Mapped[ActorType] = mapped_column(
        SQLEnum(ActorType, native_enum=False, length=50),
        nullable=False,
        default=ActorType.SYSTEM,
    )
    action_by_id: Mapped[str | None] = mapped_column(String(64))
    reason: Mapped[str | None] = mapped_column(Text)
    notes: Mapped[str | None] = mapped_column(Text)
    # "metadata" is reserved on declarative classes
    extra_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSON, nullable=False, default=dict
    )
    action_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now
    )

    __table_args__ = (
        Index("idx_history_application", "application_id", "action_at"),
        Index("idx_history_seeker", "seeker_id", "action_at"),
        Index("idx_history_company", "company_id", "action_at"),
    )
