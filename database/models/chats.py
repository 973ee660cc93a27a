"""
Chat Models

Conversation channels between a company and a seeker about one job. At most
one channel exists per (company, seeker, job).
"""

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    String,
    Integer,
    DateTime,
    Text,
    Enum as SQLEnum,
    Index,
    UniqueConstraint,
)
from database.engine import Base
from core.utils.datetime import now
from datetime import datetime
from enum import Enum as PyEnum
import uuid


class MessageKind(str, PyEnum):
    USER = "user"
    SYSTEM = "system"


class ChatChannel(Base):
    __tablename__ = "chat_channels"

    id: Mapped[str] = mapped_column(
        String(64), primary_key=True, default=lambda: f"CHAT-{uuid.uuid4().hex}"
    )
    company_id: Mapped[str] = mapped_column(String(64), nullable=False)
    seeker_id: Mapped[str] = mapped_column(String(64), nullable=False)
    job_id: Mapped[str] = mapped_column(String(64), nullable=False)
    title: Mapped[str | None] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now
    )

    __table_args__ = (
        UniqueConstraint(
            "company_id", "seeker_id", "job_id", name="uq_chat_company_seeker_job"
        ),
    )


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    chat_id: Mapped[str] = mapped_column(String(64), nullable=False)
    kind: Mapped[MessageKind] = mapped_column(
        SQLEnum(MessageKind, native_enum=False, length=50),
        nullable=False,
        default=MessageKind.SYSTEM,
    )
    body: Mapped[str] = mapped_column(Text, nullable=False)
    sent_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now
    )

    __table_args__ = (Index("idx_chat_message_chat", "chat_id", "sent_at"),)
