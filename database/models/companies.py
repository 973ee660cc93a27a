"""
Company Models

Companies and the seekers they have blocked. Blocks are soft: unblocking
flips ``is_active`` and keeps the row for history.
"""

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    String,
    Boolean,
    Integer,
    DateTime,
    ForeignKey,
    Text,
    Index,
)
from database.engine import Base
from core.utils.datetime import now
from datetime import datetime
import uuid


class Company(Base):
    __tablename__ = "companies"

    id: Mapped[str] = mapped_column(
        String(64), primary_key=True, default=lambda: uuid.uuid4().hex
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now
    )

    blocks: Mapped[list["CompanyBlock"]] = relationship(
        back_populates="company", cascade="all, delete-orphan"
    )


class CompanyBlock(Base):
    __tablename__ = "company_blocks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    company_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    seeker_id: Mapped[str] = mapped_column(String(64), nullable=False)
    reason: Mapped[str | None] = mapped_column(Text)
    blocked_by: Mapped[str | None] = mapped_column(String(64))
    blocked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    unblocked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    unblock_reason: Mapped[str | None] = mapped_column(Text)

    company: Mapped["Company"] = relationship(back_populates="blocks")

    __table_args__ = (
        Index("idx_company_block_lookup", "company_id", "seeker_id", "is_active"),
    )
