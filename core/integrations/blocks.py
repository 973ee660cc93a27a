"""Block list source of truth, owned by the company side."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol

from sqlalchemy import select

from database.engine import AsyncSessionLocal
from database.models.companies import Company, CompanyBlock


@dataclass(frozen=True)
class BlockDetails:
    seeker_id: str
    reason: Optional[str]
    blocked_by: Optional[str]
    blocked_at: datetime


class BlockSource(Protocol):
    async def company_exists(self, company_id: str) -> bool: ...

    async def is_seeker_blocked(self, company_id: str, seeker_id: str) -> bool: ...

    async def get_block_details(
        self, company_id: str, seeker_id: str
    ) -> Optional[BlockDetails]: ...


class DatabaseBlockSource:
    """Reads active blocks from the ``company_blocks`` table."""

    async def company_exists(self, company_id: str) -> bool:
        async with AsyncSessionLocal() as session:
            result = await session.execute(
                select(Company.id).where(Company.id == company_id)
            )
            return result.scalar_one_or_none() is not None

    async def is_seeker_blocked(self, company_id: str, seeker_id: str) -> bool:
        return await self.get_block_details(company_id, seeker_id) is not None

    async def get_block_details(
        self, company_id: str, seeker_id: str
    ) -> Optional[BlockDetails]:
        async with AsyncSessionLocal() as session:
            result = await session.execute(
                select(CompanyBlock)
                .where(
                    CompanyBlock.company_id == company_id,
                    CompanyBlock.seeker_id == seeker_id,
                    CompanyBlock.is_active.is_(True),
                )
                .order_by(CompanyBlock.blocked_at.desc())
                .limit(1)
            )
            block = result.scalar_one_or_none()
            if not block:
                return None
            return BlockDetails(
                seeker_id=block.seeker_id,
                reason=block.reason,
                blocked_by=block.blocked_by,
                blocked_at=block.blocked_at,
            )


_block_source: Optional[BlockSource] = None


def get_block_source() -> BlockSource:
    global _block_source
    if _block_source is None:
        _block_source = DatabaseBlockSource()
    return _block_source


def set_block_source(source: Optional[BlockSource]) -> None:
    global _block_source
    _block_source = source
