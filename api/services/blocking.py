"""Blocking gate: may a seeker apply to a company."""

from typing import Any, Dict, List, Literal, Optional
import logging

from sqlalchemy import select

from core.config import settings
from core.exceptions import BlockedError, NotFoundError
from core.integrations.blocks import get_block_source
from core.utils.datetime import isoformat, now
from database.engine import AsyncSessionLocal
from database.models.companies import Company, CompanyBlock

logger = logging.getLogger(__name__)


async def check_seeker_blocked(
    company_id: str,
    seeker_id: str,
    on_lookup_failure: Optional[Literal["allow", "deny"]] = None,
) -> None:
    """
    Raise ``BlockedError`` if the company actively blocks the seeker.

    Args:
        company_id: Company being applied to
        seeker_id: Seeker applying
        on_lookup_failure: What to do when the company record is missing;
            defaults to ``settings.block_lookup_failure_policy``

    Raises:
        BlockedError: Seeker is blocked, or the company is missing under the
            ``deny`` policy
    """
    policy = on_lookup_failure or settings.block_lookup_failure_policy
    source = get_block_source()

    if not await source.company_exists(company_id):
        if policy == "deny":
            raise BlockedError("Company record could not be found")
        logger.warning(
            f"Company {company_id} not found during block check, allowing seeker {seeker_id}"
        )
        return

    details = await source.get_block_details(company_id, seeker_id)
    if details is not None:
        logger.info(f"Seeker {seeker_id} is blocked by company {company_id}")
        raise BlockedError(details.reason)


def _serialize_block(block: CompanyBlock) -> Dict[str, Any]:
    return {
        "company_id": block.company_id,
        "seeker_id": block.seeker_id,
        "reason": block.reason,
        "blocked_by": block.blocked_by,
        "blocked_at": isoformat(block.blocked_at),
        "is_active": block.is_active,
        "unblocked_at": isoformat(block.unblocked_at),
        "unblock_reason": block.unblock_reason,
    }


async def block_seeker(
    company_id: str,
    seeker_id: str,
    reason: Optional[str] = None,
    blocked_by: Optional[str] = None,
) -> Dict[str, Any]:
    """Add an active block; returns the existing one if already blocked."""
    async with AsyncSessionLocal() as session:
        company = await session.get(Company, company_id)
        if not company:
            raise NotFoundError("Company", company_id)

        result = await session.execute(
            select(CompanyBlock).where(
                CompanyBlock.company_id == company_id,
                CompanyBlock.seeker_id == seeker_id,
                CompanyBlock.is_active.is_(True),
            )
        )
        block = result.scalars().first()
        if block:
            return _serialize_block(block)

        block = CompanyBlock(
            company_id=company_id,
            seeker_id=seeker_id,
            reason=reason,
            blocked_by=blocked_by,
        )
        session.add(block)
        await session.commit()
        logger.info(f"Company {company_id} blocked seeker {seeker_id}")
        return _serialize_block(block)


async def unblock_seeker(
    company_id: str, seeker_id: str, reason: Optional[str] = None
) -> Dict[str, Any]:
    """Deactivate the seeker's active blocks for the company."""
    async with AsyncSessionLocal() as session:
        result = await session.execute(
            select(CompanyBlock).where(
                CompanyBlock.company_id == company_id,
                CompanyBlock.seeker_id == seeker_id,
                CompanyBlock.is_active.is_(True),
            )
        )
        blocks = result.scalars().all()
        if not blocks:
            raise NotFoundError("Block", f"{company_id}/{seeker_id}")

        stamp = now()
        for block in blocks:
            block.is_active = False
            block.unblocked_at = stamp
            block.unblock_reason = reason
        await session.commit()
        logger.info(f"Company {company_id} unblocked seeker {seeker_id}")
        return _serialize_block(blocks[-1])


async def list_blocked_seekers(company_id: str) -> List[Dict[str, Any]]:
    async with AsyncSessionLocal() as session:
        result = await session.execute(
            select(CompanyBlock)
            .where(
                CompanyBlock.company_id == company_id,
                CompanyBlock.is_active.is_(True),
            )
            .order_by(CompanyBlock.blocked_at.desc())
        )
        return [_serialize_block(block) for block in result.scalars().all()]
