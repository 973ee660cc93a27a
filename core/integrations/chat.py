"""Chat provisioning for company/seeker conversations."""

from typing import Optional, Protocol
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from database.engine import AsyncSessionLocal
from database.models.chats import ChatChannel, ChatMessage, MessageKind

logger = logging.getLogger(__name__)


class ChatProvisioner(Protocol):
    """Creates conversation channels; ``create_chat`` is idempotent per triple."""

    async def create_chat(
        self, company_id: str, seeker_id: str, job_id: str, title: str | None = None
    ) -> str: ...

    async def send_system_message(self, chat_id: str, text: str) -> None: ...


class DatabaseChatProvisioner:
    """Chat provisioner backed by the ``chat_channels`` table."""

    async def create_chat(
        self, company_id: str, seeker_id: str, job_id: str, title: str | None = None
    ) -> str:
        """
        Return the channel for (company, seeker, job), creating it if needed.

        Args:
            company_id: Company side of the conversation
            seeker_id: Seeker side of the conversation
            job_id: Job the conversation is about
            title: Display title for a new channel

        Returns:
            Chat channel id
        """
        existing = await self._find(company_id, seeker_id, job_id)
        if existing:
            return existing

        async with AsyncSessionLocal() as session:
            channel = ChatChannel(
                company_id=company_id,
                seeker_id=seeker_id,
                job_id=job_id,
                title=title,
            )
            session.add(channel)
            try:
                await session.commit()
            except IntegrityError:
                # Another request created the channel first
                await session.rollback()
                existing = await self._find(company_id, seeker_id, job_id)
                if existing:
                    return existing
                raise

            logger.info(f"Created chat {channel.id} for job {job_id}")
            return channel.id

    async def send_system_message(self, chat_id: str, text: str) -> None:
        async with AsyncSessionLocal() as session:
            session.add(ChatMessage(chat_id=chat_id, kind=MessageKind.SYSTEM, body=text))
            await session.commit()

    async def _find(self, company_id: str, seeker_id: str, job_id: str) -> Optional[str]:
        async with AsyncSessionLocal() as session:
            result = await session.execute(
                select(ChatChannel.id).where(
                    ChatChannel.company_id == company_id,
                    ChatChannel.seeker_id == seeker_id,
                    ChatChannel.job_id == job_id,
                )
            )
            return result.scalar_one_or_none()


# Global chat provisioner instance
_chat_provisioner: Optional[ChatProvisioner] = None


def get_chat_provisioner() -> ChatProvisioner:
    """Get or create global chat provisioner instance."""
    global _chat_provisioner
    if _chat_provisioner is None:
        _chat_provisioner = DatabaseChatProvisioner()
    return _chat_provisioner


def set_chat_provisioner(provisioner: Optional[ChatProvisioner]) -> None:
    """Replace the global chat provisioner (``None`` restores the default)."""
    global _chat_provisioner
    _chat_provisioner = provisioner
