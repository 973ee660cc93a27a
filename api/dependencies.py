"""FastAPI dependencies for dependency injection."""

from typing import Optional
from fastapi import Header, HTTPException, Query, status

from core.workflow.actors import Actor, SYSTEM_ACTOR
from database.models.history import ActorType


async def get_actor(
    x_actor_type: Optional[str] = Header(default=None),
    x_actor_id: Optional[str] = Header(default=None),
) -> Actor:
    """
    Identify the caller from ``X-Actor-Type`` / ``X-Actor-Id``.

    Authentication happens upstream; requests without the headers act as the
    system.
    """
    if x_actor_type is None:
        return SYSTEM_ACTOR

    try:
        actor_type = ActorType(x_actor_type.lower())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Actor-Type must be one of: seeker, company, system",
        )

    if actor_type != ActorType.SYSTEM and not x_actor_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Actor-Id is required for seeker and company actors",
        )

    return Actor(actor_type, x_actor_id)


class Pagination:
    """Limit/offset query parameters."""

    def __init__(
        self,
        limit: int = Query(50, ge=1, le=200, description="Maximum items to return"),
        offset: int = Query(0, ge=0, description="Items to skip"),
    ):
        self.limit = limit
        self.offset = offset
