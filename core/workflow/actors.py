"""Who performed a workflow action."""

from dataclasses import dataclass
from typing import Optional

from database.models.history import ActorType


@dataclass(frozen=True)
class Actor:
    type: ActorType
    id: Optional[str] = None

    @classmethod
    def seeker(cls, seeker_id: str) -> "Actor":
        return cls(ActorType.SEEKER, seeker_id)

    @classmethod
    def company(cls, company_id: str) -> "Actor":
        return cls(ActorType.COMPANY, company_id)


SYSTEM_ACTOR = Actor(ActorType.SYSTEM)
