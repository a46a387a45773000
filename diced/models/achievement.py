"""
Achievement models - Entries of the recent achievement log.

Achievements are a tagged union on the ``type`` field; a stored log decodes
back into the matching record class.
"""

from datetime import datetime, timezone
from typing import Annotated, Dict, Literal, Optional, Union

from pydantic import Field

from diced.models.base import CamelModel
from diced.utils.constants import (
    ACHIEVEMENT_QUEST_COMPLETE,
    ACHIEVEMENT_RANK_UP,
    ACHIEVEMENT_LEVEL_UP,
)


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


class QuestCompleteAchievement(CamelModel):
    """A quest was completed."""

    type: Literal['quest_complete'] = ACHIEVEMENT_QUEST_COMPLETE
    timestamp: datetime = Field(default_factory=utcnow)
    quest_id: str
    quest_title: Optional[str] = None
    quest_type: Optional[str] = None
    rewards: Dict[str, float] = Field(default_factory=dict)


class RankUpAchievement(CamelModel):
    """The user advanced to a new rank."""

    type: Literal['rank_up'] = ACHIEVEMENT_RANK_UP
    timestamp: datetime = Field(default_factory=utcnow)
    previous_rank: str
    new_rank: str


class LevelUpAchievement(CamelModel):
    """The user's displayed level changed within a rank."""

    type: Literal['level_up'] = ACHIEVEMENT_LEVEL_UP
    timestamp: datetime = Field(default_factory=utcnow)
    rank: str
    previous_level: int
    new_level: int


Achievement = Annotated[
    Union[QuestCompleteAchievement, RankUpAchievement, LevelUpAchievement],
    Field(discriminator='type'),
]

ACHIEVEMENT_TYPES = (
    ACHIEVEMENT_QUEST_COMPLETE,
    ACHIEVEMENT_RANK_UP,
    ACHIEVEMENT_LEVEL_UP,
)
