"""
UserProfile model - The root aggregate of a user's progress.

Uses Pydantic v2 for validation. Persisted as camelCase JSON in the
client-local key-value storage.
"""

from datetime import datetime
from typing import Dict, List
from uuid import uuid4

from pydantic import AliasChoices, Field, field_validator

from diced.models.base import CamelModel
from diced.models.attribute import AttributeName, AttributeProgress
from diced.models.achievement import Achievement, utcnow
from diced.utils.constants import (
    DEFAULT_RANK_TITLE,
    DEFAULT_USERNAME,
    MAX_RECENT_ACHIEVEMENTS,
)


def _default_user_id() -> str:
    return f"user-{uuid4().hex[:12]}"


def _default_attributes() -> Dict[AttributeName, AttributeProgress]:
    return {name: AttributeProgress() for name in AttributeName}


class RankStatus(CamelModel):
    """The user's overall rank as displayed."""

    title: str = DEFAULT_RANK_TITLE
    color_tier: str = Field(
        default='Iron',
        validation_alias=AliasChoices('colorTier', 'color_tier', 'color'),
        serialization_alias='colorTier',
    )
    level: int = Field(default=1, ge=1)
    progress_percentage: float = Field(default=0.0, ge=0, le=100)


class Milestones(CamelModel):
    """Monotonic lifetime counters."""

    quests_completed: int = Field(default=0, ge=0)
    hours_accumulated: float = Field(default=0.0, ge=0)
    rank_advances: int = Field(default=0, ge=0)
    level_ups: int = Field(default=0, ge=0)


class UserProfile(CamelModel):
    """
    Complete progress state of the single local user.

    completed_quests and unlocked_quests are ordered and duplicate-free;
    completion order doubles as the achievement history.
    """
    user_id: str = Field(default_factory=_default_user_id)
    username: str = DEFAULT_USERNAME
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    current_rank: RankStatus = Field(default_factory=RankStatus)
    attributes: Dict[AttributeName, AttributeProgress] = Field(
        default_factory=_default_attributes
    )

    # Quest state
    completed_quests: List[str] = Field(default_factory=list)
    unlocked_quests: List[str] = Field(default_factory=list)

    # History
    milestones: Milestones = Field(default_factory=Milestones)
    recent_achievements: List[Achievement] = Field(default_factory=list)

    model_config = {"frozen": False}

    @field_validator('attributes')
    @classmethod
    def _fill_missing_attributes(
        cls, value: Dict[AttributeName, AttributeProgress]
    ) -> Dict[AttributeName, AttributeProgress]:
        # Keep a stable attribute order and make sure all four exist
        return {name: value.get(name, AttributeProgress()) for name in AttributeName}

    @field_validator('completed_quests', 'unlocked_quests')
    @classmethod
    def _dedupe_quest_ids(cls, value: List[str]) -> List[str]:
        return list(dict.fromkeys(value))

    def attribute(self, name) -> AttributeProgress:
        """
        Get progress of one attribute.

        Raises:
            UnknownAttributeError: If name is not a tracked attribute
        """
        return self.attributes[AttributeName.parse(name)]

    def has_completed(self, quest_id: str) -> bool:
        return quest_id in self.completed_quests

    def is_unlocked(self, quest_id: str) -> bool:
        return quest_id in self.unlocked_quests

    def mark_completed(self, quest_id: str) -> bool:
        """Append quest_id to the completion history. False if already there."""
        if quest_id in self.completed_quests:
            return False
        self.completed_quests.append(quest_id)
        return True

    def unlock(self, quest_id: str) -> bool:
        """Unlock quest_id. False if it was already unlocked."""
        if quest_id in self.unlocked_quests:
            return False
        self.unlocked_quests.append(quest_id)
        return True

    def record_achievement(self, achievement: Achievement) -> None:
        """Prepend an achievement, keeping only the most recent entries."""
        self.recent_achievements.insert(0, achievement)
        del self.recent_achievements[MAX_RECENT_ACHIEVEMENTS:]

    def touch(self) -> None:
        self.updated_at = utcnow()

    @property
    def total_hours(self) -> float:
        """Uncapped hours across all attributes."""
        return sum(attr.total_hours for attr in self.attributes.values())
