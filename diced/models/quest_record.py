"""
QuestRecord model - A read-only entry of the quest catalog.

Quest records arrive as camelCase JSON from the remote catalog and are
normalized here. Reward hours are plain floats; absent attributes earn
nothing.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from diced.models.attribute import AttributeName
from diced.utils.constants import VALID_QUEST_TYPES


@dataclass(frozen=True)
class QuestRank:
    """Rank and level a quest belongs to."""

    title: str
    level: int = 1

    def __post_init__(self) -> None:
        if self.level < 1:
            raise ValueError(f"Quest level must be at least 1, got: {self.level}")


@dataclass(frozen=True)
class QuestRecord:
    """
    A single quest from the catalog.

    Attributes:
        id: Unique quest identifier (e.g., "T1-1")
        title: Display title
        type: One of training, side, main, explore, challenge
        rank: Rank title and level the quest is meant for
        attribute_rewards: Hours granted per attribute on completion
        prerequisites: Quest ids that must be completed first
        unlocks: Quest ids unlocked on completion
        techniques_learned: Legacy technique ids (carried, not applied)
        description: Optional long description
        time_required: Optional estimated time in minutes

    Properties:
        total_hours: Sum of all attribute rewards
    """

    id: str
    title: str
    type: str
    rank: QuestRank
    attribute_rewards: Dict[AttributeName, float] = field(default_factory=dict)
    prerequisites: Tuple[str, ...] = ()
    unlocks: Tuple[str, ...] = ()
    techniques_learned: Tuple[str, ...] = ()
    description: Optional[str] = None
    time_required: Optional[int] = None

    def __post_init__(self) -> None:
        """
        Validate and normalize quest data after initialization.

        Raises:
            ValueError: If the id is empty
            ValueError: If type is not a known quest type
            ValueError: If any reward is negative or not finite
            UnknownAttributeError: If a reward names an unknown attribute
        """
        if not self.id:
            raise ValueError("Quest id cannot be empty")

        quest_type = str(self.type).lower()
        if quest_type not in VALID_QUEST_TYPES:
            raise ValueError(
                f"Invalid quest type '{self.type}'. Must be one of: {sorted(VALID_QUEST_TYPES)}"
            )
        object.__setattr__(self, 'type', quest_type)

        rewards = {}
        for name, hours in self.attribute_rewards.items():
            hours = float(hours or 0)
            if not math.isfinite(hours) or hours < 0:
                raise ValueError(
                    f"Reward for '{name}' in quest '{self.id}' must be a finite, "
                    f"non-negative number: {hours}"
                )
            rewards[AttributeName.parse(name)] = hours
        object.__setattr__(self, 'attribute_rewards', rewards)

        object.__setattr__(self, 'prerequisites', tuple(self.prerequisites))
        object.__setattr__(self, 'unlocks', tuple(self.unlocks))
        object.__setattr__(self, 'techniques_learned', tuple(self.techniques_learned))

    @property
    def total_hours(self) -> float:
        """Total hours granted across all attributes."""
        return sum(self.attribute_rewards.values())

    def reward_for(self, attribute) -> float:
        """Hours granted to one attribute (0 when absent)."""
        return self.attribute_rewards.get(AttributeName.parse(attribute), 0.0)

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize quest to the catalog's camelCase dictionary format.

        Returns:
            Dictionary representation of the quest
        """
        return {
            'id': self.id,
            'title': self.title,
            'type': self.type,
            'rank': {'title': self.rank.title, 'level': self.rank.level},
            'attributeRewards': {
                name.value: hours for name, hours in self.attribute_rewards.items()
            },
            'prerequisites': list(self.prerequisites),
            'unlocks': list(self.unlocks),
            'techniquesLearned': list(self.techniques_learned),
            'description': self.description,
            'timeRequired': self.time_required,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'QuestRecord':
        """
        Create QuestRecord from a catalog dictionary.

        Accepts both camelCase (catalog JSON) and snake_case keys.

        Args:
            data: Dictionary with quest fields

        Returns:
            New QuestRecord instance

        Raises:
            KeyError: If id, type or rank is missing
            ValueError: If any field is invalid
        """
        rank_data = data['rank']
        if isinstance(rank_data, str):
            rank = QuestRank(title=rank_data)
        else:
            rank = QuestRank(
                title=rank_data['title'],
                level=int(rank_data.get('level', 1)),
            )

        rewards = data.get('attributeRewards', data.get('attribute_rewards')) or {}
        time_required = data.get('timeRequired', data.get('time_required'))

        return cls(
            id=str(data['id']),
            title=data.get('title') or str(data['id']),
            type=data['type'],
            rank=rank,
            attribute_rewards=dict(rewards),
            prerequisites=tuple(data.get('prerequisites') or ()),
            unlocks=tuple(data.get('unlocks') or ()),
            techniques_learned=tuple(
                data.get('techniquesLearned', data.get('techniques_learned')) or ()
            ),
            description=data.get('description'),
            time_required=int(time_required) if time_required is not None else None,
        )
