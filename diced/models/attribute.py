"""
Attribute models - Per-attribute progress state.

AttributeName is the closed set of tracked skill dimensions.
AttributeProgress is the persisted state of one attribute inside a profile.
AttributeLevelResult is the pure output of the level calculation.
"""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import Field

from diced.models.base import CamelModel
from diced.utils.constants import (
    ATTRIBUTE_TECHNIQUE,
    ATTRIBUTE_INGREDIENTS,
    ATTRIBUTE_FLAVOR,
    ATTRIBUTE_MANAGEMENT,
    DEFAULT_RANK_TITLE,
)
from diced.utils.exceptions import UnknownAttributeError


class AttributeName(str, Enum):
    """The four independently tracked attributes."""

    TECHNIQUE = ATTRIBUTE_TECHNIQUE
    INGREDIENTS = ATTRIBUTE_INGREDIENTS
    FLAVOR = ATTRIBUTE_FLAVOR
    MANAGEMENT = ATTRIBUTE_MANAGEMENT

    @classmethod
    def parse(cls, value: Any) -> 'AttributeName':
        """
        Convert a raw name to an AttributeName.

        Args:
            value: AttributeName or attribute name string (case-insensitive)

        Returns:
            Matching AttributeName

        Raises:
            UnknownAttributeError: If the name is not a tracked attribute
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise UnknownAttributeError(str(value)) from None


class AttributeProgress(CamelModel):
    """
    Persisted progress of a single attribute.

    total_hours is the source of truth and is never capped. Every other
    field is derived from it by the progression engine.
    """

    total_hours: float = Field(default=0.0, ge=0)
    capped_total_hours: float = Field(default=0.0, ge=0)
    current_rank: str = DEFAULT_RANK_TITLE
    current_level: int = Field(default=1, ge=1)
    hours_to_next_level: float = Field(default=0.0, ge=0)
    level_progress_percentage: float = Field(default=0.0, ge=0, le=100)
    rank_progress_percentage: float = Field(default=0.0, ge=0, le=100)
    is_maxed: bool = False
    waiting_for_user_rank_up: bool = False


@dataclass(frozen=True)
class AttributeLevelResult:
    """
    Level state of an attribute computed from its hours.

    Attributes:
        rank_title: Rank the calculation was made for
        current_level: 1-based level within the rank
        hours_to_next_level: Absolute hour threshold of the next level
        level_progress_percentage: Progress through the current level (0-100)
        rank_progress_percentage: Progress toward clearing the rank (0-100)
        total_hours_for_rank: Hours required to clear the rank
        hours_in_current_rank: Hours counted toward the rank (capped)
        hours_remaining_in_rank: Hours left before the rank is cleared
        capped_total_hours: Previous ranks plus hours in the current rank
        actual_total_hours: Uncapped hours passed in
        is_maxed: Whether the rank requirement has been met
        waiting_for_user_rank_up: Frozen because the attribute is ahead
            of the user's rank
        next_rank: Title of the rank after rank_title, if any
    """

    rank_title: str
    current_level: int
    hours_to_next_level: float
    level_progress_percentage: float
    rank_progress_percentage: float
    total_hours_for_rank: float
    hours_in_current_rank: float
    hours_remaining_in_rank: float
    capped_total_hours: float
    actual_total_hours: float
    is_maxed: bool
    waiting_for_user_rank_up: bool
    next_rank: Optional[str] = None

    @property
    def has_cleared_rank(self) -> bool:
        """True if the attribute is ready to move on to the next rank."""
        return self.is_maxed and self.next_rank is not None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize result to dictionary."""
        return asdict(self)
