"""
RankDefinition model - One tier of the rank ladder.

A rank contains a fixed number of levels, each with its own hour cost.
An attribute clears the rank once it has accumulated the sum of those
costs within the rank.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class RankDefinition:
    """
    Immutable definition of a single rank.

    Attributes:
        title: Unique rank name (e.g., "Home Cook")
        color_tier: Display-only tier name (e.g., "Iron")
        level_hours: Hours required to clear each successive level
        next_rank: Title of the following rank, None for the terminal rank

    Properties:
        level_count: Number of levels in the rank
        attribute_hours_required: Hours an attribute must accumulate
            within this rank to clear it
        is_terminal: Whether this is the last rank
    """

    title: str
    color_tier: str
    level_hours: Tuple[float, ...]
    next_rank: Optional[str] = None

    def __post_init__(self) -> None:
        """
        Validate rank data after initialization.

        Raises:
            ValueError: If the title is empty
            ValueError: If the rank has no levels
            ValueError: If any level cost is negative
        """
        if not self.title:
            raise ValueError("Rank title cannot be empty")

        # Accept lists from config files, store an immutable tuple
        object.__setattr__(self, 'level_hours', tuple(self.level_hours))

        if not self.level_hours:
            raise ValueError(f"Rank '{self.title}' must have at least one level")

        for index, hours in enumerate(self.level_hours):
            if hours < 0:
                raise ValueError(
                    f"Level {index + 1} of rank '{self.title}' has negative hours: {hours}"
                )

    @property
    def level_count(self) -> int:
        """Number of levels in this rank."""
        return len(self.level_hours)

    @property
    def attribute_hours_required(self) -> float:
        """Total hours an attribute needs within this rank to clear it."""
        return sum(self.level_hours)

    @property
    def first_level_hours(self) -> float:
        """Hour cost of the first level."""
        return self.level_hours[0]

    @property
    def is_terminal(self) -> bool:
        """True if there is no rank after this one."""
        return self.next_rank is None

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize rank to dictionary for JSON output.

        Returns:
            Dictionary representation of the rank
        """
        return {
            'title': self.title,
            'colorTier': self.color_tier,
            'levelCount': self.level_count,
            'levelHours': list(self.level_hours),
            'attributeHoursRequired': self.attribute_hours_required,
            'nextRank': self.next_rank,
        }
