"""
Profile statistics for dashboards.

Summarizes hours, levels and balance across the four attributes.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict

from diced.models.user_profile import UserProfile
from diced.progression.rank_table import RankTable


@dataclass
class ProfileStats:
    """
    Summary statistics of a profile.

    Attributes:
        quests_completed: Number of completed quests
        total_hours: Uncapped hours across all attributes
        avg_hours_per_attribute: total_hours / number of attributes
        avg_level: Mean current level across attributes
        attribute_balance: Lowest level / highest level (1.0 = balanced)
        rank_progress: Fraction (0-1) of the current rank's per-attribute
            requirement covered by the average capped hours
        current_rank: Rank title
        current_level: Displayed level
        milestones: Lifetime counters
    """

    quests_completed: int
    total_hours: float
    avg_hours_per_attribute: float
    avg_level: float
    attribute_balance: float
    rank_progress: float
    current_rank: str
    current_level: int
    milestones: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def summarize_profile(profile: UserProfile, rank_table: RankTable) -> ProfileStats:
    """
    Calculate summary statistics for a profile.

    Args:
        profile: Normalized profile snapshot
        rank_table: Rank table the profile was computed with

    Returns:
        ProfileStats for the profile

    Raises:
        RankNotFoundError: If the profile's rank is not in the table
    """
    attributes = list(profile.attributes.values())
    count = len(attributes)

    total_hours = sum(attr.total_hours for attr in attributes)
    levels = [attr.current_level for attr in attributes]
    balance = min(levels) / max(levels) if levels else 1.0

    rank = rank_table.get(profile.current_rank.title)
    previous_hours = rank_table.total_hours_before_rank(rank.title)
    required = rank.attribute_hours_required

    # Hours that count toward the current rank, per attribute
    hours_in_rank = [
        min(max(attr.total_hours - previous_hours, 0.0), required)
        for attr in attributes
    ]
    if required > 0:
        rank_progress = min(sum(hours_in_rank) / count / required, 1.0)
    else:
        rank_progress = 1.0

    return ProfileStats(
        quests_completed=len(profile.completed_quests),
        total_hours=total_hours,
        avg_hours_per_attribute=total_hours / count,
        avg_level=sum(levels) / count,
        attribute_balance=balance,
        rank_progress=rank_progress,
        current_rank=rank.title,
        current_level=profile.current_rank.level,
        milestones=profile.milestones.model_dump(),
    )
