"""
Progression engine for attribute levels and user ranks.

Maps accumulated practice hours to levels and ranks. Every public method is
pure: profiles passed in are never mutated, a new snapshot is returned
instead. The ProfileStore is the only component that holds state.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Optional

from diced.models.attribute import AttributeName, AttributeProgress, AttributeLevelResult
from diced.models.rank_definition import RankDefinition
from diced.models.user_profile import UserProfile, RankStatus
from diced.progression.rank_table import RankTable
from diced.utils.constants import (
    ATTRIBUTE_RANK_WEIGHT,
    MAX_ATTRIBUTE_CONTRIBUTION,
    STARTER_QUEST_IDS,
)
from diced.utils.exceptions import ProgressionValidationError


logger = logging.getLogger(__name__)


def _percentage(part: float, whole: float) -> float:
    """100 * part / whole clamped to [0, 100]; a zero whole reads as 100%."""
    if whole <= 0:
        return 100.0
    return min(max(100.0 * part / whole, 0.0), 100.0)


@dataclass
class AttributeUpdate:
    """
    Outcome of update_attribute_hours.

    Callers must use hours_added and the profile fields, not the status text.
    """

    profile: UserProfile
    status: str
    hours_added: float = 0.0


@dataclass
class AttributeRankStatus:
    """Hours of one attribute toward clearing the user's current rank."""

    current_hours: float
    required_hours: float
    remaining_hours: float
    completed: bool


@dataclass
class RankAdvanceStatus:
    """How far the user is from the next rank."""

    can_advance: bool
    current_rank: str
    next_rank: Optional[str]
    attribute_status: Dict[str, AttributeRankStatus] = field(default_factory=dict)
    total_hours: float = 0.0
    total_required: float = 0.0
    progress_percentage: float = 0.0
    message: Optional[str] = None


class ProgressionEngine:
    """
    Calculator for attribute levels and the overall user rank.

    Rules:
    - Attribute hours only count up to the current rank's requirement
    - An attribute that clears its rank moves one rank ahead and waits
      there, frozen at level 1 and 0%, until the user's rank catches up
    - Each attribute is worth exactly 25% of overall rank progress
    - The weakest attribute sets the user's displayed level

    Example usage:
        engine = ProgressionEngine()
        result = engine.update_attribute_hours(profile, "technique", 5)
        result.profile.attributes["technique"].current_level  # 2
    """

    def __init__(self, rank_table: Optional[RankTable] = None):
        self.rank_table = rank_table or RankTable.default()

    # -------------------------------------------------------------------------
    # Attribute level
    # -------------------------------------------------------------------------

    def calculate_attribute_level(
        self,
        attribute_rank: str,
        user_rank: str,
        total_hours: float,
    ) -> AttributeLevelResult:
        """
        Calculate level state of an attribute from its accumulated hours.

        Args:
            attribute_rank: Rank the attribute is progressing within
            user_rank: The user's overall rank
            total_hours: Uncapped hours of the attribute

        Returns:
            AttributeLevelResult for attribute_rank

        Raises:
            RankNotFoundError: If either rank is not in the rank table
        """
        table = self.rank_table
        rank = table.get(attribute_rank)
        previous_hours = table.total_hours_before_rank(rank.title)
        required = rank.attribute_hours_required

        # Ahead of the user: frozen until the user's rank catches up
        if table.is_higher(rank.title, user_rank):
            return AttributeLevelResult(
                rank_title=rank.title,
                current_level=1,
                hours_to_next_level=previous_hours + rank.first_level_hours,
                level_progress_percentage=0.0,
                rank_progress_percentage=0.0,
                total_hours_for_rank=required,
                hours_in_current_rank=0.0,
                hours_remaining_in_rank=required,
                capped_total_hours=previous_hours,
                actual_total_hours=total_hours,
                is_maxed=False,
                waiting_for_user_rank_up=True,
                next_rank=rank.next_rank,
            )

        hours_in_rank = min(max(total_hours - previous_hours, 0.0), required)
        capped_total = previous_hours + hours_in_rank

        if hours_in_rank >= required and rank.next_rank is not None:
            next_rank = table.get(rank.next_rank)
            return AttributeLevelResult(
                rank_title=rank.title,
                current_level=1,
                hours_to_next_level=previous_hours + required + next_rank.first_level_hours,
                level_progress_percentage=0.0,
                rank_progress_percentage=100.0,
                total_hours_for_rank=required,
                hours_in_current_rank=required,
                hours_remaining_in_rank=0.0,
                capped_total_hours=capped_total,
                actual_total_hours=total_hours,
                is_maxed=True,
                waiting_for_user_rank_up=False,
                next_rank=rank.next_rank,
            )

        level, level_start, level_cost = self._locate_level(rank, hours_in_rank)

        return AttributeLevelResult(
            rank_title=rank.title,
            current_level=level,
            hours_to_next_level=previous_hours + level_start + level_cost,
            level_progress_percentage=_percentage(hours_in_rank - level_start, level_cost),
            rank_progress_percentage=_percentage(hours_in_rank, required),
            total_hours_for_rank=required,
            hours_in_current_rank=hours_in_rank,
            hours_remaining_in_rank=max(required - hours_in_rank, 0.0),
            capped_total_hours=capped_total,
            actual_total_hours=total_hours,
            is_maxed=hours_in_rank >= required,
            waiting_for_user_rank_up=False,
            next_rank=rank.next_rank,
        )

    def _locate_level(self, rank: RankDefinition, hours_in_rank: float):
        """
        Find the level that hours_in_rank falls into.

        Returns:
            (1-based level, within-rank hours at level start, level cost)
        """
        accumulated = 0.0
        for index, cost in enumerate(rank.level_hours):
            if accumulated + cost > hours_in_rank:
                return index + 1, accumulated, cost
            accumulated += cost

        # Every level filled: stay on the last one
        last_cost = rank.level_hours[-1]
        return rank.level_count, accumulated - last_cost, last_cost

    def _settle_attribute(self, attribute: AttributeProgress, user_rank: str) -> AttributeProgress:
        """Recompute one attribute, relabeling it past every rank it has cleared."""
        result = self.calculate_attribute_level(
            attribute.current_rank, user_rank, attribute.total_hours
        )
        while result.has_cleared_rank:
            result = self.calculate_attribute_level(
                result.next_rank, user_rank, attribute.total_hours
            )

        return attribute.model_copy(update={
            'current_rank': result.rank_title,
            'current_level': result.current_level,
            'capped_total_hours': result.capped_total_hours,
            'hours_to_next_level': result.hours_to_next_level,
            'level_progress_percentage': result.level_progress_percentage,
            'rank_progress_percentage': result.rank_progress_percentage,
            'is_maxed': result.is_maxed,
            'waiting_for_user_rank_up': result.waiting_for_user_rank_up,
        })

    # -------------------------------------------------------------------------
    # User rank
    # -------------------------------------------------------------------------

    def calculate_user_rank(self, profile: UserProfile) -> UserProfile:
        """
        Recompute every attribute and the user's overall rank.

        The user advances when every attribute has cleared the current rank
        (attributes already waiting one rank ahead count as cleared). After
        an advance the attributes are recomputed against the new rank, which
        releases the ones that were waiting for it.

        Args:
            profile: Profile snapshot (not modified)

        Returns:
            New, normalized profile snapshot

        Raises:
            RankNotFoundError: If the profile references an unknown rank
        """
        updated = profile.model_copy(deep=True)
        user_rank = self.rank_table.get(updated.current_rank.title)

        while True:
            for name, attribute in updated.attributes.items():
                updated.attributes[name] = self._settle_attribute(attribute, user_rank.title)

            if user_rank.is_terminal or not self._all_attributes_cleared(updated, user_rank.title):
                break

            logger.debug("All attributes cleared %s, advancing to %s",
                         user_rank.title, user_rank.next_rank)
            user_rank = self.rank_table.get(user_rank.next_rank)

        updated.current_rank = RankStatus(
            title=user_rank.title,
            color_tier=user_rank.color_tier,
            level=self._user_level(updated, user_rank),
            progress_percentage=self._rank_progress(updated, user_rank.title),
        )
        return updated

    def _all_attributes_cleared(self, profile: UserProfile, user_rank: str) -> bool:
        for attribute in profile.attributes.values():
            if self.rank_table.is_higher(attribute.current_rank, user_rank):
                continue
            if attribute.current_rank != user_rank or attribute.rank_progress_percentage < 100:
                return False
        return True

    def _user_level(self, profile: UserProfile, user_rank: RankDefinition) -> int:
        """Lowest level among attributes progressing within the user's rank."""
        levels = [
            attribute.current_level
            for attribute in profile.attributes.values()
            if attribute.current_rank == user_rank.title
            and not attribute.waiting_for_user_rank_up
        ]
        return min(levels) if levels else user_rank.level_count

    def _rank_progress(self, profile: UserProfile, user_rank: str) -> float:
        """Each attribute contributes a quarter of its rank progress."""
        total = 0.0
        for attribute in profile.attributes.values():
            if self.rank_table.is_higher(attribute.current_rank, user_rank):
                total += MAX_ATTRIBUTE_CONTRIBUTION
            elif attribute.current_rank == user_rank:
                total += attribute.rank_progress_percentage * ATTRIBUTE_RANK_WEIGHT
        return min(total, 100.0)

    # -------------------------------------------------------------------------
    # Hour updates
    # -------------------------------------------------------------------------

    def update_attribute_hours(
        self,
        profile: UserProfile,
        attribute_name,
        hours_to_add: float,
    ) -> AttributeUpdate:
        """
        Add hours to one attribute and recompute the profile.

        Hours are capped at the ceiling of the user's current rank; a request
        for more than the remaining capacity is truncated, not rejected.
        Attributes already waiting one rank ahead accept no hours until the
        user's rank catches up.

        Args:
            profile: Profile snapshot (not modified)
            attribute_name: One of the four attribute names
            hours_to_add: Non-negative hours

        Returns:
            AttributeUpdate with the new profile, a status message and the
            hours actually credited

        Raises:
            UnknownAttributeError: If attribute_name is not tracked
            ProgressionValidationError: If hours_to_add is negative or not finite
            RankNotFoundError: If the profile references an unknown rank
        """
        name = AttributeName.parse(attribute_name)
        if not math.isfinite(hours_to_add) or hours_to_add < 0:
            raise ProgressionValidationError(
                f"Hours to add must be a finite, non-negative number: {hours_to_add}"
            )

        updated = profile.model_copy(deep=True)
        user_rank = self.rank_table.get(updated.current_rank.title)
        attribute = updated.attributes[name]
        attribute_rank = self.rank_table.get(attribute.current_rank)

        if self.rank_table.is_higher(attribute_rank.title, user_rank.title):
            return AttributeUpdate(
                profile=updated,
                status=(
                    f"Attribute {name.value} is already at rank {attribute_rank.title} "
                    f"and waiting for user to reach this rank."
                ),
            )

        required = user_rank.attribute_hours_required
        max_hours = self.rank_table.total_hours_before_rank(user_rank.title) + required
        current_hours = attribute.total_hours

        if current_hours >= max_hours:
            status = (
                f"Attribute {name.value} is already at maximum for rank "
                f"{user_rank.title} ({required:g} hours)"
            )
            if user_rank.next_rank and attribute_rank.title == user_rank.title:
                attribute.current_rank = user_rank.next_rank
                attribute.waiting_for_user_rank_up = True
                return AttributeUpdate(
                    profile=self.calculate_user_rank(updated),
                    status=f"{status}. Advanced to {user_rank.next_rank} (waiting for user rank up).",
                )
            return AttributeUpdate(profile=updated, status=f"{status}.")

        effective_hours = min(hours_to_add, max_hours - current_hours)
        attribute.total_hours = current_hours + effective_hours

        if effective_hours < hours_to_add:
            status = (
                f"Added {effective_hours:.1f} hours to {name.value} "
                f"(capped from {hours_to_add:g} hours). Max for rank: {required:g} hours."
            )
        else:
            status = f"Added {effective_hours:.1f} hours to {name.value}."

        recalculated = self.calculate_user_rank(updated)

        after = recalculated.attributes[name]
        if after.waiting_for_user_rank_up:
            status += (
                f" Attribute maxed out and advanced to {after.current_rank} "
                f"(waiting for user rank up)."
            )
        if recalculated.current_rank.title != user_rank.title:
            status += f" Rank advanced to {recalculated.current_rank.title}."

        return AttributeUpdate(profile=recalculated, status=status, hours_added=effective_hours)

    # -------------------------------------------------------------------------
    # Rank advancement queries
    # -------------------------------------------------------------------------

    def can_advance_to_next_rank(self, profile: UserProfile) -> bool:
        """
        Check whether every attribute holds enough hours to clear the
        user's current rank. Always False at the terminal rank.
        """
        user_rank = self.rank_table.get(profile.current_rank.title)
        if user_rank.is_terminal:
            return False

        required_total = (
            self.rank_table.total_hours_before_rank(user_rank.title)
            + user_rank.attribute_hours_required
        )
        return all(
            attribute.total_hours >= required_total
            or self.rank_table.is_higher(attribute.current_rank, user_rank.title)
            for attribute in profile.attributes.values()
        )

    def hours_for_next_rank(self, profile: UserProfile) -> RankAdvanceStatus:
        """
        Summarize per-attribute hours toward clearing the user's rank.

        Args:
            profile: Profile snapshot

        Returns:
            RankAdvanceStatus (can_advance False at the terminal rank)
        """
        user_rank = self.rank_table.get(profile.current_rank.title)

        if user_rank.is_terminal:
            return RankAdvanceStatus(
                can_advance=False,
                current_rank=user_rank.title,
                next_rank=None,
                progress_percentage=100.0,
                message="Already at maximum rank",
            )

        required = user_rank.attribute_hours_required
        previous_hours = self.rank_table.total_hours_before_rank(user_rank.title)
        statuses: Dict[str, AttributeRankStatus] = {}

        for name, attribute in profile.attributes.items():
            if self.rank_table.is_higher(attribute.current_rank, user_rank.title):
                hours = required
            else:
                hours = min(max(attribute.total_hours - previous_hours, 0.0), required)
            statuses[name.value] = AttributeRankStatus(
                current_hours=hours,
                required_hours=required,
                remaining_hours=max(required - hours, 0.0),
                completed=hours >= required,
            )

        total_hours = sum(status.current_hours for status in statuses.values())
        total_required = required * len(statuses)

        return RankAdvanceStatus(
            can_advance=self.can_advance_to_next_rank(profile),
            current_rank=user_rank.title,
            next_rank=user_rank.next_rank,
            attribute_status=statuses,
            total_hours=total_hours,
            total_required=total_required,
            progress_percentage=_percentage(total_hours, total_required),
        )

    # -------------------------------------------------------------------------
    # Profiles
    # -------------------------------------------------------------------------

    def create_default_profile(self) -> UserProfile:
        """
        Create the seed profile: first rank, level 1, no hours, starter
        quests unlocked.
        """
        first_rank = self.rank_table.first_rank
        profile = UserProfile(
            current_rank=RankStatus(
                title=first_rank.title,
                color_tier=first_rank.color_tier,
            ),
            attributes={
                name: AttributeProgress(current_rank=first_rank.title)
                for name in AttributeName
            },
            unlocked_quests=list(STARTER_QUEST_IDS),
        )
        return self.calculate_user_rank(profile)


def calculate_attribute_level(
    attribute_rank: str,
    user_rank: str,
    total_hours: float,
) -> AttributeLevelResult:
    """
    Calculate attribute level state.

    Convenience function using the default rank table.
    """
    engine = ProgressionEngine()
    return engine.calculate_attribute_level(attribute_rank, user_rank, total_hours)


def calculate_user_rank(profile: UserProfile) -> UserProfile:
    """
    Recompute a profile's attributes and overall rank.

    Convenience function using the default rank table.
    """
    engine = ProgressionEngine()
    return engine.calculate_user_rank(profile)


def update_attribute_hours(profile: UserProfile, attribute_name, hours_to_add: float) -> AttributeUpdate:
    """
    Add hours to an attribute and recompute the profile.

    Convenience function using the default rank table.
    """
    engine = ProgressionEngine()
    return engine.update_attribute_hours(profile, attribute_name, hours_to_add)
