"""
Quest completion - Applies a completed quest to the user's profile.

All changes are computed on a copy of the held profile and only handed to
the ProfileStore once every check has passed. A rejected completion
leaves the held profile untouched. The already-completed check is the
idempotency guard: replaying a completion is always rejected.
"""

import logging
from typing import Dict, Optional, Tuple

from diced.models.achievement import (
    QuestCompleteAchievement,
    RankUpAchievement,
    LevelUpAchievement,
)
from diced.models.completion_result import CompletionResult
from diced.models.quest_record import QuestRecord
from diced.models.user_profile import UserProfile
from diced.progression.engine import ProgressionEngine
from diced.storage.profile_store import ProfileStore
from diced.utils.constants import (
    MSG_QUEST_ALREADY_COMPLETED,
    MSG_QUEST_COMPLETED,
    MSG_QUEST_NOT_FOUND,
    MSG_QUEST_NOT_UNLOCKED,
)
from diced.utils.exceptions import ProgressionValidationError


logger = logging.getLogger(__name__)


class QuestCompletionTransaction:
    """
    Orchestrates completing a single quest.

    Steps:
    1. Look up the quest in the catalog
    2. Reject quests already completed or not yet unlocked
    3. Credit attribute hours through the progression engine
    4. Record completion, milestones, unlocks and achievements
    5. Persist, then record and persist any rank or level change

    Reported rewards are the hours actually credited after rank caps.

    Example usage:
        transaction = QuestCompletionTransaction(store, catalog)
        result = transaction.complete("T1-1")
        result.to_dict()  # {"success": True, "message": ..., "rewards": {...}}
    """

    def __init__(
        self,
        profile_store: ProfileStore,
        catalog,
        engine: Optional[ProgressionEngine] = None,
    ):
        """
        Args:
            profile_store: Owner of the user's profile
            catalog: Quest source exposing find_by_id(quest_id)
            engine: Progression engine (defaults to the store's engine)
        """
        self.profile_store = profile_store
        self.catalog = catalog
        self.engine = engine or profile_store.engine

    def complete(self, quest_id: str) -> CompletionResult:
        """
        Complete a quest.

        Args:
            quest_id: Id of the quest to complete

        Returns:
            CompletionResult; validation problems come back as failures

        Raises:
            StorageError: If the profile cannot be persisted
        """
        quest = self.catalog.find_by_id(quest_id)
        if quest is None:
            return CompletionResult.failure(MSG_QUEST_NOT_FOUND, quest_id)

        profile = self.profile_store.load()

        if profile.has_completed(quest_id):
            return CompletionResult.failure(MSG_QUEST_ALREADY_COMPLETED, quest_id)

        if not profile.is_unlocked(quest_id):
            return CompletionResult.failure(MSG_QUEST_NOT_UNLOCKED, quest_id)

        previous_rank = profile.current_rank.title
        previous_level = profile.current_rank.level

        try:
            updated, rewards = self._credit_rewards(profile, quest)
        except ProgressionValidationError as e:
            logger.warning("Cannot complete quest %s: %s", quest_id, e)
            return CompletionResult.failure(str(e), quest_id)

        updated.mark_completed(quest_id)
        updated.milestones.quests_completed += 1
        updated.milestones.hours_accumulated += sum(rewards.values())

        for unlocked_id in quest.unlocks:
            updated.unlock(unlocked_id)

        updated.record_achievement(QuestCompleteAchievement(
            quest_id=quest.id,
            quest_title=quest.title,
            quest_type=quest.type,
            rewards=dict(rewards),
        ))

        self.profile_store.replace(updated)
        logger.info("Completed quest %s, credited %s", quest_id, rewards)

        current_rank = updated.current_rank.title
        current_level = updated.current_rank.level

        if current_rank != previous_rank:
            # The held snapshot is never mutated; record on a copy
            updated = updated.model_copy(deep=True)
            updated.milestones.rank_advances += 1
            updated.record_achievement(RankUpAchievement(
                previous_rank=previous_rank,
                new_rank=current_rank,
            ))
            self.profile_store.replace(updated)
            logger.info("Rank advanced from %s to %s", previous_rank, current_rank)

            return CompletionResult(
                success=True,
                message=f"Quest completed! You advanced to {current_rank}!",
                quest_id=quest_id,
                rewards=rewards,
                rank_up=True,
                new_rank=current_rank,
            )

        if current_level != previous_level:
            updated = updated.model_copy(deep=True)
            updated.milestones.level_ups += 1
            updated.record_achievement(LevelUpAchievement(
                rank=current_rank,
                previous_level=previous_level,
                new_level=current_level,
            ))
            self.profile_store.replace(updated)
            logger.info("Level changed from %d to %d", previous_level, current_level)

            return CompletionResult(
                success=True,
                message=f"Quest completed! You reached {current_rank} Level {current_level}!",
                quest_id=quest_id,
                rewards=rewards,
                level_up=True,
                new_level=current_level,
            )

        return CompletionResult(
            success=True,
            message=MSG_QUEST_COMPLETED,
            quest_id=quest_id,
            rewards=rewards,
        )

    def _credit_rewards(
        self,
        profile: UserProfile,
        quest: QuestRecord,
    ) -> Tuple[UserProfile, Dict[str, float]]:
        """
        Apply each positive attribute reward in turn.

        Returns:
            (new profile snapshot, hours actually credited per attribute)
        """
        updated = profile.model_copy(deep=True)
        rewards: Dict[str, float] = {}

        for attribute, hours in quest.attribute_rewards.items():
            if hours <= 0:
                continue
            update = self.engine.update_attribute_hours(updated, attribute, hours)
            updated = update.profile
            rewards[attribute.value] = update.hours_added
            logger.debug(update.status)

        return updated, rewards
