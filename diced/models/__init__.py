"""Data models for the DICED progression engine."""

from .rank_definition import RankDefinition
from .attribute import AttributeName, AttributeProgress, AttributeLevelResult
from .achievement import (
    Achievement,
    QuestCompleteAchievement,
    RankUpAchievement,
    LevelUpAchievement,
)
from .user_profile import UserProfile, RankStatus, Milestones
from .quest_record import QuestRecord, QuestRank
from .completion_result import CompletionResult

__all__ = [
    'RankDefinition',
    'AttributeName',
    'AttributeProgress',
    'AttributeLevelResult',
    'Achievement',
    'QuestCompleteAchievement',
    'RankUpAchievement',
    'LevelUpAchievement',
    'UserProfile',
    'RankStatus',
    'Milestones',
    'QuestRecord',
    'QuestRank',
    'CompletionResult',
]
