"""Rank table, progression engine and profile statistics."""

from .rank_table import RankTable
from .engine import (
    ProgressionEngine,
    AttributeUpdate,
    RankAdvanceStatus,
    AttributeRankStatus,
    calculate_attribute_level,
    calculate_user_rank,
    update_attribute_hours,
)
from .stats import ProfileStats, summarize_profile

__all__ = [
    'RankTable',
    'ProgressionEngine',
    'AttributeUpdate',
    'RankAdvanceStatus',
    'AttributeRankStatus',
    'calculate_attribute_level',
    'calculate_user_rank',
    'update_attribute_hours',
    'ProfileStats',
    'summarize_profile',
]
