"""
CompletionResult model - Outcome of a quest completion attempt.

This is the contract handed to the UI. Reward hours are the hours actually
credited to each attribute after rank caps, not the hours the quest offers.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class CompletionResult:
    """
    Result of QuestCompletionTransaction.complete().

    Attributes:
        success: Whether the quest was completed
        message: Human-readable outcome
        quest_id: The quest that was attempted
        rewards: Hours credited per attribute (success only)
        rank_up: True if the completion advanced the user's rank
        new_rank: New rank title when rank_up is True
        level_up: True if the displayed level changed within the rank
        new_level: New displayed level when level_up is True
    """

    success: bool
    message: str
    quest_id: Optional[str] = None
    rewards: Optional[Dict[str, float]] = None
    rank_up: bool = False
    new_rank: Optional[str] = None
    level_up: bool = False
    new_level: Optional[int] = None

    @classmethod
    def failure(cls, message: str, quest_id: Optional[str] = None) -> 'CompletionResult':
        return cls(success=False, message=message, quest_id=quest_id)

    @property
    def total_hours(self) -> float:
        """Total hours credited by this completion."""
        return sum((self.rewards or {}).values())

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize to the UI result contract.

        Optional keys are only present when they apply, e.g.
        {"success": True, "message": "...", "rewards": {...}, "rankUp": True,
        "newRank": "Culinary Student"}.
        """
        result: Dict[str, Any] = {
            'success': self.success,
            'message': self.message,
        }
        if self.rewards is not None:
            result['rewards'] = dict(self.rewards)
        if self.rank_up:
            result['rankUp'] = True
            result['newRank'] = self.new_rank
        if self.level_up:
            result['levelUp'] = True
            result['newLevel'] = self.new_level
        return result
