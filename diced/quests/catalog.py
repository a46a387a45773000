"""
Quest catalog - Read-only, ordered collection of quest records.

Besides lookup by id, the catalog answers the questions the quest board
asks: which quests are available, which are recommended for the user's
level, and which challenge comes next.
"""

from typing import Dict, Iterable, Iterator, List, Optional

from diced.models.quest_record import QuestRecord
from diced.models.user_profile import UserProfile
from diced.progression.rank_table import RankTable
from diced.utils.constants import (
    DEFAULT_RECOMMENDATION_COUNT,
    DIFFICULTY_CHALLENGING,
    DIFFICULTY_EASY,
    DIFFICULTY_MODERATE,
    QUEST_CHALLENGE,
    QUEST_TYPE_ORDER,
    UNKNOWN_QUEST_TYPE_ORDER,
)
from diced.utils.exceptions import QuestNotFoundError


class QuestCatalog:
    """
    Ordered quest records indexed by id.

    Example usage:
        catalog = QuestCatalog.from_dicts(json.loads(raw))
        quest = catalog.find_by_id("T1-1")
    """

    def __init__(self, quests: Iterable[QuestRecord] = ()):
        self._quests: List[QuestRecord] = []
        self._by_id: Dict[str, QuestRecord] = {}
        for quest in quests:
            if quest.id in self._by_id:
                raise ValueError(f"Duplicate quest id: {quest.id}")
            self._quests.append(quest)
            self._by_id[quest.id] = quest

    @classmethod
    def from_dicts(cls, items: Iterable[dict]) -> 'QuestCatalog':
        """Build a catalog from catalog JSON objects. Invalid items raise."""
        return cls(QuestRecord.from_dict(item) for item in items)

    def find_by_id(self, quest_id: str) -> Optional[QuestRecord]:
        """The quest with this id, or None."""
        return self._by_id.get(quest_id)

    def get(self, quest_id: str) -> QuestRecord:
        """
        The quest with this id.

        Raises:
            QuestNotFoundError: If the id is not in the catalog
        """
        quest = self._by_id.get(quest_id)
        if quest is None:
            raise QuestNotFoundError(quest_id)
        return quest

    def __iter__(self) -> Iterator[QuestRecord]:
        return iter(self._quests)

    def __len__(self) -> int:
        return len(self._quests)

    def __contains__(self, quest_id: object) -> bool:
        return quest_id in self._by_id

    def to_dicts(self) -> List[dict]:
        return [quest.to_dict() for quest in self._quests]

    # -------------------------------------------------------------------------
    # Filters
    # -------------------------------------------------------------------------

    def by_type(self, quest_type: str) -> List[QuestRecord]:
        """Quests of one type (training, side, main, explore, challenge)."""
        quest_type = quest_type.lower()
        return [q for q in self._quests if q.type == quest_type]

    def by_level(self, rank_title: str, level: int) -> List[QuestRecord]:
        """Quests meant for a given rank and level."""
        return [
            q for q in self._quests
            if q.rank.title == rank_title and q.rank.level == level
        ]

    def prerequisites_met(self, quest_id: str, completed_quests: Iterable[str]) -> bool:
        """True if every prerequisite of the quest is completed (or it has none)."""
        quest = self.find_by_id(quest_id)
        if quest is None or not quest.prerequisites:
            return True
        completed = set(completed_quests)
        return all(prereq in completed for prereq in quest.prerequisites)

    def available_quests(self, profile: UserProfile) -> List[QuestRecord]:
        """Unlocked, not yet completed quests whose prerequisites are met."""
        available = []
        for quest_id in profile.unlocked_quests:
            if profile.has_completed(quest_id):
                continue
            quest = self.find_by_id(quest_id)
            if quest is not None and self.prerequisites_met(quest_id, profile.completed_quests):
                available.append(quest)
        return available

    def completed_quests(self, profile: UserProfile) -> List[QuestRecord]:
        """Completed quests still present in the catalog, in completion order."""
        return [
            quest for quest in map(self.find_by_id, profile.completed_quests)
            if quest is not None
        ]

    def recommended_quests(
        self,
        profile: UserProfile,
        count: int = DEFAULT_RECOMMENDATION_COUNT,
    ) -> List[QuestRecord]:
        """
        Quests suited to the user's current rank and level.

        Picks unlocked, uncompleted quests of the user's rank up to one level
        above the displayed level, ordered by level and then by quest type
        (training first, challenge last).
        """
        rank = profile.current_rank
        candidates = [
            q for q in self._quests
            if profile.is_unlocked(q.id)
            and not profile.has_completed(q.id)
            and q.rank.title == rank.title
            and q.rank.level <= rank.level + 1
        ]
        candidates.sort(key=lambda q: (
            q.rank.level,
            QUEST_TYPE_ORDER.get(q.type, UNKNOWN_QUEST_TYPE_ORDER),
        ))
        return candidates[:max(count, 0)]

    def next_challenge_quest(self, profile: UserProfile) -> Optional[QuestRecord]:
        """Lowest-level uncompleted challenge at or above the user's level."""
        rank = profile.current_rank
        challenges = [
            q for q in self._quests
            if q.type == QUEST_CHALLENGE
            and q.rank.title == rank.title
            and q.rank.level >= rank.level
            and not profile.has_completed(q.id)
        ]
        return min(challenges, key=lambda q: q.rank.level, default=None)


def quest_hours(quest: QuestRecord) -> float:
    """Total hours a quest grants across all attributes."""
    return quest.total_hours


def quest_difficulty(
    quest: QuestRecord,
    profile: UserProfile,
    rank_table: Optional[RankTable] = None,
) -> str:
    """
    Difficulty of a quest for the user: easy, moderate or challenging.

    Quests of an earlier rank are easy and quests of a later rank are
    challenging; within the user's rank the quest level is compared with
    the displayed level.

    Raises:
        RankNotFoundError: If the quest or the profile names an unknown rank
    """
    rank_table = rank_table or RankTable.default()
    user = (rank_table.rank_index(profile.current_rank.title), profile.current_rank.level)
    target = (rank_table.rank_index(quest.rank.title), quest.rank.level)

    if target < user:
        return DIFFICULTY_EASY
    if target == user:
        return DIFFICULTY_MODERATE
    return DIFFICULTY_CHALLENGING


def format_time_required(minutes: Optional[int]) -> str:
    """
    Format a quest's estimated time.

    Examples:
        >>> format_time_required(45)
        '45 min'
        >>> format_time_required(90)
        '1 hr 30 min'
    """
    if not minutes:
        return "Unknown"
    if minutes < 60:
        return f"{minutes} min"

    hours, remaining = divmod(minutes, 60)
    if remaining == 0:
        return f"{hours} hr"
    return f"{hours} hr {remaining} min"
