"""
Constants for the DICED progression engine.

This module contains the rank table data, attribute and quest identifiers,
storage keys and tuning values used throughout the application. Centralizing
these makes the progression curve easy to review and tune.
"""

from typing import Dict, List, Tuple, Set


# =============================================================================
# ATTRIBUTES
# =============================================================================

ATTRIBUTE_TECHNIQUE = "technique"
ATTRIBUTE_INGREDIENTS = "ingredients"
ATTRIBUTE_FLAVOR = "flavor"
ATTRIBUTE_MANAGEMENT = "management"

# Each attribute is worth exactly one quarter of overall rank progress
ATTRIBUTE_RANK_WEIGHT = 0.25
MAX_ATTRIBUTE_CONTRIBUTION = 100 * ATTRIBUTE_RANK_WEIGHT


# =============================================================================
# RANK TABLE
# =============================================================================

# (title, color tier, hours required to clear each level)
# attribute_hours_required is derived from the level hours, never stored.
RANK_TABLE_DATA: List[Tuple[str, str, Tuple[float, ...]]] = [
    ("Home Cook", "Iron", (5, 5, 5, 5, 5, 6, 7, 8, 9)),
    ("Culinary Student", "Bronze", (10, 11, 13, 15, 17, 19, 21, 23, 25)),
    ("Kitchen Assistant", "Silver", (27, 29, 31, 33, 35, 37, 40, 43, 46)),
    ("Line Cook", "Gold", (49, 54, 59, 64, 71, 77, 83, 91, 99)),
    ("Sous Chef", "Platinum", (106, 114, 123, 133, 143, 157, 167, 180, 200)),
    ("Head Chef", "Master", (0, 0, 0, 0, 0, 0, 0, 0, 0)),  # terminal
]

DEFAULT_RANK_TITLE = "Home Cook"


# =============================================================================
# QUESTS
# =============================================================================

QUEST_TRAINING = "training"
QUEST_SIDE = "side"
QUEST_MAIN = "main"
QUEST_EXPLORE = "explore"
QUEST_CHALLENGE = "challenge"

VALID_QUEST_TYPES: Set[str] = {
    QUEST_TRAINING,
    QUEST_SIDE,
    QUEST_MAIN,
    QUEST_EXPLORE,
    QUEST_CHALLENGE,
}

# Recommendation order when two quests share a level
QUEST_TYPE_ORDER: Dict[str, int] = {
    QUEST_TRAINING: 0,
    QUEST_SIDE: 1,
    QUEST_MAIN: 2,
    QUEST_EXPLORE: 3,
    QUEST_CHALLENGE: 4,
}
UNKNOWN_QUEST_TYPE_ORDER = 5

# Difficulty of a quest relative to the user's rank and level
DIFFICULTY_EASY = "easy"
DIFFICULTY_MODERATE = "moderate"
DIFFICULTY_CHALLENGING = "challenging"

# Unlocked on a brand new profile
STARTER_QUEST_IDS: List[str] = [
    "T1-1", "T1-2", "T1-3", "T1-6", "T1-7", "T1-8",
    "S1-1", "S1-5", "S1-6", "S1-7",
    "M1-1", "M1-4", "M1-5",
    "E1-1", "E1-3", "E1-4",
]

DEFAULT_RECOMMENDATION_COUNT = 5


# =============================================================================
# ACHIEVEMENTS
# =============================================================================

ACHIEVEMENT_QUEST_COMPLETE = "quest_complete"
ACHIEVEMENT_RANK_UP = "rank_up"
ACHIEVEMENT_LEVEL_UP = "level_up"

MAX_RECENT_ACHIEVEMENTS = 10


# =============================================================================
# RESULT MESSAGES
# =============================================================================

MSG_QUEST_NOT_FOUND = "Quest not found"
MSG_QUEST_ALREADY_COMPLETED = "Quest already completed"
MSG_QUEST_NOT_UNLOCKED = "Quest not unlocked yet"
MSG_QUEST_COMPLETED = "Quest completed!"


# =============================================================================
# STORAGE & CATALOG
# =============================================================================

STORAGE_KEY_USER_PROFILE = "diced_user_profile"
STORAGE_KEY_QUEST_CACHE = "diced_quest_cache"

DEFAULT_QUEST_DATA_URL = "https://dicedrpg.github.io/diced-rpg-data/data/quests.json"
DEFAULT_STORAGE_PATH = "~/.diced/storage.json"

QUEST_CACHE_TTL_SECONDS = 24 * 60 * 60  # 24 hours
QUEST_FETCH_TIMEOUT_SECONDS = 10

DEFAULT_USERNAME = "Player"
