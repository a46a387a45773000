"""Quest catalog, catalog loader and quest completion."""

from .catalog import QuestCatalog, quest_hours, quest_difficulty, format_time_required
from .loader import QuestCatalogLoader
from .completion import QuestCompletionTransaction

__all__ = [
    'QuestCatalog',
    'quest_hours',
    'quest_difficulty',
    'format_time_required',
    'QuestCatalogLoader',
    'QuestCompletionTransaction',
]
