"""
Exception hierarchy for the DICED progression engine.

Validation errors are recoverable and are turned into failure results at the
quest-completion boundary. Storage errors always reach the caller: the
persisted profile is the only copy of the user's progress.
"""

from typing import Optional


class DicedError(Exception):
    """Base class for all DICED errors."""


class ProgressionValidationError(DicedError):
    """A request cannot be applied to the current profile state."""


class RankNotFoundError(ProgressionValidationError):
    """A rank title is not present in the rank table."""

    def __init__(self, rank_title: Optional[str]):
        self.rank_title = rank_title
        super().__init__(f"Rank not found: {rank_title!r}")


class UnknownAttributeError(ProgressionValidationError):
    """An attribute name is not one of the four tracked attributes."""

    def __init__(self, attribute_name: str):
        self.attribute_name = attribute_name
        super().__init__(f"Unknown attribute: {attribute_name!r}")


class QuestNotFoundError(ProgressionValidationError):
    """A quest id is not present in the quest catalog."""

    def __init__(self, quest_id: str):
        self.quest_id = quest_id
        super().__init__(f"Quest not found: {quest_id!r}")


class StorageError(DicedError):
    """Reading or writing persisted state failed."""


class QuestCatalogError(DicedError):
    """The remote quest catalog could not be fetched or decoded."""


class DataIntegrityWarning(UserWarning):
    """
    Persisted data is missing or malformed but can be repaired.

    Raised while decoding a stored profile and handled by the profile store,
    which logs the problem and falls back to defaults.
    """
