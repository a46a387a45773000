"""
ProfileStore - Owner of the user's progress profile.

Holds the single in-memory UserProfile and persists it as JSON in a
KeyValueStorage. The store is the only component that changes held state:
callers compute a new snapshot with the progression engine and hand it
back through replace().
"""

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from diced.models.achievement import ACHIEVEMENT_TYPES
from diced.models.attribute import AttributeName
from diced.models.user_profile import UserProfile
from diced.progression.engine import ProgressionEngine, AttributeUpdate
from diced.storage.key_value import KeyValueStorage
from diced.utils.constants import MAX_RECENT_ACHIEVEMENTS, STORAGE_KEY_USER_PROFILE
from diced.utils.exceptions import DataIntegrityWarning


logger = logging.getLogger(__name__)


def _pick(data: Dict[str, Any], camel: str, snake: str) -> Tuple[Optional[str], Any]:
    """Return (key, value) for whichever spelling of a field is present."""
    for key in (camel, snake):
        if key in data:
            return key, data[key]
    return None, None


class ProfileStore:
    """
    Persistent owner of the UserProfile.

    Why: The stored profile is the only copy of the user's progress, so
    every change goes through one place and is written out in full.

    Example usage:
        store = ProfileStore(JsonFileStorage("~/.diced/storage.json"))
        profile = store.load()
        store.replace(engine.update_attribute_hours(profile, "flavor", 2).profile)
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        engine: Optional[ProgressionEngine] = None,
        storage_key: str = STORAGE_KEY_USER_PROFILE,
    ):
        self.storage = storage
        self.engine = engine or ProgressionEngine()
        self.storage_key = storage_key
        self.warnings: List[str] = []
        self._profile: Optional[UserProfile] = None

    @property
    def rank_table(self):
        return self.engine.rank_table

    def load(self) -> UserProfile:
        """
        Return the profile, loading or creating it on first use.

        A stored profile is backfilled, repaired and normalized before it is
        returned. An unreadable one is replaced with a fresh default.

        Raises:
            StorageError: If the storage backend fails
        """
        if self._profile is not None:
            return self._profile

        raw = self.storage.get(self.storage_key)
        if raw is not None:
            try:
                profile, repaired = self._decode(raw)
            except DataIntegrityWarning as warning:
                self._warn(f"Discarding stored profile: {warning}")
            else:
                if repaired:
                    self._persist(profile)
                else:
                    self._profile = profile
                return self._profile

        logger.info("Creating new default profile")
        return self._persist(self.engine.create_default_profile())

    def save(self) -> None:
        """
        Write the in-memory profile to storage.

        Raises:
            StorageError: If the storage backend fails
        """
        if self._profile is None:
            return
        self.storage.set(self.storage_key, self._profile.model_dump_json(by_alias=True))

    def replace(self, profile: UserProfile) -> UserProfile:
        """
        Adopt a new profile snapshot and persist it.

        The snapshot is adopted only once it has been written; on a storage
        failure the previously held profile stays in place.

        Raises:
            StorageError: If the storage backend fails
        """
        profile.touch()
        return self._persist(profile)

    def reset(self) -> UserProfile:
        """Discard all progress and start over with the default profile."""
        logger.info("Resetting profile to defaults")
        return self._persist(self.engine.create_default_profile())

    def update_attribute(self, attribute_name, hours: float) -> AttributeUpdate:
        """
        Add hours to one attribute of the held profile and persist.

        Raises:
            UnknownAttributeError: If attribute_name is not tracked
            ProgressionValidationError: If hours is negative
        """
        update = self.engine.update_attribute_hours(self.load(), attribute_name, hours)
        self.replace(update.profile)
        logger.info(update.status)
        return update

    def recent_achievements(self, count: int = MAX_RECENT_ACHIEVEMENTS) -> list:
        """Most recent achievements, newest first."""
        return list(self.load().recent_achievements[:max(count, 0)])

    def _persist(self, profile: UserProfile) -> UserProfile:
        """Write a snapshot, then adopt it as the held profile."""
        self.storage.set(self.storage_key, profile.model_dump_json(by_alias=True))
        self._profile = profile
        return profile

    # -------------------------------------------------------------------------
    # Decoding
    # -------------------------------------------------------------------------

    def _warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)

    def _decode(self, raw: str) -> Tuple[UserProfile, bool]:
        """
        Decode, backfill and normalize a stored profile.

        Returns:
            (normalized profile, whether any repair was applied)

        Raises:
            DataIntegrityWarning: If the stored data cannot be used at all
        """
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise DataIntegrityWarning(f"stored profile is not valid JSON ({e})") from e

        if not isinstance(data, dict):
            raise DataIntegrityWarning("stored profile is not a JSON object")

        repaired = self._backfill(data)

        try:
            profile = UserProfile.model_validate(data)
        except ValidationError as e:
            raise DataIntegrityWarning(
                f"stored profile failed validation ({e.error_count()} errors)"
            ) from e

        repaired = self._repair_ranks(profile) or repaired
        return self.engine.calculate_user_rank(profile), repaired

    def _backfill(self, data: Dict[str, Any]) -> bool:
        """Fill in fields missing from older stored shapes. Mutates data."""
        repaired = False

        if _pick(data, 'milestones', 'milestones')[0] is None:
            self._warn("Stored profile has no milestones, starting counters at zero")
            repaired = True

        key, achievements = _pick(data, 'recentAchievements', 'recent_achievements')
        if key is None:
            self._warn("Stored profile has no achievement log, starting empty")
            repaired = True
        elif isinstance(achievements, list):
            known = [
                a for a in achievements
                if isinstance(a, dict) and a.get('type') in ACHIEVEMENT_TYPES
            ]
            if len(known) != len(achievements):
                self._warn(
                    f"Dropped {len(achievements) - len(known)} achievements of unknown type"
                )
                data[key] = known
                repaired = True

        # Older profiles stored attributes without their own rank
        _, rank = _pick(data, 'currentRank', 'current_rank')
        user_rank = rank.get('title') if isinstance(rank, dict) else None
        key, attributes = _pick(data, 'attributes', 'attributes')
        if isinstance(attributes, dict):
            for name in AttributeName:
                attribute = attributes.get(name.value)
                if attribute is None:
                    self._warn(f"Stored profile is missing attribute '{name.value}'")
                    repaired = True
                elif isinstance(attribute, dict) and user_rank and \
                        _pick(attribute, 'currentRank', 'current_rank')[0] is None:
                    attribute['currentRank'] = user_rank
                    repaired = True
        elif key is None:
            self._warn("Stored profile has no attributes, starting at zero hours")
            repaired = True

        return repaired

    def _repair_ranks(self, profile: UserProfile) -> bool:
        """Replace unknown rank titles and pull attributes back to one rank ahead."""
        table = self.rank_table
        repaired = False

        if profile.current_rank.title not in table:
            self._warn(
                f"Unknown rank '{profile.current_rank.title}' in stored profile, "
                f"falling back to {table.first_rank.title}"
            )
            profile.current_rank.title = table.first_rank.title
            repaired = True

        user_rank = table.get(profile.current_rank.title)
        ceiling = user_rank.next_rank or user_rank.title

        for name, attribute in profile.attributes.items():
            if attribute.current_rank not in table:
                self._warn(
                    f"Unknown rank '{attribute.current_rank}' for attribute "
                    f"'{name.value}', falling back to {user_rank.title}"
                )
                attribute.current_rank = user_rank.title
                repaired = True
            elif table.is_higher(attribute.current_rank, ceiling):
                self._warn(
                    f"Attribute '{name.value}' is more than one rank ahead, "
                    f"moving it to {ceiling}"
                )
                attribute.current_rank = ceiling
                repaired = True

        return repaired
