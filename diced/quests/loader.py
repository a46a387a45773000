"""
Quest catalog loader - Fetches the remote quest JSON with a local cache.

The catalog is fetched at most once per TTL (24 hours by default) and
cached in the key-value storage together with its fetch time. When the
fetch fails the cache is used regardless of age; with no cache at all the
catalog is empty.
"""

import json
import logging
import time
from typing import Any, Callable, List, Optional, Tuple

import requests

from diced.models.quest_record import QuestRecord
from diced.quests.catalog import QuestCatalog
from diced.storage.key_value import KeyValueStorage
from diced.utils.constants import (
    DEFAULT_QUEST_DATA_URL,
    QUEST_CACHE_TTL_SECONDS,
    QUEST_FETCH_TIMEOUT_SECONDS,
    STORAGE_KEY_QUEST_CACHE,
)
from diced.utils.exceptions import ProgressionValidationError, QuestCatalogError


logger = logging.getLogger(__name__)


class QuestCatalogLoader:
    """
    Loader for the remote quest catalog.

    Example usage:
        loader = QuestCatalogLoader(storage)
        catalog = loader.load()
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        url: str = DEFAULT_QUEST_DATA_URL,
        ttl_seconds: float = QUEST_CACHE_TTL_SECONDS,
        timeout: float = QUEST_FETCH_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.time,
        cache_key: str = STORAGE_KEY_QUEST_CACHE,
    ):
        self.storage = storage
        self.url = url
        self.ttl_seconds = ttl_seconds
        self.timeout = timeout
        self.session = session or requests.Session()
        self.clock = clock
        self.cache_key = cache_key
        self.warnings: List[str] = []
        self._catalog: Optional[QuestCatalog] = None

    def load(self, force_refresh: bool = False) -> QuestCatalog:
        """
        Return the quest catalog, fetching it if the cache is stale.

        Args:
            force_refresh: Ignore a fresh cache and fetch anyway

        Returns:
            QuestCatalog (possibly empty)

        Raises:
            StorageError: If the cache cannot be read or written
        """
        if self._catalog is not None and not force_refresh:
            return self._catalog

        self.warnings = []
        cached = self._read_cache()
        now = self.clock()

        if cached is not None and not force_refresh and now - cached[0] < self.ttl_seconds:
            logger.debug("Using cached quest catalog (age %.0fs)", now - cached[0])
            self._catalog = self._build(cached[1])
            return self._catalog

        try:
            items = self._fetch()
        except QuestCatalogError as e:
            if cached is not None:
                self._warn(f"{e}; using cached quest catalog")
                self._catalog = self._build(cached[1])
            else:
                self._warn(f"{e}; no cached quest catalog, starting empty")
                self._catalog = QuestCatalog()
            return self._catalog

        self._write_cache(now, items)
        self._catalog = self._build(items)
        logger.info("Fetched %d quests from %s", len(self._catalog), self.url)
        return self._catalog

    def _warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)

    def _fetch(self) -> List[Any]:
        """
        Download the catalog JSON.

        Raises:
            QuestCatalogError: On network, HTTP or decoding failure
        """
        try:
            response = self.session.get(self.url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise QuestCatalogError(f"Error fetching quest data: {e}") from e
        except ValueError as e:
            raise QuestCatalogError(f"Quest data is not valid JSON: {e}") from e

        if isinstance(data, dict) and isinstance(data.get('quests'), list):
            data = data['quests']
        if not isinstance(data, list):
            raise QuestCatalogError("Quest data must be a JSON array of quests")
        return data

    def _read_cache(self) -> Optional[Tuple[float, List[Any]]]:
        raw = self.storage.get(self.cache_key)
        if raw is None:
            return None
        try:
            data = json.loads(raw)
            fetched_at = float(data['fetchedAt'])
            quests = data['quests']
        except (ValueError, KeyError, TypeError) as e:
            self._warn(f"Ignoring unreadable quest cache: {e}")
            return None
        if not isinstance(quests, list):
            self._warn("Ignoring quest cache without a quest list")
            return None
        return fetched_at, quests

    def _write_cache(self, fetched_at: float, items: List[Any]) -> None:
        self.storage.set(
            self.cache_key,
            json.dumps({'fetchedAt': fetched_at, 'quests': items}),
        )

    def _build(self, items: List[Any]) -> QuestCatalog:
        """Parse quest items, skipping malformed or duplicate ones."""
        quests: List[QuestRecord] = []
        seen = set()

        for index, item in enumerate(items):
            try:
                quest = QuestRecord.from_dict(item)
            except (KeyError, TypeError, ValueError, ProgressionValidationError) as e:
                self._warn(f"Skipping malformed quest at position {index}: {e}")
                continue
            if quest.id in seen:
                self._warn(f"Skipping duplicate quest id {quest.id}")
                continue
            seen.add(quest.id)
            quests.append(quest)

        return QuestCatalog(quests)
