"""
Service wiring.

Builds the storage backend, profile store, quest catalog loader and quest
completion transaction from Settings. Nothing here is global: callers own
the returned Services and pass them where needed.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from diced.config import Settings
from diced.progression.engine import ProgressionEngine
from diced.quests.catalog import QuestCatalog
from diced.quests.completion import QuestCompletionTransaction
from diced.quests.loader import QuestCatalogLoader
from diced.storage.key_value import JsonFileStorage, KeyValueStorage, PostgresStorage
from diced.storage.profile_store import ProfileStore


logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything one running instance needs, built once."""
    storage: KeyValueStorage
    engine: ProgressionEngine
    profile_store: ProfileStore
    catalog_loader: QuestCatalogLoader

    @property
    def catalog(self) -> QuestCatalog:
        """The quest catalog, loaded (and cached) on first access."""
        return self.catalog_loader.load()

    @property
    def transaction(self) -> QuestCompletionTransaction:
        return QuestCompletionTransaction(self.profile_store, self.catalog, self.engine)

    def close(self) -> None:
        self.storage.close()


def build_storage(settings: Settings) -> KeyValueStorage:
    """PostgreSQL when DATABASE_URL is configured, otherwise the local JSON file."""
    if settings.database_url:
        logger.info("Using PostgreSQL storage")
        storage = PostgresStorage(settings.database_url)
        storage.init_schema()
        return storage

    logger.info("Using file storage at %s", settings.storage_path)
    return JsonFileStorage(settings.storage_path)


def create_services(
    settings: Optional[Settings] = None,
    storage: Optional[KeyValueStorage] = None,
    engine: Optional[ProgressionEngine] = None,
    session=None,
) -> Services:
    """
    Build the service graph.

    Args:
        settings: Settings (defaults to Settings.from_env())
        storage: Storage backend override (e.g. InMemoryStorage in tests)
        engine: Progression engine override
        session: requests-compatible session for the catalog fetch
    """
    settings = settings or Settings.from_env()
    storage = storage or build_storage(settings)
    engine = engine or ProgressionEngine()

    return Services(
        storage=storage,
        engine=engine,
        profile_store=ProfileStore(storage, engine),
        catalog_loader=QuestCatalogLoader(
            storage,
            url=settings.quest_data_url,
            ttl_seconds=settings.cache_ttl_seconds,
            timeout=settings.fetch_timeout,
            session=session,
        ),
    )
