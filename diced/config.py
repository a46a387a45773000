"""
Runtime settings read from environment variables.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from diced.utils.constants import (
    DEFAULT_QUEST_DATA_URL,
    DEFAULT_STORAGE_PATH,
    QUEST_CACHE_TTL_SECONDS,
    QUEST_FETCH_TIMEOUT_SECONDS,
)


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _float_env(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value == '':
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got '{value}'")


@dataclass
class Settings:
    """
    Application settings.

    Attributes:
        storage_path: JSON file used for local storage
        database_url: PostgreSQL connection string; used instead of the file when set
        quest_data_url: Remote quest catalog JSON
        cache_ttl_seconds: How long a fetched catalog stays fresh
        fetch_timeout: Timeout for the catalog request, in seconds
        log_level: Root logging level name
    """
    storage_path: str = DEFAULT_STORAGE_PATH
    database_url: Optional[str] = None
    quest_data_url: str = DEFAULT_QUEST_DATA_URL
    cache_ttl_seconds: float = QUEST_CACHE_TTL_SECONDS
    fetch_timeout: float = QUEST_FETCH_TIMEOUT_SECONDS
    log_level: str = "INFO"

    def __post_init__(self):
        if self.cache_ttl_seconds < 0:
            raise ValueError(f"cache_ttl_seconds must be >= 0, got {self.cache_ttl_seconds}")
        if self.fetch_timeout <= 0:
            raise ValueError(f"fetch_timeout must be > 0, got {self.fetch_timeout}")
        self.storage_path = os.path.expanduser(self.storage_path)
        self.log_level = self.log_level.upper()

    @classmethod
    def from_env(cls) -> 'Settings':
        """Build settings from DICED_* variables and DATABASE_URL."""
        return cls(
            storage_path=os.getenv('DICED_STORAGE_PATH') or DEFAULT_STORAGE_PATH,
            database_url=os.getenv('DATABASE_URL') or None,
            quest_data_url=os.getenv('DICED_QUEST_DATA_URL') or DEFAULT_QUEST_DATA_URL,
            cache_ttl_seconds=_float_env('DICED_CACHE_TTL_SECONDS', QUEST_CACHE_TTL_SECONDS),
            fetch_timeout=_float_env('DICED_FETCH_TIMEOUT', QUEST_FETCH_TIMEOUT_SECONDS),
            log_level=os.getenv('DICED_LOG_LEVEL') or "INFO",
        )


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once for scripts and the API server."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
