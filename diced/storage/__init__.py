"""Persistence: key-value backends and the profile store."""

from .key_value import KeyValueStorage, InMemoryStorage, JsonFileStorage, PostgresStorage
from .profile_store import ProfileStore

__all__ = [
    'KeyValueStorage',
    'InMemoryStorage',
    'JsonFileStorage',
    'PostgresStorage',
    'ProfileStore',
]
