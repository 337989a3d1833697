"""Persistence of per-entity address hashes."""

from app.adapters.hash_store.base import AbstractHashStore
from app.adapters.hash_store.json_file import InMemoryHashStore, JsonFileHashStore

__all__ = [
    "AbstractHashStore",
    "InMemoryHashStore",
    "JsonFileHashStore",
]
