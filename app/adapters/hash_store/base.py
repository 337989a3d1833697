from __future__ import annotations

from abc import ABC, abstractmethod

AddressHashes = dict[str, str]


def merge_namespace(current: AddressHashes, hashes: AddressHashes, prefix: str) -> AddressHashes:
    """Replace the ``prefix`` entries of ``current`` with those of ``hashes``."""
    merged = {key: value for key, value in current.items() if not key.startswith(prefix)}
    merged.update((key, value) for key, value in hashes.items() if key.startswith(prefix))
    return merged


class AbstractHashStore(ABC):
    """Durable ``entity_id -> address hash`` mapping.

    Loaded once at the start of a sync run and saved once at its end, so a
    file, an embedded database or a remote key-value store can back it.
    Several sync targets share one store; each owns the ids under its key
    prefix.
    """

    @abstractmethod
    async def load(self) -> AddressHashes:
        """Return the stored mapping; an absent store yields an empty dict."""
        ...

    @abstractmethod
    async def save(self, hashes: AddressHashes, prefix: str = "") -> None:
        """Replace the stored entries whose ids start with ``prefix``.

        Entries outside ``prefix`` are left as they are in the store, not as
        they were when the caller loaded it. An empty prefix replaces the
        whole mapping.
        """
        ...
