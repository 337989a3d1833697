"""JSON-file and in-memory address hash stores."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path

from app.adapters.hash_store.base import AbstractHashStore, AddressHashes, merge_namespace

logger = logging.getLogger(__name__)


class JsonFileHashStore(AbstractHashStore):
    """Hash map persisted as one JSON object.

    Writes go to a temporary file in the same directory and are moved into
    place with ``os.replace``, so readers never observe a half-written file.
    Saves re-read the file under a lock so concurrent targets keep each
    other's entries.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = asyncio.Lock()

    def _read(self) -> AddressHashes:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}

        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("hash_store.unreadable", extra={"path": str(self.path)})
            return {}

        if not isinstance(data, dict):
            logger.warning(
                "hash_store.unexpected_shape",
                extra={"path": str(self.path), "type": type(data).__name__},
            )
            return {}
        return {str(key): str(value) for key, value in data.items()}

    def _write(self, hashes: AddressHashes) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent,
            prefix=f".{self.path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(hashes, handle, ensure_ascii=False, indent=2, sort_keys=True)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    async def load(self) -> AddressHashes:
        hashes = await asyncio.to_thread(self._read)
        logger.debug("hash_store.loaded", extra={"path": str(self.path), "entries": len(hashes)})
        return hashes

    def _merge_and_write(self, hashes: AddressHashes, prefix: str) -> AddressHashes:
        current = self._read() if prefix else {}
        merged = merge_namespace(current, hashes, prefix)
        self._write(merged)
        return merged

    async def save(self, hashes: AddressHashes, prefix: str = "") -> None:
        async with self._lock:
            merged = await asyncio.to_thread(self._merge_and_write, dict(hashes), prefix)
        logger.info(
            "hash_store.saved",
            extra={"path": str(self.path), "prefix": prefix, "entries": len(merged)},
        )


class InMemoryHashStore(AbstractHashStore):
    """Process-local store, for tests and deployments without a writable disk."""

    def __init__(self, initial: AddressHashes | None = None) -> None:
        self._hashes: AddressHashes = dict(initial or {})
        self.save_count = 0

    async def load(self) -> AddressHashes:
        return dict(self._hashes)

    async def save(self, hashes: AddressHashes, prefix: str = "") -> None:
        self._hashes = merge_namespace(self._hashes, hashes, prefix)
        self.save_count += 1
