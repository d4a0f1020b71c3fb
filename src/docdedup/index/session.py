"""Scan session owning the metadata cache and its persistence."""

from __future__ import annotations

import logging
from pathlib import Path
from types import TracebackType

from docdedup.index.registry import MetadataCache
from docdedup.index.storage import SQLiteRegistryStore

LOGGER = logging.getLogger(__name__)


class ScanSession:
    """Explicit lifecycle around a MetadataCache.

    ``load`` replaces the in-memory cache with the persisted snapshot,
    ``flush`` writes it back and ``clear`` empties both. Without a
    ``db_path`` the session is memory-only.
    """

    def __init__(self, db_path: Path | None = None) -> None:
        self.db_path = Path(db_path) if db_path is not None else None
        self.cache = MetadataCache()
        self._store: SQLiteRegistryStore | None = None
        if self.db_path is not None:
            self._store = SQLiteRegistryStore(self.db_path)

    def load(self) -> int:
        if self._store is None:
            return self.cache.size()
        self.cache = MetadataCache(self._store.load())
        LOGGER.debug("Loaded %d cache records from %s", self.cache.size(), self.db_path)
        return self.cache.size()

    def flush(self) -> int:
        if self._store is None:
            return 0
        written = self._store.save(self.cache.snapshot())
        LOGGER.debug("Flushed %d cache records to %s", written, self.db_path)
        return written

    def clear(self) -> None:
        self.cache.clear()
        if self._store is not None:
            self._store.clear()

    def size(self) -> int:
        return self.cache.size()

    def close(self) -> None:
        if self._store is not None:
            self._store.close()
            self._store = None

    def __enter__(self) -> "ScanSession":
        self.load()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        try:
            if exc_type is None:
                self.flush()
        finally:
            self.close()
