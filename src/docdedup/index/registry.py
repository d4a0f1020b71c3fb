"""In-memory metadata cache keyed by document path."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping

from docdedup.models import FileRecord

LOGGER = logging.getLogger(__name__)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_valid_record(record: Any) -> bool:
    if not isinstance(record, FileRecord):
        return False
    if not _is_int(record.size) or record.size < 0:
        return False
    if not _is_int(record.mtime):
        return False
    if not isinstance(record.content_hash, str) or not record.content_hash:
        return False
    if record.normalized_hash is not None and (
        not isinstance(record.normalized_hash, str) or not record.normalized_hash
    ):
        return False
    return True


def record_from_mapping(path: str, entry: Mapping[str, Any]) -> FileRecord | None:
    """Build a FileRecord from a persisted mapping, or None if malformed."""
    try:
        record = FileRecord(
            path=path,
            mtime=entry["mtime"],
            size=entry["size"],
            content_hash=entry["content_hash"],
            normalized_hash=entry.get("normalized_hash"),
        )
    except (KeyError, TypeError, AttributeError):
        return None
    return record if _is_valid_record(record) else None


class MetadataCache:
    """Path to FileRecord mapping that never holds malformed entries.

    Invalid writes are ignored and reported through the return value of
    ``set``; a degraded cache only costs re-reads.
    """

    def __init__(self, snapshot: Mapping[str, Any] | None = None) -> None:
        self._records: Dict[str, FileRecord] = {}
        if snapshot:
            self._load_snapshot(snapshot)

    def _load_snapshot(self, snapshot: Mapping[str, Any]) -> None:
        dropped = 0
        for path, entry in snapshot.items():
            if not isinstance(path, str) or not path:
                dropped += 1
                continue
            if isinstance(entry, FileRecord):
                record = FileRecord(
                    path=path,
                    mtime=entry.mtime,
                    size=entry.size,
                    content_hash=entry.content_hash,
                    normalized_hash=entry.normalized_hash,
                )
                record = record if _is_valid_record(record) else None
            elif isinstance(entry, Mapping):
                record = record_from_mapping(path, entry)
            else:
                record = None

            if record is None:
                LOGGER.warning("Dropping invalid cache entry for %s", path)
                dropped += 1
                continue
            self._records[path] = record

        if dropped:
            LOGGER.info("Dropped %d invalid cache entries", dropped)

    def get(self, path: str) -> FileRecord | None:
        return self._records.get(path)

    def set(self, path: str, record: FileRecord) -> bool:
        """Store a record under path; returns False if the record was rejected."""
        if not isinstance(path, str) or not path:
            LOGGER.warning("Rejected cache write with invalid path %r", path)
            return False
        if not _is_valid_record(record):
            LOGGER.warning("Rejected invalid cache record for %s", path)
            return False
        self._records[path] = FileRecord(
            path=path,
            mtime=record.mtime,
            size=record.size,
            content_hash=record.content_hash,
            normalized_hash=record.normalized_hash,
        )
        return True

    def remove(self, path: str) -> None:
        self._records.pop(path, None)

    def clear(self) -> None:
        self._records.clear()

    def size(self) -> int:
        return len(self._records)

    def snapshot(self) -> Dict[str, Dict[str, Any]]:
        return {path: record.to_dict() for path, record in self._records.items()}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, path: object) -> bool:
        return path in self._records
