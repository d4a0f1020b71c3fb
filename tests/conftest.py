"""Shared fixtures for DocDedup tests."""

from __future__ import annotations

from collections import Counter
from typing import Dict, List, Set

import pytest

from docdedup.config import AppConfig
from docdedup.models import DocumentRef


class MemoryStore:
    """Document store backed by a dict, counting every read."""

    def __init__(self, files: Dict[str, str | bytes] | None = None, mtime: int = 1_000) -> None:
        self.files: Dict[str, bytes] = {}
        self.mtimes: Dict[str, int] = {}
        self.byte_reads: Counter[str] = Counter()
        self.text_reads: Counter[str] = Counter()
        self.broken_bytes: Set[str] = set()
        self.broken_text: Set[str] = set()
        self.fail_listing = False
        self.trashed: List[str] = []
        self.annotated: List[str] = []
        for path, content in (files or {}).items():
            self.put(path, content, mtime)

    def put(self, path: str, content: str | bytes, mtime: int = 1_000) -> None:
        self.files[path] = content.encode("utf-8") if isinstance(content, str) else content
        self.mtimes[path] = mtime

    def list_documents(self) -> List[DocumentRef]:
        if self.fail_listing:
            raise OSError("store unavailable")
        return [
            DocumentRef(path=path, size=len(data), mtime=self.mtimes[path])
            for path, data in sorted(self.files.items())
        ]

    def read_bytes(self, path: str) -> bytes:
        self.byte_reads[path] += 1
        if path in self.broken_bytes:
            raise OSError(f"cannot read {path}")
        return self.files[path]

    def read_text(self, path: str) -> str:
        self.text_reads[path] += 1
        if path in self.broken_text:
            raise UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")
        return self.files[path].decode("utf-8")

    def trash(self, path: str) -> None:
        self.trashed.append(path)
        del self.files[path]

    def annotate(self, path: str, tag: str = "#duplicate") -> bool:
        self.annotated.append(path)
        return True


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def fast_config(tmp_path) -> AppConfig:
    """Config without pauses between batches."""
    return AppConfig(db_path=tmp_path / "cache.db", batch_pause=0, batch_size=2)
