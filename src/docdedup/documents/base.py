"""Capability interface the scanner needs from a document store."""

from __future__ import annotations

from typing import List, Protocol, runtime_checkable

from docdedup.models import DocumentRef

DUPLICATE_TAG = "#duplicate"


@runtime_checkable
class DocumentStore(Protocol):
    """Enumerate, read and modify documents by their store path."""

    def list_documents(self) -> List[DocumentRef]: ...

    def read_bytes(self, path: str) -> bytes: ...

    def read_text(self, path: str) -> str: ...

    def trash(self, path: str) -> None: ...

    def annotate(self, path: str, tag: str = DUPLICATE_TAG) -> bool: ...
