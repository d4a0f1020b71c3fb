"""Utility helpers for working with files."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Iterable, Iterator, Sequence

from docdedup.models import DocumentRef

DEFAULT_EXTENSIONS = (".md", ".markdown", ".txt")


def iter_text_paths(
    root: Path, *, extensions: Sequence[str] = DEFAULT_EXTENSIONS
) -> Iterator[Path]:
    """Yield text document paths under root, skipping hidden directories."""
    suffixes = {ext.lower() for ext in extensions}
    for item in sorted(root.iterdir()):
        if item.name.startswith("."):
            continue
        if item.is_dir():
            yield from iter_text_paths(item, extensions=extensions)
        elif item.is_file() and item.suffix.lower() in suffixes:
            yield item


def sha256_bytes(data: bytes) -> str:
    """Compute the SHA256 hex digest of raw content."""
    return hashlib.sha256(data).hexdigest()


def sha256_text(text: str) -> str:
    return sha256_bytes(text.encode("utf-8"))


def should_ignore(
    document: DocumentRef, ignore_prefixes: Iterable[str], size_cap_bytes: int
) -> bool:
    """Return True when a document matches an ignored prefix or exceeds the size cap."""
    if any(prefix and document.path.startswith(prefix) for prefix in ignore_prefixes):
        return True
    return document.size > size_cap_bytes


def clean_prefixes(prefixes: Iterable[str]) -> list[str]:
    """Drop blank ignore prefixes and strip surrounding whitespace."""
    return [prefix.strip() for prefix in prefixes if prefix.strip()]
