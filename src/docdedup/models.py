"""Core DocDedup data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal

MatchType = Literal["exact", "canonical", "near"]
ScoreMethod = Literal[
    "lexical-jaccard",
    "lexical-cosine",
    "lexical-edit",
    "semantic-score",
    "semantic-vector",
    "size-filtered",
    "cached",
]


@dataclass(slots=True, frozen=True)
class DocumentRef:
    """Handle to a document owned by a document store."""

    path: str
    size: int
    mtime: int


@dataclass(slots=True)
class FileRecord:
    """Cached hashes for a document, valid while size and mtime are unchanged."""

    path: str
    mtime: int
    size: int
    content_hash: str
    normalized_hash: str | None = None

    def matches(self, document: DocumentRef) -> bool:
        return self.size == document.size and self.mtime == document.mtime

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "size": self.size,
            "mtime": self.mtime,
            "content_hash": self.content_hash,
        }
        if self.normalized_hash is not None:
            data["normalized_hash"] = self.normalized_hash
        return data


@dataclass(slots=True, frozen=True)
class SimilarityEdge:
    """A compared pair that met the similarity threshold."""

    path_a: str
    path_b: str
    score: float
    method: ScoreMethod


@dataclass(slots=True)
class DuplicateGroup:
    """Documents considered duplicates of each other."""

    group_key: str
    members: List[DocumentRef]
    match_type: MatchType
    similarity_score: float | None = None

    def __len__(self) -> int:
        return len(self.members)

    @property
    def paths(self) -> List[str]:
        return [member.path for member in self.members]


@dataclass(slots=True)
class ScanStats:
    total_documents: int = 0
    scanned: int = 0
    ignored: int = 0
    failed: int = 0
    cache_hits: int = 0
    comparisons: int = 0
    truncated: bool = False
    groups: int = 0
    failed_paths: List[str] = field(default_factory=list)

    def record_failure(self, path: str) -> None:
        self.failed += 1
        self.failed_paths.append(path)


@dataclass(slots=True)
class ScannerStats:
    """Snapshot exposed to the presentation layer."""

    cache_size: int
    total_documents: int
    memo_size: int
