"""Application configuration defaults."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Literal

from docdedup.embedding.llm import DEFAULT_LLM_MODEL, Provider
from docdedup.models import MatchType
from docdedup.similarity.candidates import DEFAULT_MAX_COMPARISONS, DEFAULT_MAX_DOCUMENTS

CleanupAction = Literal["tag", "trash", "none"]
VectorBackend = Literal["llm", "local"]


def _get_default_db_path() -> Path:
    """Get the default cache database path based on execution context."""
    user_db = Path.home() / "Documents" / "DocDedup" / "docdedup.db"

    if getattr(sys, "frozen", False):
        return user_db

    # When running from source, prefer local data/ if it exists
    local_db = Path("data/docdedup.db")
    if local_db.exists():
        return local_db

    return user_db


@dataclass(slots=True)
class AppConfig:
    db_path: Path | None = None
    mode: MatchType = "exact"
    similarity_threshold: float = 80
    ignore_paths: List[str] = field(default_factory=list)
    size_cap_mb: float = 5
    max_documents: int = DEFAULT_MAX_DOCUMENTS
    max_comparisons: int = DEFAULT_MAX_COMPARISONS
    batch_size: int = 20
    batch_pause: float = 0.01
    yield_every: int = 50
    action: CleanupAction = "tag"
    confirm_before_delete: bool = True
    enable_llm: bool = False
    llm_provider: Provider = "openai"
    api_key: str | None = None
    endpoint: str | None = None
    llm_model: str = DEFAULT_LLM_MODEL
    temperature: float = 0.7
    vector_backend: VectorBackend = "llm"
    embedding_limit: int = 20
    embedding_dimensions: int = 10

    def __post_init__(self) -> None:
        if self.db_path is None:
            self.db_path = _get_default_db_path()

    @property
    def size_cap_bytes(self) -> int:
        return int(self.size_cap_mb * 1024 * 1024)

    def resolve_db_path(self, base_dir: Path | None = None) -> Path:
        if self.db_path is None:
            self.db_path = _get_default_db_path()
        if Path(self.db_path).is_absolute() or base_dir is None:
            return Path(self.db_path)
        return base_dir / self.db_path
