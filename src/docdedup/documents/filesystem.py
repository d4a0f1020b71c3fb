"""Directory-backed document store."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import List, Sequence

from docdedup.documents.base import DUPLICATE_TAG
from docdedup.models import DocumentRef
from docdedup.utils.files import DEFAULT_EXTENSIONS, iter_text_paths

LOGGER = logging.getLogger(__name__)

TRASH_DIR = ".trash"


class FilesystemStore:
    """Serve text documents found under a root directory.

    Paths are POSIX paths relative to the root, modification times are
    integer milliseconds. Trashed files move into ``<root>/.trash`` keeping
    their relative layout.
    """

    def __init__(self, root: Path, *, extensions: Sequence[str] = DEFAULT_EXTENSIONS) -> None:
        self.root = Path(root)
        self.extensions = tuple(extensions)

    def _resolve(self, path: str) -> Path:
        return self.root / path

    def list_documents(self) -> List[DocumentRef]:
        if not self.root.is_dir():
            raise FileNotFoundError(f"Document root not found: {self.root}")

        documents: List[DocumentRef] = []
        for file_path in iter_text_paths(self.root, extensions=self.extensions):
            stat = file_path.stat()
            documents.append(
                DocumentRef(
                    path=file_path.relative_to(self.root).as_posix(),
                    size=stat.st_size,
                    mtime=stat.st_mtime_ns // 1_000_000,
                )
            )
        return documents

    def read_bytes(self, path: str) -> bytes:
        return self._resolve(path).read_bytes()

    def read_text(self, path: str) -> str:
        return self._resolve(path).read_text(encoding="utf-8")

    def trash(self, path: str) -> None:
        source = self._resolve(path)
        target = self.root / TRASH_DIR / path
        target.parent.mkdir(parents=True, exist_ok=True)
        if target.exists():
            target = target.with_name(f"{target.stem}.{source.stat().st_mtime_ns}{target.suffix}")
        shutil.move(str(source), str(target))
        LOGGER.info("Moved %s to %s", path, target)

    def annotate(self, path: str, tag: str = DUPLICATE_TAG) -> bool:
        """Prepend a tag line to the document; returns False if already tagged."""
        content = self.read_text(path)
        if tag in content:
            return False
        self._resolve(path).write_text(f"{tag}\n\n{content}", encoding="utf-8")
        return True
