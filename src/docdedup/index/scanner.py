"""Duplicate scanning pipeline."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Dict, Iterator, List, Sequence, TypeVar

from docdedup.config import AppConfig
from docdedup.documents.base import DocumentStore
from docdedup.embedding.semantic import Outcome, SemanticAugmenter
from docdedup.index.session import ScanSession
from docdedup.models import (
    DocumentRef,
    DuplicateGroup,
    FileRecord,
    ScannerStats,
    ScanStats,
    SimilarityEdge,
)
from docdedup.similarity.candidates import generate_candidate_pairs, truncate_corpus
from docdedup.similarity.cluster import build_clusters
from docdedup.similarity.scorer import PairMemo, SimilarityScorer
from docdedup.utils.files import clean_prefixes, sha256_bytes, sha256_text, should_ignore
from docdedup.utils.text import normalize_text

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")
VectorSource = Callable[[str], Outcome[List[float]]]


class ScanError(RuntimeError):
    """Raised when the document store cannot be enumerated."""


def _batched(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    step = max(size, 1)
    for start in range(0, len(items), step):
        yield items[start : start + step]


class DuplicateScanner:
    """Find duplicate groups in a document store.

    Exact and canonical modes hash every document, reusing cached hashes
    whose size and mtime still match. Near mode reads the documents, scores
    a bounded set of candidate pairs and clusters the matches.
    """

    def __init__(
        self,
        store: DocumentStore,
        session: ScanSession,
        config: AppConfig | None = None,
        *,
        augmenter: SemanticAugmenter | None = None,
        vector_source: VectorSource | None = None,
    ) -> None:
        self.store = store
        self.session = session
        self.config = config or AppConfig()
        self.augmenter = augmenter
        if vector_source is None and augmenter is not None:
            vector_source = augmenter.embed
        self.vector_source = vector_source
        self.memo = PairMemo()
        self.last_stats = ScanStats()

    async def scan(self) -> List[DuplicateGroup]:
        stats = ScanStats()
        try:
            documents = await asyncio.to_thread(self.store.list_documents)
        except Exception as exc:
            LOGGER.error("Failed to enumerate documents: %s", exc)
            raise ScanError(f"Failed to scan for duplicates: {exc}") from exc

        stats.total_documents = len(documents)
        prefixes = clean_prefixes(self.config.ignore_paths)
        size_cap = self.config.size_cap_bytes
        candidates = [doc for doc in documents if not should_ignore(doc, prefixes, size_cap)]
        stats.ignored = len(documents) - len(candidates)
        LOGGER.info(
            "Scanning %d documents in %s mode (%d ignored)",
            len(candidates),
            self.config.mode,
            stats.ignored,
        )

        if self.config.mode == "near":
            groups = await self._scan_near(candidates, stats)
        else:
            groups = await self._scan_hashes(candidates, stats)

        stats.groups = len(groups)
        self.last_stats = stats
        LOGGER.info(
            "Found %d %s duplicate groups (%d failed, %d cache hits)",
            len(groups),
            self.config.mode,
            stats.failed,
            stats.cache_hits,
        )
        return groups

    async def _pause(self) -> None:
        await asyncio.sleep(self.config.batch_pause)

    async def _scan_hashes(
        self, documents: Sequence[DocumentRef], stats: ScanStats
    ) -> List[DuplicateGroup]:
        canonical = self.config.mode == "canonical"
        buckets: Dict[str, List[DocumentRef]] = {}

        for batch in _batched(documents, self.config.batch_size):
            keys = await asyncio.gather(
                *(self._document_key(doc, canonical, stats) for doc in batch)
            )
            for doc, key in zip(batch, keys):
                if key is not None:
                    buckets.setdefault(key, []).append(doc)
            await self._pause()

        stats.scanned = sum(len(members) for members in buckets.values())
        return [
            DuplicateGroup(
                group_key=key,
                members=sorted(members, key=lambda doc: doc.path),
                match_type="canonical" if canonical else "exact",
            )
            for key, members in buckets.items()
            if len(members) > 1
        ]

    async def _document_key(
        self, document: DocumentRef, canonical: bool, stats: ScanStats
    ) -> str | None:
        try:
            return await self._compute_key(document, canonical, stats)
        except Exception as exc:
            LOGGER.error("Failed to process %s: %s", document.path, exc)
            stats.record_failure(document.path)
            return None

    async def _compute_key(
        self, document: DocumentRef, canonical: bool, stats: ScanStats
    ) -> str:
        cached = self.session.cache.get(document.path)
        if cached is not None and not cached.matches(document):
            cached = None

        if cached is not None and (not canonical or cached.normalized_hash is not None):
            stats.cache_hits += 1
            return cached.normalized_hash if canonical else cached.content_hash

        if cached is not None:
            content_hash = cached.content_hash
        else:
            data = await asyncio.to_thread(self.store.read_bytes, document.path)
            content_hash = sha256_bytes(data)

        normalized_hash: str | None = None
        if canonical:
            try:
                text = await asyncio.to_thread(self.store.read_text, document.path)
            except Exception as exc:
                LOGGER.warning(
                    "Using content hash as canonical key for %s: %s", document.path, exc
                )
            else:
                normalized_hash = sha256_text(normalize_text(text))

        self.session.cache.set(
            document.path,
            FileRecord(
                path=document.path,
                mtime=document.mtime,
                size=document.size,
                content_hash=content_hash,
                normalized_hash=normalized_hash,
            ),
        )
        if canonical and normalized_hash is not None:
            return normalized_hash
        return content_hash

    async def _read_text(self, document: DocumentRef, stats: ScanStats) -> str | None:
        try:
            return await asyncio.to_thread(self.store.read_text, document.path)
        except Exception as exc:
            LOGGER.error("Failed to read %s: %s", document.path, exc)
            stats.record_failure(document.path)
            return None

    async def _scan_near(
        self, documents: Sequence[DocumentRef], stats: ScanStats
    ) -> List[DuplicateGroup]:
        self.memo.clear()
        selected, stats.truncated = truncate_corpus(documents, self.config.max_documents)

        texts: Dict[str, str] = {}
        for batch in _batched(selected, self.config.batch_size):
            contents = await asyncio.gather(*(self._read_text(doc, stats) for doc in batch))
            for doc, text in zip(batch, contents):
                if text is not None:
                    texts[doc.path] = text
            await self._pause()

        readable = [doc for doc in selected if doc.path in texts]
        stats.scanned = len(readable)

        threshold = self.config.similarity_threshold
        scorer = SimilarityScorer(threshold=threshold, augmenter=self.augmenter, memo=self.memo)
        if self.vector_source is not None:
            await self._attach_vectors(self.vector_source, scorer, readable, texts)

        pairs = generate_candidate_pairs(readable, self.config.max_comparisons)
        LOGGER.info("Comparing %d candidate pairs", len(pairs))

        edges: List[SimilarityEdge] = []
        for count, (doc_a, doc_b) in enumerate(pairs, start=1):
            args = (doc_a.path, texts[doc_a.path], doc_b.path, texts[doc_b.path])
            if self.augmenter is not None:
                result = await asyncio.to_thread(scorer.score, *args)
            else:
                result = scorer.score(*args)
            stats.comparisons += 1
            if result.score >= threshold:
                edges.append(SimilarityEdge(doc_a.path, doc_b.path, result.score, result.method))
                LOGGER.debug(
                    "Matched %s and %s (%.1f via %s)",
                    doc_a.path,
                    doc_b.path,
                    result.score,
                    result.method,
                )
            if count % max(self.config.yield_every, 1) == 0:
                await asyncio.sleep(0)

        return build_clusters(edges, readable)

    async def _attach_vectors(
        self,
        source: VectorSource,
        scorer: SimilarityScorer,
        documents: Sequence[DocumentRef],
        texts: Dict[str, str],
    ) -> None:
        for doc in documents[: self.config.embedding_limit]:
            outcome = await asyncio.to_thread(source, texts[doc.path])
            # Two neutral fallback vectors would look identical.
            if not outcome.ok or outcome.fallback:
                LOGGER.warning(
                    "No semantic vector for %s: %s", doc.path, outcome.error or "unparseable reply"
                )
                continue
            scorer.set_vector(doc.path, outcome.value)

    def get_stats(self) -> ScannerStats:
        try:
            total = len(self.store.list_documents())
        except Exception as exc:
            LOGGER.warning("Could not count documents: %s", exc)
            total = self.last_stats.total_documents
        return ScannerStats(
            cache_size=self.session.size(),
            total_documents=total,
            memo_size=len(self.memo),
        )

    def clear_pair_memo(self) -> None:
        self.memo.clear()
