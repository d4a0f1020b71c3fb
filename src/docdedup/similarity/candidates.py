"""Bounded candidate pair selection for near-duplicate comparison.

Comparing every pair is quadratic. Small corpora are compared exhaustively;
above ``max_comparisons`` pairs each document gets a fixed budget of partners,
chosen by closeness in byte size since near-duplicates rarely differ much in
length. This trades recall for bounded cost.
"""

from __future__ import annotations

import logging
from typing import List, Sequence, Set, Tuple

from docdedup.models import DocumentRef

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_DOCUMENTS = 500
DEFAULT_MAX_COMPARISONS = 10_000

Pair = Tuple[DocumentRef, DocumentRef]


def _pair_key(a: DocumentRef, b: DocumentRef) -> Tuple[str, str]:
    return (a.path, b.path) if a.path <= b.path else (b.path, a.path)


def truncate_corpus(
    documents: Sequence[DocumentRef], max_documents: int = DEFAULT_MAX_DOCUMENTS
) -> Tuple[List[DocumentRef], bool]:
    """Keep at most max_documents, preferring the largest ones.

    Returns the kept documents and whether anything was dropped.
    """
    if len(documents) <= max_documents:
        return list(documents), False
    ranked = sorted(documents, key=lambda doc: (-doc.size, doc.path))
    LOGGER.warning(
        "Near-duplicate scan limited to the %d largest of %d documents",
        max_documents,
        len(documents),
    )
    return ranked[:max_documents], True


def generate_candidate_pairs(
    documents: Sequence[DocumentRef], max_comparisons: int = DEFAULT_MAX_COMPARISONS
) -> List[Pair]:
    count = len(documents)
    total_pairs = count * (count - 1) // 2
    if total_pairs <= max_comparisons:
        return [
            (documents[i], documents[j])
            for i in range(count)
            for j in range(i + 1, count)
        ]

    per_document = max(1, max_comparisons // count)
    LOGGER.info(
        "Sampling %d of %d possible pairs (%d partners per document)",
        max_comparisons,
        total_pairs,
        per_document,
    )

    ordered = sorted(documents, key=lambda doc: (-doc.size, doc.path))
    seen: Set[Tuple[str, str]] = set()
    pairs: List[Pair] = []
    for doc in ordered:
        if len(pairs) >= max_comparisons:
            break
        partners = sorted(
            (
                other
                for other in ordered
                if other.path != doc.path and _pair_key(doc, other) not in seen
            ),
            key=lambda other: (abs(other.size - doc.size), other.path),
        )
        for other in partners[:per_document]:
            if len(pairs) >= max_comparisons:
                break
            seen.add(_pair_key(doc, other))
            pairs.append((doc, other))
    return pairs
