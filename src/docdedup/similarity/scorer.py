"""Pairwise similarity scoring with a per-scan memo."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

import numpy as np

from docdedup.embedding.semantic import SemanticAugmenter
from docdedup.models import ScoreMethod
from docdedup.similarity.lexical import lexical_ensemble

LOGGER = logging.getLogger(__name__)

SIZE_RATIO_LIMIT = 0.5


@dataclass(slots=True, frozen=True)
class ScoreResult:
    score: float
    method: ScoreMethod


def pair_key(path_a: str, path_b: str) -> Tuple[str, str]:
    return (path_a, path_b) if path_a <= path_b else (path_b, path_a)


class PairMemo:
    """Scores keyed by the sorted path pair."""

    def __init__(self) -> None:
        self._scores: Dict[Tuple[str, str], ScoreResult] = {}

    def get(self, path_a: str, path_b: str) -> ScoreResult | None:
        return self._scores.get(pair_key(path_a, path_b))

    def put(self, path_a: str, path_b: str, result: ScoreResult) -> None:
        self._scores[pair_key(path_a, path_b)] = result

    def clear(self) -> None:
        self._scores.clear()

    def __len__(self) -> int:
        return len(self._scores)


def vector_similarity(vector_a: Sequence[float], vector_b: Sequence[float]) -> float:
    """Cosine similarity of two vectors scaled to 0-100, negatives clamped."""
    a = np.asarray(vector_a, dtype="float64")
    b = np.asarray(vector_b, dtype="float64")
    if a.shape != b.shape:
        raise ValueError("Vectors must have the same length")
    magnitude = float(np.linalg.norm(a) * np.linalg.norm(b))
    if magnitude == 0:
        return 0.0
    return min(100.0, max(0.0, float(a @ b) / magnitude * 100))


class SimilarityScorer:
    """Score document pairs, cheapest decisive check first.

    Order: memo, size-ratio filter, semantic judgment, semantic vectors,
    lexical ensemble. Semantic steps only short-circuit when they reach the
    threshold; any failure there falls through to the lexical ensemble.
    """

    def __init__(
        self,
        *,
        threshold: float = 80,
        augmenter: SemanticAugmenter | None = None,
        memo: PairMemo | None = None,
    ) -> None:
        self.threshold = threshold
        self.augmenter = augmenter
        self.memo = memo if memo is not None else PairMemo()
        self.vectors: Dict[str, List[float]] = {}

    def set_vector(self, path: str, vector: Sequence[float]) -> None:
        self.vectors[path] = list(vector)

    def score(self, path_a: str, text_a: str, path_b: str, text_b: str) -> ScoreResult:
        cached = self.memo.get(path_a, path_b)
        if cached is not None:
            return ScoreResult(cached.score, "cached")

        result = self._compute(path_a, text_a, path_b, text_b)
        self.memo.put(path_a, path_b, result)
        return result

    def _compute(self, path_a: str, text_a: str, path_b: str, text_b: str) -> ScoreResult:
        longest = max(len(text_a), len(text_b))
        if longest and abs(len(text_a) - len(text_b)) / longest > SIZE_RATIO_LIMIT:
            return ScoreResult(0.0, "size-filtered")

        if self.augmenter is not None or self.vectors:
            semantic = self._semantic(path_a, text_a, path_b, text_b)
            if semantic is not None:
                return semantic

        score, method = lexical_ensemble(text_a, text_b)
        return ScoreResult(score, method)

    def _semantic(
        self, path_a: str, text_a: str, path_b: str, text_b: str
    ) -> ScoreResult | None:
        if self.augmenter is not None:
            # Always ask in path order so the judgment is symmetric.
            first, second = (text_a, text_b) if path_a <= path_b else (text_b, text_a)
            judged = self.augmenter.judge_similarity(first, second)
            if judged.ok and judged.value >= self.threshold:
                return ScoreResult(judged.value, "semantic-score")
            if not judged.ok:
                LOGGER.debug("Semantic judgment unavailable for %s / %s", path_a, path_b)

        vector_a = self.vectors.get(path_a)
        vector_b = self.vectors.get(path_b)
        if vector_a is not None and vector_b is not None:
            try:
                similarity = vector_similarity(vector_a, vector_b)
            except ValueError as exc:
                LOGGER.warning("Skipping vector comparison for %s / %s: %s", path_a, path_b, exc)
            else:
                if similarity >= self.threshold:
                    return ScoreResult(similarity, "semantic-vector")
        return None
