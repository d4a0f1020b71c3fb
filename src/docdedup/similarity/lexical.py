"""Lexical similarity measures on a 0-100 scale."""

from __future__ import annotations

import math
from collections import Counter
from typing import Sequence, Tuple

from rapidfuzz.distance import Levenshtein

from docdedup.utils.text import tokenize


def jaccard_similarity(tokens_a: Sequence[str], tokens_b: Sequence[str]) -> float:
    set_a, set_b = set(tokens_a), set(tokens_b)
    union = set_a | set_b
    if not union:
        return 0.0
    return len(set_a & set_b) / len(union) * 100


def cosine_similarity(tokens_a: Sequence[str], tokens_b: Sequence[str]) -> float:
    """Cosine of term-frequency vectors built from the two token streams."""
    freq_a, freq_b = Counter(tokens_a), Counter(tokens_b)
    dot = sum(count * freq_b[token] for token, count in freq_a.items() if token in freq_b)
    norm = math.sqrt(sum(c * c for c in freq_a.values())) * math.sqrt(
        sum(c * c for c in freq_b.values())
    )
    if norm == 0:
        return 0.0
    return min(100.0, dot / norm * 100)


def edit_similarity(text_a: str, text_b: str) -> float:
    """Normalized Levenshtein similarity on raw text."""
    if text_a == text_b:
        return 100.0
    longest = max(len(text_a), len(text_b))
    if len(text_a) == 0 or len(text_b) == 0:
        return 0.0
    distance = Levenshtein.distance(text_a, text_b)
    return max(0.0, (1 - distance / longest) * 100)


def lexical_ensemble(text_a: str, text_b: str) -> Tuple[float, str]:
    """Best of Jaccard, cosine and edit similarity with the winning method name.

    Ties resolve in that order.
    """
    tokens_a, tokens_b = tokenize(text_a), tokenize(text_b)
    candidates = (
        (jaccard_similarity(tokens_a, tokens_b), "lexical-jaccard"),
        (cosine_similarity(tokens_a, tokens_b), "lexical-cosine"),
        (edit_similarity(text_a, text_b), "lexical-edit"),
    )
    best_score, best_method = candidates[0]
    for score, method in candidates[1:]:
        if score > best_score:
            best_score, best_method = score, method
    return best_score, best_method
