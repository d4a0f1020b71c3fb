"""LLM-backed semantic similarity judgments and coarse semantic vectors.

Nothing here raises on provider trouble. Each call returns an ``Outcome``
carrying either a usable value or the error plus a neutral default, and the
caller decides whether the default is acceptable.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Generic, List, Protocol, TypeVar

from docdedup.utils.text import truncate

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

NEUTRAL_SCORE = 50.0
MIDPOINT = 5.0

SIMILARITY_SYSTEM_PROMPT = """You are a text similarity analyzer. Your task is to compare two texts and determine their semantic similarity.

Instructions:
1. Analyze the semantic meaning and content of both texts
2. Ignore formatting differences (markdown, spacing, etc.)
3. Focus on conceptual similarity, not exact word matching
4. Return ONLY a number between 0 and 100, where:
   - 0 = completely different topics/meanings
   - 50 = somewhat related topics
   - 80 = very similar content with minor differences
   - 95+ = essentially the same content with different wording
   - 100 = identical meaning

Do not include any explanation, just return the numerical score."""

DIMENSIONS = (
    "Technical/Scientific content",
    "Personal/Emotional content",
    "Instructional/How-to content",
    "Narrative/Story content",
    "Analytical/Critical content",
    "Creative/Artistic content",
    "Business/Professional content",
    "Academic/Research content",
    "Casual/Conversational tone",
    "Formal/Official tone",
)

_NUMBER = re.compile(r"\b(\d+(?:\.\d+)?)\b")
_PERCENT = re.compile(r"(\d+(?:\.\d+)?)%")
_VECTOR_ITEM = re.compile(r"^\d+(?:\.\d+)?$")


class ChatClient(Protocol):
    def send(self, system_prompt: str, user_prompt: str) -> str: ...


@dataclass(slots=True, frozen=True)
class Outcome(Generic[T]):
    """Result of a semantic call.

    ``ok`` is False when the provider failed; ``value`` then holds the neutral
    default. ``fallback`` marks a reply that arrived but could not be parsed.
    """

    value: T
    ok: bool = True
    fallback: bool = False
    error: str | None = None

    @classmethod
    def failure(cls, value: T, error: BaseException | str) -> "Outcome[T]":
        return cls(value=value, ok=False, fallback=True, error=str(error))


def parse_score(response: str) -> float | None:
    """Extract a 0-100 score from free-form text, or None when absent."""
    match = _NUMBER.search(response) or _PERCENT.search(response)
    if match is None:
        return None
    return min(100.0, max(0.0, float(match.group(1))))


def _vector_numbers(response: str) -> List[float]:
    return [
        float(token)
        for token in re.split(r"[,\s]+", response)
        if _VECTOR_ITEM.match(token.strip())
    ]


def parse_vector(response: str, dimensions: int) -> List[float]:
    """Read up to ``dimensions`` numbers, padding missing ones with the midpoint."""
    numbers = _vector_numbers(response)[:dimensions]
    numbers.extend([MIDPOINT] * (dimensions - len(numbers)))
    return numbers


class SemanticAugmenter:
    """Semantic scoring on top of a chat client."""

    def __init__(
        self,
        client: ChatClient,
        *,
        max_chars: int = 2000,
        embed_chars: int = 1500,
        dimensions: int = 10,
    ) -> None:
        self.client = client
        self.max_chars = max_chars
        self.embed_chars = embed_chars
        self.dimensions = dimensions

    def judge_similarity(self, text_a: str, text_b: str) -> Outcome[float]:
        user_prompt = (
            "Compare these two texts for semantic similarity:\n\n"
            f"TEXT 1:\n{truncate(text_a, self.max_chars)}\n\n"
            f"TEXT 2:\n{truncate(text_b, self.max_chars)}\n\n"
            "Similarity score (0-100):"
        )
        try:
            response = self.client.send(SIMILARITY_SYSTEM_PROMPT, user_prompt)
        except Exception as exc:
            LOGGER.warning("Semantic similarity request failed: %s", exc)
            return Outcome.failure(NEUTRAL_SCORE, exc)

        score = parse_score(response)
        if score is None:
            LOGGER.warning("Could not parse similarity score from LLM response: %r", response)
            return Outcome(value=NEUTRAL_SCORE, fallback=True)
        return Outcome(value=score)

    def _vector_prompt(self) -> str:
        labels = list(DIMENSIONS[: self.dimensions])
        labels.extend(f"Semantic dimension {i + 1}" for i in range(len(labels), self.dimensions))
        lines = "\n".join(f"{i + 1}. {label}" for i, label in enumerate(labels))
        return (
            "You are a text analysis system that generates semantic feature vectors.\n\n"
            f"Analyze the given text and rate it on these {self.dimensions} semantic "
            f"dimensions (scale 0-10):\n{lines}\n\n"
            f"Return ONLY {self.dimensions} numbers separated by commas, no explanations."
        )

    def embed(self, text: str) -> Outcome[List[float]]:
        user_prompt = (
            f"Analyze this text:\n\n{truncate(text, self.embed_chars)}\n\n"
            f"Semantic vector ({self.dimensions} numbers, 0-10 scale):"
        )
        try:
            response = self.client.send(self._vector_prompt(), user_prompt)
        except Exception as exc:
            LOGGER.warning("Semantic vector request failed: %s", exc)
            return Outcome.failure([MIDPOINT] * self.dimensions, exc)

        if not _vector_numbers(response):
            LOGGER.warning("Could not parse semantic vector from LLM response: %r", response)
            return Outcome(value=[MIDPOINT] * self.dimensions, fallback=True)
        return Outcome(value=parse_vector(response, self.dimensions))

    def test_connection(self) -> bool:
        outcome = self.judge_similarity(
            "The quick brown fox jumps over the lazy dog.",
            "A fast brown fox leaps above a sleepy dog.",
        )
        return outcome.ok and not outcome.fallback and 70 < outcome.value <= 100
