"""Text helpers for canonical matching and lexical comparison."""

from __future__ import annotations

import re
from typing import List

_BOLD_STARS = re.compile(r"\*\*(.*?)\*\*")
_ITALIC_STAR = re.compile(r"\*(.*?)\*")
_BOLD_UNDERSCORES = re.compile(r"__(.*?)__")
_ITALIC_UNDERSCORE = re.compile(r"_(.*?)_")
_HORIZONTAL_RUN = re.compile(r"[ \t]+")
_LEADING_SPACE = re.compile(r"\n\s+")
_TRAILING_SPACE = re.compile(r"\s+\n")


def normalize_text(content: str) -> str:
    """Normalize text for canonical matching.

    Line endings become ``\\n``, bold/italic delimiters are removed, runs of
    spaces and tabs collapse to one space, whitespace around line breaks is
    trimmed so blank lines disappear entirely, and the result is stripped.
    """
    text = content.replace("\r\n", "\n").replace("\r", "\n")
    text = _BOLD_STARS.sub(r"\1", text)
    text = _ITALIC_STAR.sub(r"\1", text)
    text = _BOLD_UNDERSCORES.sub(r"\1", text)
    text = _ITALIC_UNDERSCORE.sub(r"\1", text)
    text = _HORIZONTAL_RUN.sub(" ", text)
    text = _LEADING_SPACE.sub("\n", text)
    text = _TRAILING_SPACE.sub("\n", text)
    return text.strip()


def tokenize(text: str) -> List[str]:
    """Lower-case whitespace tokenization shared by the lexical scorers."""
    return text.lower().split()


def truncate(text: str, max_chars: int) -> str:
    """Cut text to max_chars, marking the cut with an ellipsis."""
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + "..."
