"""Local sentence-transformer embeddings used as semantic vectors."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Sequence

import numpy as np
from sentence_transformers import SentenceTransformer

from docdedup.embedding.semantic import Outcome

DEFAULT_MODEL = "sentence-transformers/all-MiniLM-L6-v2"

logger = logging.getLogger(__name__)


def _detect_device() -> str | None:
    """Pick an accelerator when torch reports one, otherwise let the library decide."""
    try:
        import torch

        if torch.cuda.is_available():
            logger.debug("CUDA GPU detected: %s", torch.cuda.get_device_name(0))
            return "cuda"
        if hasattr(torch.backends, "mps") and torch.backends.mps.is_available():
            logger.debug("Apple MPS GPU detected")
            return "mps"
    except ImportError:
        logger.debug("PyTorch not available for GPU detection")
    return None


@dataclass(slots=True)
class EmbeddingConfig:
    model_name: str = DEFAULT_MODEL
    batch_size: int = 16
    normalize: bool = True
    max_chars: int = 4000
    device: str | None = None


class EmbeddingModel:
    """Thin wrapper around `SentenceTransformer` producing document vectors."""

    def __init__(self, config: EmbeddingConfig | None = None) -> None:
        self.config = config or EmbeddingConfig()
        if self.config.device is None:
            self.config.device = _detect_device()
        self._model = SentenceTransformer(self.config.model_name, device=self.config.device)
        self.dimension = int(self._model.get_sentence_embedding_dimension())
        logger.info(
            "Loaded embedding model %s (dimension %d, device %s)",
            self.config.model_name,
            self.dimension,
            self.config.device or "auto",
        )

    def embed(self, texts: Sequence[str] | Iterable[str]) -> np.ndarray:
        """Return float32 embeddings for input texts."""
        sentences = [text[: self.config.max_chars] for text in texts]
        embeddings = self._model.encode(
            sentences,
            batch_size=self.config.batch_size,
            show_progress_bar=False,
            convert_to_numpy=True,
            normalize_embeddings=self.config.normalize,
        )
        return embeddings.astype("float32", copy=False)

    def vector(self, text: str) -> Outcome[List[float]]:
        """Embed one document; same contract as `SemanticAugmenter.embed`."""
        try:
            values = self.embed([text])[0]
        except Exception as exc:
            logger.warning("Local embedding failed: %s", exc)
            return Outcome.failure([0.0] * self.dimension, exc)
        return Outcome(value=[float(v) for v in values])
