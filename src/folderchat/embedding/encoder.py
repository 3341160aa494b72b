"""Embedding model management."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Literal, Sequence

import numpy as np
from sentence_transformers import SentenceTransformer

DEFAULT_MODEL = "sentence-transformers/all-MiniLM-L6-v2"

logger = logging.getLogger(__name__)


def _onnx_available() -> bool:
    try:
        import onnxruntime  # noqa: F401
    except ImportError:
        return False
    return True


@dataclass(slots=True)
class EmbeddingConfig:
    model_name: str = DEFAULT_MODEL
    batch_size: int = 16
    normalize: bool = True
    backend: Literal["torch", "onnx"] | None = None
    device: str | None = None


class EmbeddingModel:
    """Thin wrapper around `SentenceTransformer` for query and chunk embeddings.

    Prefers the ONNX backend when onnxruntime is installed and falls back to
    PyTorch if the ONNX export cannot be loaded. Embeddings are L2-normalised
    by default so a dot product is a cosine similarity.
    """

    def __init__(self, config: EmbeddingConfig | None = None) -> None:
        self.config = config or EmbeddingConfig()
        if self.config.backend is None:
            self.config.backend = "onnx" if _onnx_available() else "torch"

        try:
            self._model = self._load_model()
        except Exception as e:
            if self.config.backend == "torch":
                raise
            logger.warning(
                "Failed to load model with backend '%s': %s. Falling back to PyTorch.",
                self.config.backend,
                e,
            )
            self.config.backend = "torch"
            self._model = self._load_model()

        self.dimension = int(self._model.get_sentence_embedding_dimension())
        logger.info(
            "Loaded embedding model %s (backend: %s, dimension: %d)",
            self.config.model_name,
            self.config.backend,
            self.dimension,
        )

    def _load_model(self) -> SentenceTransformer:
        return SentenceTransformer(
            self.config.model_name,
            backend=self.config.backend,
            device=self.config.device,
        )

    def embed(self, texts: Sequence[str] | Iterable[str]) -> np.ndarray:
        """Return float32 embeddings for input texts."""
        sentences = list(texts)
        if not sentences:
            return np.zeros((0, self.dimension), dtype="float32")
        embeddings = self._model.encode(
            sentences,
            batch_size=self.config.batch_size,
            show_progress_bar=False,
            convert_to_numpy=True,
            normalize_embeddings=self.config.normalize,
        )
        return embeddings.astype("float32", copy=False)

    def embed_query(self, text: str) -> np.ndarray:
        """Convenience wrapper for single-query embedding."""
        return self.embed([text])[0]
