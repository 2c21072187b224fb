from __future__ import annotations

import numpy as np
from sentence_transformers import SentenceTransformer

from .config import DEFAULT_EMBEDDING_CONFIG, EmbeddingConfig

_models: dict[str, SentenceTransformer] = {}


def _get_model(config: EmbeddingConfig = DEFAULT_EMBEDDING_CONFIG) -> SentenceTransformer:
    model = _models.get(config.model_name)
    if model is None:
        model = SentenceTransformer(config.model_name)
        _models[config.model_name] = model
    return model


def encode_text(text: str, config: EmbeddingConfig = DEFAULT_EMBEDDING_CONFIG) -> np.ndarray:
    """Encode a single string into a 1-D embedding vector."""
    return np.asarray(_get_model(config).encode(text, show_progress_bar=False), dtype=float)


def encode_batch(texts: list[str], config: EmbeddingConfig = DEFAULT_EMBEDDING_CONFIG) -> np.ndarray:
    """Encode a list of strings into a 2-D array of shape (N, dim)."""
    if not texts:
        return np.zeros((0, config.dimension))
    vectors = _get_model(config).encode(
        texts, show_progress_bar=True, batch_size=config.batch_size,
    )
    return np.asarray(vectors, dtype=float)
