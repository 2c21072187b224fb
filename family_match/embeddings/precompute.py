"""
Offline script to precompute activity candidate embeddings.

Usage:
    python -m family_match.embeddings.precompute
"""
from __future__ import annotations

import numpy as np

from ..recommendations.data_store import CandidateStore
from .config import DEFAULT_EMBEDDING_CONFIG, EmbeddingConfig
from .encoder import encode_batch


def run_precompute(config: EmbeddingConfig = DEFAULT_EMBEDDING_CONFIG) -> np.ndarray:
    store = CandidateStore.from_jsonl(config.candidates_path)
    texts = store.texts()

    print(f"Encoding {len(texts)} activity candidates ...")
    embeddings = encode_batch(texts, config)

    config.embeddings_path.parent.mkdir(parents=True, exist_ok=True)
    np.save(config.embeddings_path, embeddings)
    print(f"Saved embeddings ({embeddings.shape}) to {config.embeddings_path}")
    return embeddings


if __name__ == "__main__":
    run_precompute()
