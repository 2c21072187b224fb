from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

_DATA_DIR = Path(__file__).resolve().parent.parent / "data"


@dataclass(frozen=True)
class EmbeddingConfig:
    model_name: str = os.getenv("FAMILY_MATCH_EMBEDDING_MODEL", "all-MiniLM-L6-v2")
    dimension: int = 384
    batch_size: int = 256
    candidates_path: Path = _DATA_DIR / "candidates.jsonl"
    embeddings_path: Path = _DATA_DIR / "embeddings.npy"


DEFAULT_EMBEDDING_CONFIG = EmbeddingConfig()
