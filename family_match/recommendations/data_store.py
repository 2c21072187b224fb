from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable

import numpy as np
import pandas as pd

from ..embeddings.config import DEFAULT_EMBEDDING_CONFIG
from .models import RawCandidate

# Payload keys joined, in order, into the text that gets embedded.
_TEXT_KEYS = (
    "company_name", "provider_name", "title", "name", "category",
    "description", "ages", "grades", "location", "city",
)


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    return pd.api.types.is_scalar(value) and pd.isna(value)


class CandidateStore:
    """Read-only table of raw provider, event and session payloads."""

    def __init__(self, frame: pd.DataFrame):
        self._frame = frame.reset_index(drop=True)

    @classmethod
    def from_jsonl(cls, path: Path | str = DEFAULT_EMBEDDING_CONFIG.candidates_path) -> "CandidateStore":
        return cls(pd.read_json(path, lines=True))

    @classmethod
    def from_records(cls, records: Iterable[dict[str, Any]]) -> "CandidateStore":
        return cls(pd.DataFrame(list(records)))

    def __len__(self) -> int:
        return len(self._frame)

    def records(self) -> list[dict[str, Any]]:
        """Every row as a payload dict, without its missing values."""
        return [
            {k: v for k, v in row.items() if not _is_missing(v)}
            for row in self._frame.to_dict(orient="records")
        ]

    def candidates(self) -> list[RawCandidate]:
        out: list[RawCandidate] = []
        for index, payload in enumerate(self.records()):
            out.append(RawCandidate(id=payload.get("id", index), payload=payload))
        return out

    def texts(self) -> list[str]:
        """One lowercase search text per row, aligned with :meth:`candidates`."""
        texts: list[str] = []
        for payload in self.records():
            parts = [
                str(payload[k]) for k in _TEXT_KEYS
                if k in payload and not isinstance(payload[k], dict)
            ]
            texts.append(" ".join(parts).strip().lower())
        return texts


_store: CandidateStore | None = None
_embeddings: np.ndarray | None = None


def get_candidate_store() -> CandidateStore:
    """Return the default candidate store, loading it on first call."""
    global _store
    if _store is None:
        _store = CandidateStore.from_jsonl()
    return _store


def get_embeddings(path: Path = DEFAULT_EMBEDDING_CONFIG.embeddings_path) -> np.ndarray | None:
    """Return precomputed candidate embeddings, or None if file missing."""
    global _embeddings
    if _embeddings is None and path.exists():
        _embeddings = np.load(path)
    return _embeddings
