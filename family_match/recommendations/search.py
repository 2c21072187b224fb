"""
Vector search collaborator interface and an in-memory implementation.

The recommendation engine only depends on :class:`VectorSearchClient`;
production deployments inject a client for their own index.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Protocol, TypeVar

import numpy as np
from sklearn.metrics.pairwise import cosine_similarity

from .config import DEFAULT_ENGINE_CONFIG
from .data_store import CandidateStore, get_candidate_store, get_embeddings
from .models import RawCandidate
from .normalizer import normalize

logger = logging.getLogger(__name__)

T = TypeVar("T")


class VectorSearchClient(Protocol):
    def search(
        self,
        vector: np.ndarray,
        limit: int,
        filters: dict[str, Any] | None = None,
    ) -> list[RawCandidate]:
        ...

    def is_available(self) -> bool:
        ...


def call_with_timeout(fn: Callable[..., T], timeout: float | None, *args: Any) -> T:
    """Run ``fn(*args)`` in a worker thread, raising TimeoutError after ``timeout`` seconds."""
    executor = ThreadPoolExecutor(max_workers=1)
    try:
        return executor.submit(fn, *args).result(timeout=timeout)
    finally:
        executor.shutdown(wait=False)


# ---------------------------------------------------------------------------
# Payload filters
# ---------------------------------------------------------------------------


def _lookup(record: dict[str, Any], key: str) -> Any:
    value: Any = record
    for part in key.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def _same(a: Any, b: Any) -> bool:
    if isinstance(a, str) and isinstance(b, str):
        return a.strip().lower() == b.strip().lower()
    return a == b


def _match(record: dict[str, Any], key: str, value: Any) -> bool:
    actual = _lookup(record, key)
    if isinstance(actual, (list, tuple)):
        return any(_same(item, value) for item in actual)
    return _same(actual, value)


def _in_range(record: dict[str, Any], bounds: dict[str, Any]) -> bool:
    actual = _lookup(record, bounds["key"])
    if not isinstance(actual, (int, float)) or isinstance(actual, bool):
        return False
    if "gte" in bounds and actual < bounds["gte"]:
        return False
    if "lte" in bounds and actual > bounds["lte"]:
        return False
    if "gt" in bounds and actual <= bounds["gt"]:
        return False
    if "lt" in bounds and actual >= bounds["lt"]:
        return False
    return True


def matches_filter(record: dict[str, Any], clause: dict[str, Any]) -> bool:
    """Evaluate a ``must``/``should``/``match``/``range`` clause against a record."""
    if "must" in clause:
        return all(matches_filter(record, c) for c in clause["must"])
    if "should" in clause:
        return any(matches_filter(record, c) for c in clause["should"])
    if "match" in clause:
        return _match(record, clause["match"]["key"], clause["match"]["value"])
    if "range" in clause:
        return _in_range(record, clause["range"])
    raise ValueError(f"Unknown filter clause: {sorted(clause)}")


# ---------------------------------------------------------------------------
# In-memory index
# ---------------------------------------------------------------------------


class InMemoryVectorIndex:
    """Cosine-similarity search over precomputed candidate embeddings."""

    def __init__(
        self,
        candidates: list[RawCandidate],
        embeddings: np.ndarray,
        score_threshold: float = DEFAULT_ENGINE_CONFIG.search_score_threshold,
    ):
        embeddings = np.asarray(embeddings, dtype=float)
        if len(candidates) != len(embeddings):
            raise ValueError(
                f"{len(candidates)} candidates but {len(embeddings)} embeddings"
            )
        self._candidates = candidates
        self._embeddings = embeddings
        self._score_threshold = score_threshold
        # Filters run against normalized records, not the raw payloads.
        self._records = [normalize(c).model_dump(mode="json") for c in candidates]

    @classmethod
    def from_store(
        cls,
        store: CandidateStore | None = None,
        embeddings: np.ndarray | None = None,
        **kwargs: Any,
    ) -> "InMemoryVectorIndex":
        if store is None:
            store = get_candidate_store()
        if embeddings is None:
            embeddings = get_embeddings()
        if embeddings is None:
            raise FileNotFoundError(
                "No precomputed embeddings; run python -m family_match.embeddings.precompute"
            )
        return cls(store.candidates(), embeddings, **kwargs)

    def __len__(self) -> int:
        return len(self._candidates)

    def is_available(self) -> bool:
        return len(self._candidates) > 0

    def search(
        self,
        vector: np.ndarray,
        limit: int,
        filters: dict[str, Any] | None = None,
    ) -> list[RawCandidate]:
        if not self._candidates or limit <= 0:
            return []

        query = np.asarray(vector, dtype=float).reshape(1, -1)
        sims = cosine_similarity(query, self._embeddings).flatten()
        # Normalise cosine similarity from [-1, 1] to [0, 1]
        scores = (sims + 1.0) / 2.0

        results: list[RawCandidate] = []
        for i in np.argsort(-scores, kind="stable"):
            score = float(scores[i])
            if score < self._score_threshold:
                break
            if filters and not matches_filter(self._records[i], filters):
                continue
            results.append(self._candidates[i].model_copy(update={"score": score}))
            if len(results) >= limit:
                break

        logger.debug("In-memory search returned %d of %d candidates", len(results), len(self))
        return results
