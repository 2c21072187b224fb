from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Any, Callable

import numpy as np

from ..embeddings.encoder import encode_text
from .config import DEFAULT_ENGINE_CONFIG, EngineConfig
from .diversity import select_diverse
from .errors import InvalidEmbedding, RecommendationError, SearchUnavailable
from .explanations import (
    assess_logistics,
    classify_match,
    generate_match_explanation,
    is_age_appropriate,
)
from .models import (
    FamilyProfile,
    Performance,
    RawCandidate,
    RecommendationFilters,
    RecommendationOptions,
    RecommendationResult,
    ScoredCandidate,
    SearchMetadata,
)
from .normalizer import normalize
from .query import build_search_filter, build_search_query, describe_filters
from .scoring import blend, passes_cutoff, score_factors
from .search import VectorSearchClient, call_with_timeout

logger = logging.getLogger(__name__)

Embedder = Callable[[str], Any]


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 1)


def validate_embedding(vector: Any) -> np.ndarray:
    """Coerce an embedding to a 1-D float array, rejecting empty or non-finite ones."""
    try:
        arr = np.asarray(vector, dtype=float).ravel()
    except (TypeError, ValueError) as exc:
        raise InvalidEmbedding("Query embedding is not numeric") from exc
    if arr.size == 0:
        raise InvalidEmbedding("Query embedding is empty")
    if not np.all(np.isfinite(arr)):
        raise InvalidEmbedding("Query embedding contains non-finite values")
    return arr


def score_candidate(
    raw: RawCandidate,
    family: FamilyProfile,
    filters: RecommendationFilters,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> ScoredCandidate | None:
    """Normalize and score one candidate, or return None if it misses the cutoff."""
    activity = normalize(raw)
    scores = score_factors(activity, family)
    practical, match = blend(raw.score, scores, config)
    if not passes_cutoff(match, config):
        logger.debug("Dropped %s below cutoff (%.3f)", activity.provider_id, match)
        return None

    reasons, concerns = generate_match_explanation(activity, family, scores)
    transport = filters.transportation_required or family.location.transportation_needs
    return ScoredCandidate(
        activity=activity,
        vector_similarity=min(1.0, max(0.0, raw.score)),
        practical_score=practical,
        match_score=match,
        ranking=scores,
        match_reasons=reasons,
        concerns=concerns,
        recommendation_type=classify_match(match),
        age_appropriate=is_age_appropriate(scores),
        logistical_fit=assess_logistics(scores, transport),
    )


class RecommendationEngine:
    """Vector search plus practical scoring, explanation and diversity selection."""

    def __init__(
        self,
        search_client: VectorSearchClient,
        embedder: Embedder = encode_text,
        config: EngineConfig = DEFAULT_ENGINE_CONFIG,
    ):
        self._search_client = search_client
        self._embedder = embedder
        self._config = config

    @property
    def config(self) -> EngineConfig:
        return self._config

    def _embed(self, text: str) -> np.ndarray:
        try:
            vector = self._embedder(text)
        except Exception as exc:
            logger.warning("Query embedding failed", exc_info=True)
            raise RecommendationError("Query embedding failed") from exc
        return validate_embedding(vector)

    def _search(
        self,
        vector: np.ndarray,
        limit: int,
        filters: dict[str, Any] | None,
    ) -> list[RawCandidate]:
        try:
            return call_with_timeout(
                self._search_client.search, self._config.search_timeout, vector, limit, filters,
            )
        except FutureTimeout as exc:
            logger.warning("Vector search timed out after %ss", self._config.search_timeout)
            raise SearchUnavailable(
                f"Vector search timed out after {self._config.search_timeout}s"
            ) from exc
        except Exception as exc:
            logger.warning("Vector search failed", exc_info=True)
            raise SearchUnavailable("Vector search failed") from exc

    def _score_all(
        self,
        raw: list[RawCandidate],
        family: FamilyProfile,
        filters: RecommendationFilters,
    ) -> list[ScoredCandidate]:
        def _score(candidate: RawCandidate) -> ScoredCandidate | None:
            return score_candidate(candidate, family, filters, self._config)

        if self._config.scoring_workers > 1 and len(raw) > 1:
            with ThreadPoolExecutor(max_workers=self._config.scoring_workers) as pool:
                results = list(pool.map(_score, raw))
        else:
            results = [_score(c) for c in raw]
        return [r for r in results if r is not None]

    def generate_recommendations(
        self,
        family: FamilyProfile,
        options: RecommendationOptions | None = None,
    ) -> RecommendationResult:
        if options is None:
            options = RecommendationOptions(
                limit=self._config.default_limit,
                diversity_weight=self._config.default_diversity_weight,
            )
        start = time.perf_counter()

        # --- Query embedding ---
        search_query = build_search_query(family)
        t0 = time.perf_counter()
        embedding = self._embed(search_query)
        embedding_ms = _elapsed_ms(t0)

        # --- Vector search (over-fetch to survive the cutoff) ---
        t0 = time.perf_counter()
        raw = self._search(
            embedding,
            options.limit * self._config.overfetch_factor,
            build_search_filter(options.filters),
        )
        vector_search_ms = _elapsed_ms(t0)

        # --- Scoring ---
        t0 = time.perf_counter()
        scored = self._score_all(raw, family, options.filters)
        scored.sort(key=lambda c: c.match_score, reverse=True)
        scoring_ms = _elapsed_ms(t0)

        # --- Diversity selection ---
        t0 = time.perf_counter()
        recommendations = select_diverse(scored, options.limit, options.diversity_weight)
        selection_ms = _elapsed_ms(t0)

        total_ms = _elapsed_ms(start)
        logger.info(
            "Recommended %d of %d scored (%d searched) in %.1fms",
            len(recommendations), len(scored), len(raw), total_ms,
        )

        return RecommendationResult(
            recommendations=recommendations,
            search_metadata=SearchMetadata(
                total_matches=len(scored),
                vector_search_results=len(raw),
                filters_applied=describe_filters(options.filters),
                search_query=search_query,
                embedding=embedding.tolist() if options.include_score else None,
            ),
            performance=Performance(
                embedding_ms=embedding_ms,
                vector_search_ms=vector_search_ms,
                scoring_ms=scoring_ms,
                selection_ms=selection_ms,
                total_ms=total_ms,
            ),
        )

    def health_check(self) -> dict[str, Any]:
        """Report whether the search client and the embedder can serve requests."""
        try:
            search_ok = bool(self._search_client.is_available())
        except Exception:
            logger.warning("Search health check failed", exc_info=True)
            search_ok = False

        try:
            validate_embedding(self._embedder("health check"))
            embedder_ok = True
        except Exception:
            logger.warning("Embedder health check failed", exc_info=True)
            embedder_ok = False

        return {
            "status": "healthy" if search_ok and embedder_ok else "degraded",
            "search": search_ok,
            "embedder": embedder_ok,
        }


def generate_recommendations(
    family: FamilyProfile,
    options: RecommendationOptions | None = None,
    *,
    search_client: VectorSearchClient,
    embedder: Embedder = encode_text,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> RecommendationResult:
    """One-shot helper that builds an engine around the given collaborators."""
    engine = RecommendationEngine(search_client, embedder=embedder, config=config)
    return engine.generate_recommendations(family, options)
