from __future__ import annotations


class RecommendationError(Exception):
    """Base class for failures raised by the recommendation core."""


class SearchUnavailable(RecommendationError):
    """The vector search collaborator failed or did not answer in time."""


class InvalidEmbedding(RecommendationError):
    """The query embedding was empty or contained non-finite values."""
