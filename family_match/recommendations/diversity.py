from __future__ import annotations

from .models import ScoredCandidate

SAME_PROVIDER_FACTOR = 0.3
SAME_CATEGORY_FACTOR = 0.7
SAME_NEIGHBORHOOD_FACTOR = 0.8


def diversity_score(candidate: ScoredCandidate, selected: list[ScoredCandidate]) -> float:
    """1.0 for a candidate unlike everything selected, shrinking per shared trait."""
    score = 1.0
    activity = candidate.activity
    for prior in selected:
        if prior.provider_id == candidate.provider_id:
            score *= SAME_PROVIDER_FACTOR
        if prior.activity.category == activity.category:
            score *= SAME_CATEGORY_FACTOR
        hood = activity.location.neighborhood
        if hood and prior.activity.location.neighborhood == hood:
            score *= SAME_NEIGHBORHOOD_FACTOR
    return score


def select_diverse(
    candidates: list[ScoredCandidate],
    limit: int,
    diversity_weight: float = 0.3,
) -> list[ScoredCandidate]:
    """Greedy re-selection trading match score against variety.

    ``candidates`` must already be sorted by descending match score. The top
    candidate is always kept. While unseen providers remain, only their
    candidates are eligible, so a provider repeats only once every provider
    in the pool has been picked. This provider rule holds for any
    ``diversity_weight``, including 0; the weight only orders candidates
    within the eligible pool.
    """
    if not candidates or limit <= 0:
        return []

    selected = [candidates[0]]
    remaining = list(candidates[1:])

    while remaining and len(selected) < limit:
        seen = {c.provider_id for c in selected}
        pool = [c for c in remaining if c.provider_id not in seen] or remaining

        best = max(
            pool,
            key=lambda c: (1 - diversity_weight) * c.match_score
            + diversity_weight * diversity_score(c, selected),
        )
        selected.append(best)
        remaining.remove(best)

    return selected
