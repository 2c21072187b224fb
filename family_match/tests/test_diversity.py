from __future__ import annotations

from family_match.recommendations.diversity import diversity_score, select_diverse
from family_match.recommendations.models import (
    ActivityLocation,
    ActivityRecord,
    FactorScores,
    ScoredCandidate,
)

_NEUTRAL = FactorScores(age=0.5, interests=0.5, location=0.5, schedule=0.5, budget=0.5, quality=0.5)


def _candidate(
    provider_id: str,
    score: float,
    category: str = "General",
    neighborhood: str | None = None,
    name: str = "Activity",
) -> ScoredCandidate:
    return ScoredCandidate(
        activity=ActivityRecord(
            provider_id=provider_id,
            name=name,
            category=category,
            location=ActivityLocation(neighborhood=neighborhood),
        ),
        vector_similarity=score,
        practical_score=score,
        match_score=score,
        ranking=_NEUTRAL,
    )


def _sorted(candidates: list[ScoredCandidate]) -> list[ScoredCandidate]:
    return sorted(candidates, key=lambda c: c.match_score, reverse=True)


class TestDiversityScore:
    def test_unique_candidate(self):
        assert diversity_score(_candidate("a", 0.9), []) == 1.0

    def test_penalties_stack(self):
        selected = [_candidate("a", 0.9, "Art", "Zilker"), _candidate("b", 0.8, "Art")]
        score = diversity_score(_candidate("a", 0.7, "Art", "Zilker"), selected)
        assert abs(score - 0.3 * 0.7 * 0.8 * 0.7) < 1e-9


class TestSelectDiverse:
    def test_empty(self):
        assert select_diverse([], 5) == []

    def test_top_candidate_always_kept(self):
        candidates = _sorted([_candidate("a", 0.95), _candidate("b", 0.4), _candidate("c", 0.3)])
        assert select_diverse(candidates, 2, diversity_weight=1.0)[0].provider_id == "a"

    def test_never_exceeds_limit(self):
        candidates = _sorted([_candidate(str(i), 0.5 + i / 100) for i in range(10)])
        assert len(select_diverse(candidates, 4)) == 4

    def test_returns_all_when_fewer_than_limit(self):
        candidates = _sorted([_candidate("a", 0.9), _candidate("b", 0.8)])
        assert len(select_diverse(candidates, 5)) == 2

    def test_single_provider_flood(self):
        flood = [_candidate("same", 0.9 - i / 100, name=f"Class {i}") for i in range(20)]
        others = [_candidate(f"other-{i}", 0.5 - i / 100) for i in range(6)]
        result = select_diverse(_sorted(flood + others), 5)
        assert len(result) == 5
        assert sum(1 for c in result if c.provider_id == "same") <= 1

    def test_no_duplicate_providers_when_enough_unique(self):
        candidates = _sorted(
            [_candidate("a", 0.9 - i / 100, name=f"A{i}") for i in range(5)]
            + [_candidate(p, 0.6) for p in ("b", "c", "d")]
        )
        ids = [c.provider_id for c in select_diverse(candidates, 4)]
        assert len(ids) == len(set(ids))

    def test_repeats_provider_only_after_exhausting_others(self):
        candidates = _sorted(
            [_candidate("a", 0.9, name="A1"), _candidate("a", 0.85, name="A2"), _candidate("b", 0.3)]
        )
        ids = [c.provider_id for c in select_diverse(candidates, 3)]
        assert ids == ["a", "b", "a"]

    def test_prefers_new_category(self):
        candidates = _sorted([
            _candidate("a", 0.9, "Art"),
            _candidate("b", 0.8, "Art"),
            _candidate("c", 0.78, "Sports"),
        ])
        ids = [c.provider_id for c in select_diverse(candidates, 2, diversity_weight=0.5)]
        assert ids == ["a", "c"]

    def test_deterministic(self):
        candidates = _sorted([_candidate(str(i % 4), 0.5, name=str(i)) for i in range(12)])
        first = [c.activity.name for c in select_diverse(candidates, 6)]
        second = [c.activity.name for c in select_diverse(candidates, 6)]
        assert first == second

    def test_zero_weight_still_spreads_providers(self):
        candidates = _sorted([
            _candidate("a", 0.9, name="A1"),
            _candidate("a", 0.85, name="A2"),
            _candidate("b", 0.3, "Art"),
            _candidate("c", 0.2, "Art"),
        ])
        ids = [c.provider_id for c in select_diverse(candidates, 3, diversity_weight=0.0)]
        assert ids == ["a", "b", "c"]
