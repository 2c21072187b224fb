from __future__ import annotations

import pytest

from family_match.recommendations.config import EngineConfig, get_scoring_weights
from family_match.recommendations.geo import distance_to_score, haversine_miles
from family_match.recommendations.models import (
    ActivityLocation,
    ActivityRecord,
    AgeBounds,
    Budget,
    Child,
    Coordinates,
    FactorScores,
    FamilyLocation,
    FamilyProfile,
    Flexibility,
    Preferences,
    PriceRange,
    Pricing,
    PricingType,
    ProviderInfo,
    Schedule,
    TimeSlot,
)
from family_match.recommendations.scoring import (
    blend,
    child_age_fit,
    hour_to_slot,
    passes_cutoff,
    practical_score,
    schedule_slots,
    score_age,
    score_budget,
    score_factors,
    score_interests,
    score_location,
    score_quality,
    score_schedule,
)

DOWNTOWN = Coordinates(lat=30.2672, lng=-97.7431)
ROUND_ROCK = Coordinates(lat=30.5082, lng=-97.6789)


def _child(age: int, name: str = "Maya", interests: list[str] | None = None) -> Child:
    return Child(name=name, age=age, interests=interests or [])


def _scores(**overrides: float) -> FactorScores:
    values = dict(age=0.5, interests=0.5, location=0.5, schedule=0.5, budget=0.5, quality=0.5)
    values.update(overrides)
    return FactorScores(**values)


# ── Age ──────────────────────────────────────────────────────────────────


class TestAgeScore:
    RANGE = AgeBounds(min=5, max=9)

    def test_in_range(self):
        assert child_age_fit(7, self.RANGE) == 1.0

    def test_one_year_outside(self):
        assert child_age_fit(4, self.RANGE) == 0.7
        assert child_age_fit(10, self.RANGE) == 0.7

    def test_two_years_outside(self):
        assert child_age_fit(11, self.RANGE) == 0.4

    def test_decay_and_floor(self):
        assert child_age_fit(12, self.RANGE) == pytest.approx(0.15)
        assert child_age_fit(13, self.RANGE) == pytest.approx(0.1)
        assert child_age_fit(14, self.RANGE) == pytest.approx(0.1)

    def test_far_outside(self):
        assert child_age_fit(15, self.RANGE) == 0.0

    def test_monotonic_in_distance(self):
        for age in range(0, 19):
            fits = [child_age_fit(age, AgeBounds(min=age + d, max=age + d)) for d in range(0, 8)]
            assert fits == sorted(fits, reverse=True)

    def test_averaged_across_children(self):
        assert score_age(self.RANGE, [_child(7), _child(10, "Leo")]) == pytest.approx(0.85)

    def test_unknown_range(self):
        assert score_age(None, [_child(7)]) == 0.4

    def test_no_children(self):
        assert score_age(self.RANGE, []) == 0.5


# ── Interests ────────────────────────────────────────────────────────────


class TestInterestScore:
    def test_partial_match_normalized_by_larger_side(self):
        assert score_interests(["art", "painting"], ["art"]) == 0.5

    def test_case_insensitive_substring(self):
        assert score_interests(["Art Camp"], ["art"]) == 1.0
        assert score_interests(["Soccer"], ["soccer"]) == 1.0

    def test_no_overlap(self):
        assert score_interests(["Chess"], ["soccer"]) == 0.0

    def test_family_without_interests_is_neutral(self):
        assert score_interests(["Chess"], []) == 0.5

    def test_shared_child_interests_count_once(self):
        family = FamilyProfile(
            children=[_child(7, "Maya", ["art"]), _child(9, "Leo", ["Art "])],
            preferences=Preferences(activity_types=["ART"]),
        )
        assert family.interests == ["art"]
        assert score_interests(["Art"], family.interests) == 1.0


# ── Location ─────────────────────────────────────────────────────────────


class TestLocationScore:
    def test_haversine_distance(self):
        assert 15 < haversine_miles(DOWNTOWN, ROUND_ROCK) < 20

    def test_distance_steps(self):
        assert distance_to_score(1.5) == 1.0
        assert distance_to_score(12) == 0.5
        assert distance_to_score(100) == 0.05

    def test_coordinates_on_both_sides(self):
        activity = ActivityLocation(coordinates=DOWNTOWN)
        family = FamilyLocation(coordinates=DOWNTOWN)
        assert score_location(activity, family) == 1.0

    def test_family_zip_resolves_to_coordinates(self):
        activity = ActivityLocation(coordinates=ROUND_ROCK)
        family = FamilyLocation(zip_code="78701")
        assert score_location(activity, family) == 0.3

    def test_neighborhood_match(self):
        activity = ActivityLocation(neighborhood="Hyde Park")
        family = FamilyLocation(neighborhood="hyde park")
        assert score_location(activity, family) == 0.9

    def test_same_city_close_zip(self):
        activity = ActivityLocation(city="Austin", zip_code="78705")
        family = FamilyLocation(city="Austin", zip_code="78704")
        assert score_location(activity, family) == pytest.approx(0.9)

    def test_same_city_far_zip(self):
        activity = ActivityLocation(city="Austin", zip_code="78757")
        family = FamilyLocation(city="Austin", zip_code="78704")
        assert score_location(activity, family) == 0.7

    def test_metro_area(self):
        activity = ActivityLocation(city="Round Rock")
        family = FamilyLocation(city="Austin")
        assert score_location(activity, family) == 0.5

    def test_same_state(self):
        activity = ActivityLocation(city="Houston", address="Houston, TX")
        family = FamilyLocation(city="El Paso, Texas")
        assert score_location(activity, family) == 0.2

    def test_unrelated(self):
        activity = ActivityLocation(city="Denver")
        family = FamilyLocation(city="Austin")
        assert score_location(activity, family) == 0.3


# ── Schedule ─────────────────────────────────────────────────────────────


class TestScheduleScore:
    def test_slot_buckets(self):
        assert hour_to_slot(15, weekend=False) == TimeSlot.weekday_afternoon
        assert hour_to_slot(8, weekend=True) == TimeSlot.weekend_morning
        assert hour_to_slot(23, weekend=False) is None
        assert hour_to_slot(6, weekend=True) is None

    def test_schedule_slots(self):
        assert schedule_slots(("monday", "saturday"), ("3:30pm",)) == [
            TimeSlot.weekday_afternoon, TimeSlot.weekend_afternoon,
        ]

    def test_exact_match(self):
        schedule = Schedule(days=("monday", "wednesday"), times=("3:30pm",), flexibility=Flexibility.fixed)
        assert score_schedule(schedule, [TimeSlot.weekday_afternoon]) == 1.0

    def test_week_part_overlap(self):
        schedule = Schedule(days=("monday",), times=("9am",), flexibility=Flexibility.fixed)
        preferred = [TimeSlot.weekday_afternoon, TimeSlot.weekday_evening]
        assert score_schedule(schedule, preferred) == 0.6

    def test_no_overlap(self):
        schedule = Schedule(days=("saturday",), times=("10am",), flexibility=Flexibility.fixed)
        preferred = [TimeSlot.weekday_afternoon, TimeSlot.weekday_evening]
        assert score_schedule(schedule, preferred) == 0.2

    def test_unknown_schedule_with_flexibility_bonus(self):
        preferred = [TimeSlot.weekday_afternoon, TimeSlot.weekend_morning]
        assert score_schedule(Schedule(), preferred) == pytest.approx(0.8)

    def test_single_slot_penalty(self):
        assert score_schedule(Schedule(), [TimeSlot.weekday_afternoon]) == pytest.approx(0.8 * 0.3)

    def test_single_slot_penalty_after_bonus(self):
        schedule = Schedule(days=("saturday",), times=("10am",), flexibility=Flexibility.flexible)
        assert score_schedule(schedule, [TimeSlot.weekday_afternoon]) == pytest.approx(0.35 * 0.3)

    def test_no_preference(self):
        assert score_schedule(Schedule(), []) == 0.7


# ── Budget and quality ───────────────────────────────────────────────────


class TestBudgetScore:
    def test_free_always_full(self):
        free = Pricing(type=PricingType.free)
        assert score_budget(free, Budget(max=10)) == 1.0
        assert score_budget(free, None) == 1.0

    def test_no_budget(self):
        assert score_budget(Pricing(amount=500), None) == 0.7

    def test_bands(self):
        budget = Budget(max=200)
        assert score_budget(Pricing(amount=150), budget) == 1.0
        assert score_budget(Pricing(amount=230), budget) == 0.7
        assert score_budget(Pricing(amount=290), budget) == 0.4
        assert score_budget(Pricing(amount=400), budget) == 0.1

    def test_unknown_cost(self):
        assert score_budget(Pricing(), Budget(max=200)) == 0.8

    def test_range_max_used(self):
        pricing = Pricing(range=PriceRange(min=100, max=220))
        assert score_budget(pricing, Budget(max=200)) == 0.7


class TestQualityScore:
    def test_base(self):
        assert score_quality(ProviderInfo()) == 0.5

    def test_saturates(self):
        provider = ProviderInfo(rating=5, review_count=200, verified=True, experience=20)
        assert score_quality(provider) == 1.0

    def test_low_rating(self):
        assert score_quality(ProviderInfo(rating=1)) == pytest.approx(0.3)


# ── Blending ─────────────────────────────────────────────────────────────


class TestBlend:
    def test_perfect_scores(self):
        practical, match = blend(1.0, _scores(age=1, interests=1, location=1, schedule=1, budget=1, quality=1))
        assert practical == pytest.approx(1.0)
        assert match == pytest.approx(1.0)

    def test_vector_weight(self):
        _, match = blend(0.0, _scores(age=1, interests=1, location=1, schedule=1, budget=1, quality=1))
        assert match == pytest.approx(0.7)

    def test_similarity_clamped(self):
        _, match = blend(1.7, _scores())
        assert match <= 1.0

    def test_lightweight_profile(self):
        config = EngineConfig(scoring_profile="lightweight")
        scores = _scores(age=1, interests=0, location=0, schedule=0, budget=0, quality=0)
        assert practical_score(scores, config) == pytest.approx(0.3)

    def test_unknown_profile_falls_back_to_full(self):
        assert get_scoring_weights("nope") == get_scoring_weights("full")

    def test_cutoff(self):
        assert passes_cutoff(0.2)
        assert not passes_cutoff(0.19)


class TestScenarios:
    def setup_method(self):
        self.family = FamilyProfile(
            children=[_child(7, interests=["art"])],
            preferences=Preferences(
                budget=Budget(max=200),
                schedule=[TimeSlot.weekday_afternoon],
            ),
        )

    def _activity(self, age_range: AgeBounds) -> ActivityRecord:
        return ActivityRecord(
            provider_id="1",
            category="Art",
            interests=("art", "painting"),
            age_range=age_range,
            schedule=Schedule(days=("monday", "wednesday"), times=("3:30pm",), flexibility=Flexibility.fixed),
            pricing=Pricing(amount=150),
        )

    def test_good_fit(self):
        scores = score_factors(self._activity(AgeBounds(min=5, max=9)), self.family)
        assert scores.age == 1.0
        assert scores.budget == 1.0
        assert scores.schedule == 1.0
        _, match = blend(0.8, scores)
        assert match >= 0.65

    def test_age_mismatch(self):
        scores = score_factors(self._activity(AgeBounds(min=13, max=17)), self.family)
        assert scores.age <= 0.3
