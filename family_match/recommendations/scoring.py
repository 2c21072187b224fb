"""
Per-factor fit scores and the blended match score.

Every scorer is a pure function of an activity slice and a family slice and
returns a value in [0, 1].
"""
from __future__ import annotations

from typing import Iterable

from .config import DEFAULT_ENGINE_CONFIG, EngineConfig
from .extraction import WEEKDAYS, WEEKEND, time_to_hour
from .geo import (
    distance_to_score,
    family_coordinates,
    haversine_miles,
    in_home_state,
    in_metro_area,
    same_place,
    zip_distance,
)
from .models import (
    ActivityLocation,
    ActivityRecord,
    AgeBounds,
    Budget,
    Child,
    FactorScores,
    FamilyLocation,
    FamilyProfile,
    Flexibility,
    Pricing,
    PricingType,
    ProviderInfo,
    Schedule,
    TimeSlot,
)

NO_CHILDREN_AGE_SCORE = 0.5
UNKNOWN_AGE_RANGE_SCORE = 0.4
NO_INTERESTS_SCORE = 0.5
NO_SCHEDULE_PREFERENCE_SCORE = 0.7
UNKNOWN_SCHEDULE_SCORE = 0.5
SINGLE_SLOT_PENALTY = 0.3
SINGLE_SLOT_FLOOR = 0.1
NO_BUDGET_SCORE = 0.7
UNKNOWN_COST_SCORE = 0.8

_FLEXIBILITY_BONUS = {
    Flexibility.very_flexible: 0.3,
    Flexibility.flexible: 0.15,
    Flexibility.fixed: 0.0,
}

_WEEKDAY_NAMES = set(WEEKDAYS) | {"mon", "tue", "wed", "thu", "fri", "weekdays"}
_WEEKEND_NAMES = set(WEEKEND) | {"sat", "sun", "weekend", "weekends"}


def _clamp(value: float) -> float:
    return min(1.0, max(0.0, value))


# ---------------------------------------------------------------------------
# Age
# ---------------------------------------------------------------------------


def child_age_fit(age: int, age_range: AgeBounds) -> float:
    """Fit of a single child's age against a known range."""
    if age_range.min <= age <= age_range.max:
        return 1.0
    distance = age_range.min - age if age < age_range.min else age - age_range.max
    if distance <= 1:
        return 0.7
    if distance <= 2:
        return 0.4
    if distance <= 5:
        return max(0.1, 0.3 - 0.05 * distance)
    return 0.0


def score_age(age_range: AgeBounds | None, children: list[Child]) -> float:
    if not children:
        return NO_CHILDREN_AGE_SCORE
    if age_range is None:
        return UNKNOWN_AGE_RANGE_SCORE
    return _clamp(sum(child_age_fit(c.age, age_range) for c in children) / len(children))


# ---------------------------------------------------------------------------
# Interests
# ---------------------------------------------------------------------------


def score_interests(activity_interests: Iterable[str], family_interests: Iterable[str]) -> float:
    activity = [i.lower() for i in activity_interests if i]
    family = [i.lower() for i in family_interests if i]
    if not family:
        return NO_INTERESTS_SCORE

    matches = sum(1 for a in activity if any(f in a or a in f for f in family))
    return min(matches / max(len(family), len(activity)), 1.0)


# ---------------------------------------------------------------------------
# Location
# ---------------------------------------------------------------------------


def score_location(activity: ActivityLocation, family: FamilyLocation) -> float:
    home = family_coordinates(family)
    if activity.coordinates is not None and home is not None:
        return distance_to_score(haversine_miles(home, activity.coordinates))

    if same_place(activity.neighborhood, family.neighborhood):
        return 0.9
    if same_place(activity.city, family.city):
        score = 0.7
        if activity.zip_code and family.zip_code:
            gap = zip_distance(activity.zip_code, family.zip_code)
            if gap is not None and gap <= 2:
                score += 0.2
        return min(score, 1.0)
    if in_metro_area(activity) and in_metro_area(family):
        return 0.5
    if in_home_state(activity) and in_home_state(family):
        return 0.2
    return 0.3


# ---------------------------------------------------------------------------
# Schedule
# ---------------------------------------------------------------------------


def hour_to_slot(hour: int, weekend: bool) -> TimeSlot | None:
    """Bucket an hour into a weekday or weekend time slot."""
    if weekend:
        if 7 <= hour < 12:
            return TimeSlot.weekend_morning
        if 12 <= hour < 18:
            return TimeSlot.weekend_afternoon
        if 18 <= hour < 22:
            return TimeSlot.weekend_evening
        return None
    if 6 <= hour < 12:
        return TimeSlot.weekday_morning
    if 12 <= hour < 18:
        return TimeSlot.weekday_afternoon
    if 18 <= hour < 22:
        return TimeSlot.weekday_evening
    return None


def schedule_slots(days: Iterable[str], times: Iterable[str]) -> list[TimeSlot]:
    """Every time slot covered by the (day, time) pairs of a schedule."""
    hours = [h for h in (time_to_hour(t) for t in times) if h is not None]
    slots: list[TimeSlot] = []
    for day in days:
        name = day.lower().strip()
        if name in _WEEKDAY_NAMES:
            weekend = False
        elif name in _WEEKEND_NAMES:
            weekend = True
        else:
            continue
        for hour in hours:
            slot = hour_to_slot(hour, weekend)
            if slot is not None and slot not in slots:
                slots.append(slot)
    return slots


def _shares_week_part(days: Iterable[str], preferred: list[TimeSlot]) -> bool:
    names = {d.lower().strip() for d in days}
    wants_weekend = any(s.is_weekend for s in preferred)
    wants_weekday = any(not s.is_weekend for s in preferred)
    return (wants_weekday and bool(names & _WEEKDAY_NAMES)) or (
        wants_weekend and bool(names & _WEEKEND_NAMES)
    )


def score_schedule(schedule: Schedule, preferred: list[TimeSlot]) -> float:
    if not preferred:
        return NO_SCHEDULE_PREFERENCE_SCORE

    exact = False
    if schedule.days and schedule.times:
        slots = schedule_slots(schedule.days, schedule.times)
        if any(s in preferred for s in slots):
            exact = True
            base = 1.0
        elif _shares_week_part(schedule.days, preferred):
            base = 0.6
        else:
            base = 0.2
    else:
        base = UNKNOWN_SCHEDULE_SCORE

    score = min(base + _FLEXIBILITY_BONUS[schedule.flexibility], 1.0)

    # One allowed slot and no exact hit is close to a deal-breaker.
    if len(set(preferred)) == 1 and not exact:
        return max(score * SINGLE_SLOT_PENALTY, SINGLE_SLOT_FLOOR)
    return score


# ---------------------------------------------------------------------------
# Budget and quality
# ---------------------------------------------------------------------------


def score_budget(pricing: Pricing, budget: Budget | None) -> float:
    if pricing.type == PricingType.free:
        return 1.0
    if budget is None or not budget.max:
        return NO_BUDGET_SCORE

    cost = pricing.amount or (pricing.range.max if pricing.range else 0)
    if not cost:
        return UNKNOWN_COST_SCORE
    if cost <= budget.max:
        return 1.0
    if cost <= budget.max * 1.2:
        return 0.7
    if cost <= budget.max * 1.5:
        return 0.4
    return 0.1


def score_quality(provider: ProviderInfo) -> float:
    score = 0.5
    if provider.rating is not None:
        score += (provider.rating - 3) * 0.1
    if provider.review_count:
        score += min(provider.review_count / 100, 1.0) * 0.2
    if provider.verified:
        score += 0.1
    if provider.experience:
        score += min(provider.experience / 10, 1.0) * 0.1
    return _clamp(score)


# ---------------------------------------------------------------------------
# Blending
# ---------------------------------------------------------------------------


def score_factors(activity: ActivityRecord, family: FamilyProfile) -> FactorScores:
    """Run all six scorers for one activity."""
    return FactorScores(
        age=score_age(activity.age_range, family.children),
        interests=score_interests(activity.interests, family.interests),
        location=score_location(activity.location, family.location),
        schedule=score_schedule(activity.schedule, family.preferences.schedule),
        budget=score_budget(activity.pricing, family.preferences.budget),
        quality=score_quality(activity.provider),
    )


def practical_score(scores: FactorScores, config: EngineConfig = DEFAULT_ENGINE_CONFIG) -> float:
    w = config.weights
    weighted = (
        scores.age * w.age
        + scores.interests * w.interests
        + scores.location * w.location
        + scores.schedule * w.schedule
        + scores.budget * w.budget
        + scores.quality * w.quality
    )
    return _clamp(weighted / w.total) if w.total else 0.0


def blend(
    vector_similarity: float,
    scores: FactorScores,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> tuple[float, float]:
    """Return ``(practical_score, match_score)`` for one candidate."""
    practical = practical_score(scores, config)
    similarity = _clamp(vector_similarity)
    match = similarity * config.vector_weight + practical * (1 - config.vector_weight)
    return practical, _clamp(match)


def passes_cutoff(match_score: float, config: EngineConfig = DEFAULT_ENGINE_CONFIG) -> bool:
    return match_score >= config.min_match_score
