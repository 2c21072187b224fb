"""
Template-driven match explanations and classification.

Each factor score maps to a reason when it crosses a high threshold and to a
concern when it falls below a low one. No model calls are involved, so the
output is fully deterministic for a given score set.
"""
from __future__ import annotations

from .models import (
    ActivityRecord,
    FactorScores,
    FamilyProfile,
    LogisticalFit,
    RecommendationType,
)

# (lower bound, type); first band the score reaches wins.
RECOMMENDATION_BANDS: list[tuple[float, RecommendationType]] = [
    (0.8, RecommendationType.perfect_match),
    (0.65, RecommendationType.good_fit),
    (0.45, RecommendationType.worth_exploring),
]

AGE_APPROPRIATE_THRESHOLD = 0.7
LOGISTICS_THRESHOLD = 0.6
TRANSPORTATION_LOCATION_THRESHOLD = 0.8


def generate_match_explanation(
    activity: ActivityRecord,
    family: FamilyProfile,
    scores: FactorScores,
) -> tuple[list[str], list[str]]:
    """Return ``(match_reasons, concerns)`` for one scored activity."""
    reasons: list[str] = []
    concerns: list[str] = []

    if scores.age >= 0.8:
        names = " and ".join(c.name for c in family.children)
        reasons.append(f"Perfect age fit for {names}")
    elif scores.age >= 0.4:
        reasons.append("Good age fit for some children")
    elif scores.age < 0.3 and activity.age_range is not None:
        concerns.append(
            f"Age range ({activity.age_range.min}-{activity.age_range.max}) "
            "may not fit all children"
        )

    if scores.interests >= 0.7:
        top = ", ".join(family.interests[:3])
        reasons.append(f"Matches family interests in {top}")
    elif scores.interests < 0.3:
        concerns.append("Limited alignment with stated interests")

    if scores.location >= 0.8:
        reasons.append("Conveniently located in your area")
    elif scores.location < 0.4:
        concerns.append("May require travel outside your preferred area")

    if scores.schedule >= 0.8:
        reasons.append("Fits your preferred schedule")
    elif scores.schedule < 0.3:
        concerns.append("Schedule may conflict with your availability")

    if scores.budget >= 0.9:
        reasons.append("Within your budget range")
    elif scores.budget < 0.5:
        concerns.append("May exceed your stated budget")

    if scores.quality >= 0.8:
        reasons.append("Highly rated provider with excellent reviews")

    if activity.provider.verified:
        reasons.append("Verified provider with background checks")

    return reasons, concerns


def classify_match(match_score: float) -> RecommendationType:
    for bound, kind in RECOMMENDATION_BANDS:
        if match_score >= bound:
            return kind
    return RecommendationType.backup_option


def is_age_appropriate(scores: FactorScores) -> bool:
    return scores.age >= AGE_APPROPRIATE_THRESHOLD


def assess_logistics(scores: FactorScores, transportation_required: bool = False) -> LogisticalFit:
    return LogisticalFit(
        location=scores.location >= LOGISTICS_THRESHOLD,
        schedule=scores.schedule >= LOGISTICS_THRESHOLD,
        budget=scores.budget >= LOGISTICS_THRESHOLD,
        transportation=(
            not transportation_required
            or scores.location >= TRANSPORTATION_LOCATION_THRESHOLD
        ),
    )
