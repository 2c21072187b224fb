"""
Query text, filter descriptions and payload filters built from a request.

The search-query text is what the embedding collaborator encodes. The
payload filter is a small boolean tree understood by
:class:`~family_match.recommendations.search.InMemoryVectorIndex`:

    {"must": [clause, ...]}
    {"should": [clause, ...]}
    {"match": {"key": "category", "value": "Art"}}
    {"range": {"key": "age_range.min", "lte": 9}}

Keys are dotted paths into a normalized activity record.
"""
from __future__ import annotations

from typing import Any

from .models import FamilyProfile, RecommendationFilters, TimeSlot

SLOT_PHRASES: dict[TimeSlot, str] = {
    TimeSlot.weekday_morning: "weekday mornings",
    TimeSlot.weekday_afternoon: "weekday afternoons",
    TimeSlot.weekday_evening: "weekday evenings",
    TimeSlot.weekend_morning: "weekend mornings",
    TimeSlot.weekend_afternoon: "weekend afternoons",
    TimeSlot.weekend_evening: "weekend evenings",
}


def _num(value: float) -> str:
    return f"{value:g}"


def _describe_child(child) -> str:
    text = f"{child.age}-year-old {child.name}"
    if child.interests:
        text += f" interested in {', '.join(child.interests)}"
    if child.special_needs:
        text += f" with special needs: {child.special_needs}"
    return text


def build_search_query(profile: FamilyProfile) -> str:
    """Natural-language summary of a family, fed to the query embedder."""
    parts: list[str] = []

    children = "; ".join(_describe_child(c) for c in profile.children)
    parts.append(f"Family with children: {children}")

    loc = profile.location
    place = ", ".join(p for p in (loc.neighborhood, loc.city, loc.zip_code) if p)
    if place:
        parts.append(f"Located in {place}")

    prefs = profile.preferences
    if prefs.activity_types:
        parts.append(f"Looking for {', '.join(prefs.activity_types)} activities")

    if prefs.schedule:
        slots = ", ".join(SLOT_PHRASES.get(s, s.value) for s in prefs.schedule)
        parts.append(f"Available during {slots}")

    budget = prefs.budget
    if budget is not None and budget.max:
        if budget.min:
            parts.append(f"Budget: {budget.currency}{_num(budget.min)}-{_num(budget.max)}")
        else:
            parts.append(f"Budget: up to {budget.currency}{_num(budget.max)}")

    if prefs.languages:
        parts.append(f"Languages: {', '.join(prefs.languages)}")

    if profile.notes:
        parts.append(profile.notes)

    return ". ".join(parts)


def describe_filters(filters: RecommendationFilters) -> list[str]:
    """Human-readable list of the filters a request applied."""
    applied: list[str] = []

    if filters.budget_range is not None:
        low = _num(filters.budget_range.min or 0)
        high = _num(filters.budget_range.max) if filters.budget_range.max else ""
        applied.append(f"Budget: ${low}-{high}")

    if filters.age_ranges:
        ranges = ", ".join(f"{r.min}-{r.max}" for r in filters.age_ranges)
        applied.append(f"Age ranges: {ranges}")

    if filters.categories:
        applied.append(f"Categories: {', '.join(filters.categories)}")

    if filters.interests:
        applied.append(f"Interests: {', '.join(filters.interests)}")

    if filters.schedule:
        applied.append(f"Schedule: {', '.join(s.value for s in filters.schedule)}")

    if filters.max_distance:
        applied.append(f"Distance: within {_num(filters.max_distance)} miles")

    return applied


def _any_of(clauses: list[dict[str, Any]]) -> dict[str, Any]:
    return clauses[0] if len(clauses) == 1 else {"should": clauses}


def build_search_filter(filters: RecommendationFilters) -> dict[str, Any] | None:
    """Translate request filters into a payload filter, or ``None`` if empty."""
    conditions: list[dict[str, Any]] = []

    if filters.age_ranges:
        conditions.append(_any_of([
            {"must": [
                {"range": {"key": "age_range.min", "lte": r.max}},
                {"range": {"key": "age_range.max", "gte": r.min}},
            ]}
            for r in filters.age_ranges
        ]))

    if filters.categories:
        conditions.append(_any_of([
            {"match": {"key": "category", "value": c}} for c in filters.categories
        ]))

    if filters.interests:
        conditions.append(_any_of([
            {"match": {"key": "interests", "value": i}} for i in filters.interests
        ]))

    if filters.budget_range is not None and filters.budget_range.max is not None:
        ceiling = filters.budget_range.max
        conditions.append({"should": [
            {"match": {"key": "pricing.type", "value": "free"}},
            {"range": {"key": "pricing.amount", "lte": ceiling}},
            {"range": {"key": "pricing.range.max", "lte": ceiling}},
        ]})

    return {"must": conditions} if conditions else None
