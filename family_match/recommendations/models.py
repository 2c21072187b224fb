from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _FrozenModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# ── Enumerations ─────────────────────────────────────────────────────────


class TimeSlot(str, Enum):
    weekday_morning = "weekday_morning"
    weekday_afternoon = "weekday_afternoon"
    weekday_evening = "weekday_evening"
    weekend_morning = "weekend_morning"
    weekend_afternoon = "weekend_afternoon"
    weekend_evening = "weekend_evening"

    @property
    def is_weekend(self) -> bool:
        return self.value.startswith("weekend")


class AdultRole(str, Enum):
    parent = "parent"
    guardian = "guardian"
    caregiver = "caregiver"


class Flexibility(str, Enum):
    fixed = "fixed"
    flexible = "flexible"
    very_flexible = "very_flexible"


class PricingType(str, Enum):
    free = "free"
    per_session = "per_session"
    per_month = "per_month"
    per_program = "per_program"


class SourceKind(str, Enum):
    provider = "provider"
    event = "event"
    session = "session"


class RecommendationType(str, Enum):
    perfect_match = "perfect_match"
    good_fit = "good_fit"
    worth_exploring = "worth_exploring"
    backup_option = "backup_option"


# ── Family profile (external input) ──────────────────────────────────────


class Coordinates(_FrozenModel):
    lat: float
    lng: float


class Adult(_CamelModel):
    name: str = Field(..., min_length=1, max_length=50)
    role: AdultRole = AdultRole.parent


class Child(_CamelModel):
    name: str = Field(..., min_length=1, max_length=50)
    age: int = Field(..., ge=0, le=18)
    interests: list[str] = Field(default_factory=list)
    special_needs: str | None = None
    allergies: list[str] = Field(default_factory=list)


class FamilyLocation(_CamelModel):
    neighborhood: str | None = None
    city: str | None = None
    zip_code: str | None = None
    coordinates: Coordinates | None = None
    transportation_needs: bool = False


class Budget(_CamelModel):
    min: float | None = Field(default=None, ge=0)
    max: float | None = Field(default=None, ge=0)
    currency: str = "USD"


class Preferences(_CamelModel):
    budget: Budget | None = None
    schedule: list[TimeSlot] = Field(default_factory=list)
    activity_types: list[str] = Field(default_factory=list)
    languages: list[str] = Field(default_factory=list)


class FamilyProfile(_CamelModel):
    adults: list[Adult] = Field(default_factory=list)
    children: list[Child] = Field(default_factory=list)
    location: FamilyLocation = Field(default_factory=FamilyLocation)
    preferences: Preferences = Field(default_factory=Preferences)
    notes: str | None = None

    @property
    def interests(self) -> list[str]:
        """Child interests followed by preferred activity types, deduplicated case-insensitively."""
        values = [i for child in self.children for i in child.interests]
        merged: dict[str, str] = {}
        for value in values + list(self.preferences.activity_types):
            merged.setdefault(value.strip().lower(), value)
        return list(merged.values())


# ── Request options and filters ──────────────────────────────────────────


class AgeBounds(_FrozenModel):
    min: int = Field(..., ge=0, le=25)
    max: int = Field(..., ge=0, le=25)

    @model_validator(mode="after")
    def _ordered(self) -> "AgeBounds":
        if self.min > self.max:
            raise ValueError("age range min must not exceed max")
        return self


class BudgetRange(_CamelModel):
    min: float | None = Field(default=None, ge=0)
    max: float | None = Field(default=None, ge=0)


class RecommendationFilters(_CamelModel):
    max_distance: float | None = Field(default=None, gt=0, le=50)
    budget_range: BudgetRange | None = None
    schedule: list[TimeSlot] = Field(default_factory=list)
    age_ranges: list[AgeBounds] = Field(default_factory=list)
    interests: list[str] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    languages: list[str] = Field(default_factory=list)
    special_needs: list[str] = Field(default_factory=list)
    transportation_required: bool = False


class RecommendationOptions(_CamelModel):
    limit: int = Field(default=20, ge=1, le=100)
    diversity_weight: float = Field(default=0.3, ge=0.0, le=1.0)
    filters: RecommendationFilters = Field(default_factory=RecommendationFilters)
    include_score: bool = True


# ── Raw candidates (vector search output) ────────────────────────────────


_EVENT_TYPES = {"camp", "event", "class", "program"}


class RawCandidate(BaseModel):
    id: int | str
    score: float = 0.0
    payload: dict[str, Any] = Field(default_factory=dict)

    @property
    def source(self) -> SourceKind:
        """Which upstream table shape the payload came from."""
        kind = str(self.payload.get("type") or "").lower()
        if kind == "session" or "session_id" in self.payload:
            return SourceKind.session
        if kind in _EVENT_TYPES or "camp_id" in self.payload or "event_id" in self.payload:
            return SourceKind.event
        return SourceKind.provider


# ── Canonical activity record ────────────────────────────────────────────


class ActivityLocation(_FrozenModel):
    neighborhood: str | None = None
    city: str | None = None
    zip_code: str | None = None
    address: str | None = None
    coordinates: Coordinates | None = None


class Schedule(_FrozenModel):
    days: tuple[str, ...] = ()
    times: tuple[str, ...] = ()
    recurring: bool = False
    flexibility: Flexibility = Flexibility.very_flexible


class PriceRange(_FrozenModel):
    min: float
    max: float


class Pricing(_FrozenModel):
    type: PricingType = PricingType.per_session
    amount: float | None = None
    currency: str | None = None
    range: PriceRange | None = None


class ProviderInfo(_FrozenModel):
    name: str = "Unknown Provider"
    rating: float | None = Field(default=None, ge=0, le=5)
    review_count: int | None = Field(default=None, ge=0)
    verified: bool = False
    experience: float | None = Field(default=None, ge=0)


class ActivityRecord(_FrozenModel):
    provider_id: str
    program_id: str | None = None
    source: SourceKind = SourceKind.provider
    name: str = "Unknown"
    description: str = ""
    category: str = "General"
    interests: tuple[str, ...] = ()
    age_range: AgeBounds | None = None
    location: ActivityLocation = Field(default_factory=ActivityLocation)
    schedule: Schedule = Field(default_factory=Schedule)
    pricing: Pricing = Field(default_factory=Pricing)
    provider: ProviderInfo = Field(default_factory=ProviderInfo)


# ── Scored output ────────────────────────────────────────────────────────


class FactorScores(_FrozenModel):
    age: float = Field(..., ge=0.0, le=1.0)
    interests: float = Field(..., ge=0.0, le=1.0)
    location: float = Field(..., ge=0.0, le=1.0)
    schedule: float = Field(..., ge=0.0, le=1.0)
    budget: float = Field(..., ge=0.0, le=1.0)
    quality: float = Field(..., ge=0.0, le=1.0)


class LogisticalFit(_FrozenModel):
    location: bool
    schedule: bool
    budget: bool
    transportation: bool


class ScoredCandidate(_FrozenModel):
    activity: ActivityRecord
    vector_similarity: float = Field(..., ge=0.0, le=1.0)
    practical_score: float = Field(..., ge=0.0, le=1.0)
    match_score: float = Field(..., ge=0.0, le=1.0)
    ranking: FactorScores
    match_reasons: list[str] = Field(default_factory=list)
    concerns: list[str] = Field(default_factory=list)
    recommendation_type: RecommendationType = RecommendationType.backup_option
    age_appropriate: bool = False
    logistical_fit: LogisticalFit | None = None

    @property
    def provider_id(self) -> str:
        return self.activity.provider_id


class SearchMetadata(_CamelModel):
    total_matches: int
    vector_search_results: int
    filters_applied: list[str] = Field(default_factory=list)
    search_query: str
    embedding: list[float] | None = None


class Performance(_CamelModel):
    embedding_ms: float = 0.0
    vector_search_ms: float = 0.0
    scoring_ms: float = 0.0
    selection_ms: float = 0.0
    total_ms: float = 0.0


class RecommendationResult(_CamelModel):
    recommendations: list[ScoredCandidate]
    search_metadata: SearchMetadata
    performance: Performance
