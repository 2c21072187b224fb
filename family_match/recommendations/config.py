from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class ScoringWeights:
    age: float = 0.25
    interests: float = 0.20
    location: float = 0.10
    schedule: float = 0.10
    budget: float = 0.03
    quality: float = 0.02

    @property
    def total(self) -> float:
        return self.age + self.interests + self.location + self.schedule + self.budget + self.quality


SCORING_PROFILES: dict[str, ScoringWeights] = {
    "full": ScoringWeights(),
    "lightweight": ScoringWeights(
        age=0.3, interests=0.3, location=0.25, schedule=0.0, budget=0.1, quality=0.05,
    ),
}


def get_scoring_weights(profile: str = "full") -> ScoringWeights:
    """Return the factor weights for a named profile, defaulting to ``full``."""
    return SCORING_PROFILES.get(profile, SCORING_PROFILES["full"])


@dataclass(frozen=True)
class EngineConfig:
    scoring_profile: str = os.getenv("FAMILY_MATCH_SCORING_PROFILE", "full")
    vector_weight: float = 0.3
    min_match_score: float = 0.2
    overfetch_factor: int = 3
    default_limit: int = 20
    default_diversity_weight: float = 0.3
    search_score_threshold: float = 0.1
    search_timeout: float = float(os.getenv("FAMILY_MATCH_SEARCH_TIMEOUT", "10"))
    scoring_workers: int = int(os.getenv("FAMILY_MATCH_SCORING_WORKERS", "1"))
    weights: ScoringWeights = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "weights", get_scoring_weights(self.scoring_profile))


DEFAULT_ENGINE_CONFIG = EngineConfig()
