"""
Scoring weights and scorer configuration.

The overall compatibility score is a weighted combination of seven
category sub-scores:

    overall = sum(score_c * weight_c for c in CATEGORIES)

The weights must always sum to 1.0 so that the overall score stays in
[0, 100] whenever every sub-score does.
"""

import logging
from dataclasses import dataclass, asdict, field
from typing import Dict, Any
import json

import numpy as np

logger = logging.getLogger(__name__)

CATEGORIES = ["lifestyle", "budget", "location", "preferences",
              "deal_breakers", "interests", "age"]

WEIGHT_TOLERANCE = 1e-6


@dataclass
class ScoringWeights:
    """
    Per-category weights for the overall compatibility score.

    Attributes:
        lifestyle: Weight for lifestyle compatibility
        budget: Weight for budget overlap
        location: Weight for location/distance
        preferences: Weight for must-have coverage
        deal_breakers: Weight for deal-breaker violations
        interests: Weight for shared interests
        age: Weight for age-range containment
    """
    lifestyle: float = 0.25
    budget: float = 0.20
    location: float = 0.15
    preferences: float = 0.20
    deal_breakers: float = 0.10
    interests: float = 0.05
    age: float = 0.05

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Validate that weights are non-negative and sum to 1."""
        for name in CATEGORIES:
            if getattr(self, name) < 0:
                raise ValueError(f"Weight {name} must be non-negative, got {getattr(self, name)}")
        total = self.total()
        if abs(total - 1.0) > WEIGHT_TOLERANCE:
            raise ValueError(f"Scoring weights must sum to 1.0, got {total}")

    def total(self) -> float:
        return float(sum(getattr(self, name) for name in CATEGORIES))

    def as_vector(self) -> np.ndarray:
        """Weights as an array in CATEGORIES order."""
        return np.array([getattr(self, name) for name in CATEGORIES], dtype=float)

    def with_overrides(self, overrides: Dict[str, float]) -> "ScoringWeights":
        """
        Apply partial weight overrides and renormalize.

        The overridden weights keep their relative proportions; the result
        is rescaled so it sums to 1.0.

        Args:
            overrides: Mapping of category name to new weight

        Returns:
            New ScoringWeights instance
        """
        unknown = [k for k in overrides if k not in CATEGORIES]
        if unknown:
            raise ValueError(f"Unknown weight categories: {unknown}")

        merged = {**self.to_dict(), **{k: float(v) for k, v in overrides.items()}}
        vector = np.array([merged[name] for name in CATEGORIES], dtype=float)
        if (vector < 0).any():
            raise ValueError(f"Weights must be non-negative: {merged}")
        total = vector.sum()
        if total <= 0:
            raise ValueError("At least one weight must be positive")

        normalized = vector / total
        # Push rounding drift into the largest weight so the sum is exact
        normalized[int(np.argmax(normalized))] += 1.0 - normalized.sum()
        return ScoringWeights(**{name: float(w) for name, w in zip(CATEGORIES, normalized)})

    def to_dict(self) -> Dict[str, float]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ScoringWeights":
        """Create from dictionary."""
        return cls(**{k: float(v) for k, v in d.items()})


@dataclass
class ScoringConfig:
    """
    Configuration for the compatibility scorer.

    Attributes:
        weights: Category weights (sum to 1)
        budget_max_gap: Budget gap (currency units) at which the budget score reaches 0
        default_radius_miles: Location radius when the viewer sets none
        location_penalty_per_mile: Points lost per mile beyond the radius
        deal_breaker_penalty: Points lost per violated deal-breaker
        age_penalty_per_year: Points lost per year outside the age range
    """
    weights: ScoringWeights = field(default_factory=ScoringWeights)
    budget_max_gap: float = 1500.0
    default_radius_miles: float = 10.0
    location_penalty_per_mile: float = 2.0
    deal_breaker_penalty: float = 50.0
    age_penalty_per_year: float = 10.0

    def validate(self) -> None:
        """Validate configuration values."""
        self.weights.validate()
        if self.budget_max_gap <= 0:
            raise ValueError(f"budget_max_gap must be positive, got {self.budget_max_gap}")
        if self.default_radius_miles < 0:
            raise ValueError(f"default_radius_miles must be >= 0, got {self.default_radius_miles}")
        for name in ["location_penalty_per_mile", "deal_breaker_penalty", "age_penalty_per_year"]:
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ScoringConfig":
        """Create from dictionary."""
        d = dict(d)
        weights = ScoringWeights.from_dict(d.pop("weights", {}))
        return cls(weights=weights, **d)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "ScoringConfig":
        """Create from main config dictionary."""
        scoring_config = config.get("scoring", {})
        return cls(
            weights=ScoringWeights.from_dict(scoring_config.get("weights", {})),
            budget_max_gap=scoring_config.get("budget_max_gap", 1500.0),
            default_radius_miles=scoring_config.get("default_radius_miles", 10.0),
            location_penalty_per_mile=scoring_config.get("location_penalty_per_mile", 2.0),
            deal_breaker_penalty=scoring_config.get("deal_breaker_penalty", 50.0),
            age_penalty_per_year=scoring_config.get("age_penalty_per_year", 10.0),
        )

    def save(self, filepath: str) -> None:
        """Save to JSON file."""
        with open(filepath, "w") as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.info(f"Saved scoring config to {filepath}")

    @classmethod
    def load(cls, filepath: str) -> "ScoringConfig":
        """Load from JSON file."""
        with open(filepath, "r") as f:
            d = json.load(f)
        return cls.from_dict(d)
