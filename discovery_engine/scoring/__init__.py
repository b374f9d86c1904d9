"""Compatibility scoring module."""

from .weights import ScoringWeights, ScoringConfig, CATEGORIES
from .compatibility import CompatibilityScorer, CompatibilityBreakdown, CompatibilityDetail

__all__ = [
    "ScoringWeights",
    "ScoringConfig",
    "CATEGORIES",
    "CompatibilityScorer",
    "CompatibilityBreakdown",
    "CompatibilityDetail",
]
