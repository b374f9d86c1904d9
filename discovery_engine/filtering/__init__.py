"""Discovery filter definitions and evaluation."""

from .filters import DiscoveryFilters, LifestyleFilter
from .evaluator import matches, apply_filters, rejection_reasons

__all__ = [
    "DiscoveryFilters",
    "LifestyleFilter",
    "matches",
    "apply_filters",
    "rejection_reasons",
]
