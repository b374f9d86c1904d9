"""Discovery session analytics and reporting."""

from .metrics import (
    DiscoveryAnalytics,
    ScoreDistributionStats,
    SessionReport,
    compute_discovery_analytics,
    compute_score_distribution_stats,
    swipes_to_frame,
)

__all__ = [
    "DiscoveryAnalytics",
    "ScoreDistributionStats",
    "SessionReport",
    "compute_discovery_analytics",
    "compute_score_distribution_stats",
    "swipes_to_frame",
]
