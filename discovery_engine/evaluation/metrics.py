"""
Discovery analytics.

Summaries of what a viewer did in a discovery session: how many cards
they saw and swiped, how compatible those cards were, and what the
profiles they liked have in common. These describe behavior within one
session; they are not a measure of match quality.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Any, Optional, Iterable
import json

import numpy as np
import pandas as pd

from ..deck.cards import DiscoveryCard
from ..matching.ledger import MatchLedger

logger = logging.getLogger(__name__)

SWIPE_COLUMNS = ["card_id", "user_id", "action", "compatibility_score", "age",
                 "budget_min", "budget_max", "distance", "interests"]


@dataclass
class ScoreDistributionStats:
    """Statistics about compatibility score distribution."""
    count: int
    mean: float
    std: float
    min: float
    max: float
    quantiles: Dict[str, float]  # e.g., {"p10": 42.0, "p50": 61.0, "p90": 80.0}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": int(self.count),
            "mean": float(self.mean),
            "std": float(self.std),
            "min": float(self.min),
            "max": float(self.max),
            "quantiles": {k: float(v) for k, v in self.quantiles.items()}
        }


@dataclass
class DiscoveryAnalytics:
    """
    Per-session discovery analytics.

    Attributes:
        total_views: Cards the viewer has seen
        total_likes: Plain likes
        total_passes: Passes
        total_super_likes: Super-likes
        mutual_matches: Mutual matches involving the viewer
        average_compatibility_score: Mean score of the cards seen
        top_interests: Most common interests among liked profiles
        preferred_age_range: Age span of liked profiles
        preferred_budget_range: Median budget bounds of liked profiles
    """
    total_views: int = 0
    total_likes: int = 0
    total_passes: int = 0
    total_super_likes: int = 0
    mutual_matches: int = 0
    average_compatibility_score: float = 0.0
    top_interests: List[str] = field(default_factory=list)
    preferred_age_range: Optional[Dict[str, float]] = None
    preferred_budget_range: Optional[Dict[str, float]] = None

    @property
    def like_rate(self) -> float:
        swipes = self.total_likes + self.total_super_likes + self.total_passes
        if swipes == 0:
            return 0.0
        return (self.total_likes + self.total_super_likes) / swipes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalViews": int(self.total_views),
            "totalLikes": int(self.total_likes),
            "totalPasses": int(self.total_passes),
            "totalSuperLikes": int(self.total_super_likes),
            "mutualMatches": int(self.mutual_matches),
            "averageCompatibilityScore": float(self.average_compatibility_score),
            "topInterests": list(self.top_interests),
            "preferredAgeRange": self.preferred_age_range,
            "preferredBudgetRange": self.preferred_budget_range,
        }

    def summary(self) -> str:
        """Generate text summary of the analytics."""
        lines = [
            "Discovery Analytics",
            "=" * 50,
            f"  Views:        {self.total_views}",
            f"  Likes:        {self.total_likes}",
            f"  Super-likes:  {self.total_super_likes}",
            f"  Passes:       {self.total_passes}",
            f"  Like rate:    {self.like_rate:.2%}",
            f"  Mutual:       {self.mutual_matches}",
            f"  Avg score:    {self.average_compatibility_score:.1f}",
        ]
        if self.top_interests:
            lines.append(f"  Top interests: {', '.join(self.top_interests)}")
        if self.preferred_age_range:
            lines.append(f"  Liked ages:   {self.preferred_age_range['min']:g}-"
                         f"{self.preferred_age_range['max']:g}")
        if self.preferred_budget_range:
            lines.append(f"  Liked budget: {self.preferred_budget_range['min']:g}-"
                         f"{self.preferred_budget_range['max']:g}")
        return "\n".join(lines)


def _action(card: DiscoveryCard) -> Optional[str]:
    if card.is_super_liked:
        return "super_like"
    if card.is_liked:
        return "like"
    if card.is_passed:
        return "pass"
    return None


def swipes_to_frame(cards: Iterable[DiscoveryCard], today: Optional[date] = None) -> pd.DataFrame:
    """
    One row per swiped card.

    Args:
        cards: Deck cards (unswiped cards are skipped)
        today: Reference date for ages

    Returns:
        DataFrame with SWIPE_COLUMNS
    """
    rows = []
    for card in cards:
        action = _action(card)
        if action is None:
            continue
        budget = card.profile.roommate.budget_range
        rows.append({
            "card_id": card.id,
            "user_id": card.profile.user_id,
            "action": action,
            "compatibility_score": card.compatibility_score,
            "age": card.profile.age(today),
            "budget_min": budget.min if budget else np.nan,
            "budget_max": budget.max if budget else np.nan,
            "distance": card.distance if card.distance is not None else np.nan,
            "interests": [i.lower() for i in card.profile.interests],
        })
    return pd.DataFrame(rows, columns=SWIPE_COLUMNS)


def compute_discovery_analytics(
    cards: List[DiscoveryCard],
    ledger: Optional[MatchLedger] = None,
    viewer_id: Optional[str] = None,
    total_views: Optional[int] = None,
    top_k: int = 5,
    today: Optional[date] = None
) -> DiscoveryAnalytics:
    """
    Compute analytics for a session's deck.

    Args:
        cards: Cards of the session's deck
        ledger: Ledger holding the viewer's mutual matches
        viewer_id: Viewer user id (needed to count mutual matches)
        total_views: Cards seen; defaults to the number of swiped cards
        top_k: Number of interests to report
        today: Reference date for ages

    Returns:
        DiscoveryAnalytics instance
    """
    df = swipes_to_frame(cards, today)
    mutual = len(ledger.mutuals_for(viewer_id)) if ledger is not None and viewer_id else 0
    views = len(df) if total_views is None else total_views

    if df.empty:
        return DiscoveryAnalytics(total_views=views, mutual_matches=mutual)

    counts = df["action"].value_counts()
    liked = df[df["action"].isin(["like", "super_like"])]

    top_interests: List[str] = []
    if not liked.empty:
        exploded = liked["interests"].explode().dropna()
        if not exploded.empty:
            # ties break alphabetically
            tally = exploded.value_counts().reset_index()
            tally.columns = ["interest", "count"]
            tally = tally.sort_values(["count", "interest"], ascending=[False, True])
            top_interests = tally["interest"].head(top_k).tolist()

    age_range = None
    ages = liked["age"].dropna()
    if not ages.empty:
        age_range = {"min": float(ages.min()), "max": float(ages.max())}

    budget_range = None
    budgets = liked[["budget_min", "budget_max"]].dropna()
    if not budgets.empty:
        budget_range = {"min": float(budgets["budget_min"].median()),
                        "max": float(budgets["budget_max"].median())}

    return DiscoveryAnalytics(
        total_views=views,
        total_likes=int(counts.get("like", 0)),
        total_passes=int(counts.get("pass", 0)),
        total_super_likes=int(counts.get("super_like", 0)),
        mutual_matches=mutual,
        average_compatibility_score=round(float(df["compatibility_score"].mean()), 2),
        top_interests=top_interests,
        preferred_age_range=age_range,
        preferred_budget_range=budget_range,
    )


def compute_score_distribution_stats(
    scores: np.ndarray,
    quantiles: List[float] = [0.1, 0.25, 0.5, 0.75, 0.9]
) -> ScoreDistributionStats:
    """
    Compute distribution statistics for compatibility scores.

    Args:
        scores: Array of overall scores
        quantiles: Quantile values to compute (default: p10, p25, p50, p75, p90)

    Returns:
        ScoreDistributionStats instance (all zeros for an empty array)
    """
    scores = np.asarray(scores, dtype=float)
    if scores.size == 0:
        logger.warning("No scores to summarize")
        return ScoreDistributionStats(
            count=0, mean=0.0, std=0.0, min=0.0, max=0.0,
            quantiles={f"p{int(q * 100)}": 0.0 for q in quantiles}
        )

    quantile_dict = {
        f"p{int(q * 100)}": float(np.percentile(scores, q * 100))
        for q in quantiles
    }

    return ScoreDistributionStats(
        count=int(scores.size),
        mean=float(np.mean(scores)),
        std=float(np.std(scores)),
        min=float(np.min(scores)),
        max=float(np.max(scores)),
        quantiles=quantile_dict
    )


@dataclass
class SessionReport:
    """
    Complete report for a discovery session run.

    Contains analytics, the viewer's ledger and the score distribution of
    the deck.
    """
    viewer_id: str
    analytics: DiscoveryAnalytics
    score_stats: ScoreDistributionStats
    ledger: Dict[str, Any] = field(default_factory=dict)
    additional_metrics: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "viewer_id": self.viewer_id,
            "analytics": self.analytics.to_dict(),
            "score_stats": self.score_stats.to_dict(),
            "ledger": self.ledger,
            "additional_metrics": self.additional_metrics,
        }

    def save(self, filepath: str) -> None:
        """Save report to JSON file."""
        with open(filepath, "w") as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.info(f"Saved session report to {filepath}")

    def summary(self) -> str:
        """Generate text summary of the report."""
        lines = [
            f"Session Report: {self.viewer_id}",
            "",
            self.analytics.summary(),
            "",
            "Score Distribution:",
            f"  Cards: {self.score_stats.count}",
            f"  Mean:  {self.score_stats.mean:.2f}",
            f"  Std:   {self.score_stats.std:.2f}",
            f"  Min:   {self.score_stats.min:.0f}",
            f"  Max:   {self.score_stats.max:.0f}",
        ]
        for q_name, q_value in self.score_stats.quantiles.items():
            lines.append(f"  {q_name}: {q_value:.1f}")
        return "\n".join(lines)
