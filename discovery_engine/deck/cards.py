"""
Discovery cards.

A card pairs a candidate profile with the compatibility score computed
for the current viewer, the distance between them, and the viewer's
swipe state. Cards are created when a profile is fetched and scored and
live for one deck session; swipes mark them, they are never deleted.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional, Dict, Any

from ..profiles.geo import distance_between
from ..profiles.schema import UserProfile
from ..scoring.compatibility import CompatibilityScorer, CompatibilityBreakdown
from .actions import SwipeAction


@dataclass
class DiscoveryCard:
    """
    A scored candidate in the discovery deck.

    Attributes:
        id: Card identifier ("card_<profile id>")
        profile: Candidate profile
        compatibility_score: Overall score for the viewer [0, 100]
        compatibility_breakdown: Full scoring breakdown
        distance: Miles from the viewer, None when unknown
        is_liked, is_passed, is_super_liked: Swipe state from the latest swipe
    """
    id: str
    profile: UserProfile
    compatibility_score: int
    compatibility_breakdown: CompatibilityBreakdown
    distance: Optional[float] = None
    is_liked: bool = False
    is_passed: bool = False
    is_super_liked: bool = False

    @property
    def is_swiped(self) -> bool:
        return self.is_liked or self.is_passed

    def apply_swipe(self, action: SwipeAction) -> None:
        """Set the swipe flags from ``action``; earlier flags are overwritten."""
        self.is_liked = action.is_positive
        self.is_passed = action == SwipeAction.PASS
        self.is_super_liked = action == SwipeAction.SUPER_LIKE

    def clear_swipe(self) -> None:
        self.is_liked = False
        self.is_passed = False
        self.is_super_liked = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "profile": self.profile.to_dict(),
            "compatibilityScore": self.compatibility_score,
            "compatibilityBreakdown": self.compatibility_breakdown.to_dict(),
            "distance": self.distance,
            "isLiked": self.is_liked,
            "isPassed": self.is_passed,
            "isSuperLiked": self.is_super_liked,
        }


def build_card(
    viewer: UserProfile,
    candidate: UserProfile,
    scorer: CompatibilityScorer,
    today: Optional[date] = None,
    prefix: str = "card"
) -> DiscoveryCard:
    """
    Score ``candidate`` for ``viewer`` and wrap it in a fresh card.

    Args:
        viewer: The profile doing the discovering
        candidate: The profile being shown
        scorer: Compatibility scorer
        today: Reference date for ages
        prefix: Card id prefix ("card" for the deck, "search" for search results)

    Returns:
        Unswiped DiscoveryCard
    """
    distance = distance_between(viewer.location, candidate.location)
    breakdown = scorer.score(viewer, candidate, distance=distance, today=today)
    return DiscoveryCard(
        id=f"{prefix}_{candidate.id}",
        profile=candidate,
        compatibility_score=breakdown.overall,
        compatibility_breakdown=breakdown,
        distance=distance,
    )
