"""
Compatibility scoring between a viewer and a candidate profile.

The scorer computes seven category sub-scores in [0, 100], each with a
list of signed reasons, and combines them with fixed weights:

    overall = round(sum(score_c * weight_c))

Scoring Policy:
- An empty viewer preference means "no preference" and scores 100
- Missing candidate data scores 0 for the rule that needed it
- Deal-breaker traits the candidate does not state are not violations
- Unknown distance falls back to comparing city and state

The scorer is a pure function: identical inputs give identical output.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Any, List, Optional, Tuple

import numpy as np

from ..profiles.schema import UserProfile
from ..profiles.traits import DEAL_BREAKER_TRAITS, violated_deal_breakers
from .weights import ScoringConfig, ScoringWeights, CATEGORIES

logger = logging.getLogger(__name__)

POSITIVE_THRESHOLD = 50


@dataclass
class CompatibilityDetail:
    """One rule that contributed to a category sub-score."""
    category: str
    score: int
    reason: str
    is_positive: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "score": self.score,
            "reason": self.reason,
            "isPositive": self.is_positive,
        }


@dataclass
class CompatibilityBreakdown:
    """
    Result of compatibility scoring.

    Attributes:
        overall: Weighted overall score [0, 100]
        lifestyle, budget, location, preferences, deal_breakers: Category sub-scores [0, 100]
        interests, age: Auxiliary sub-scores [0, 100]
        details: Per-category list of reasons
    """
    overall: int
    lifestyle: int
    budget: int
    location: int
    preferences: int
    deal_breakers: int
    interests: int
    age: int
    details: Dict[str, List[CompatibilityDetail]] = field(default_factory=dict)

    def sub_scores(self) -> Dict[str, int]:
        """Sub-scores keyed by category name."""
        return {name: getattr(self, name) for name in CATEGORIES}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "overall": self.overall,
            "lifestyle": self.lifestyle,
            "budget": self.budget,
            "location": self.location,
            "preferences": self.preferences,
            "dealBreakers": self.deal_breakers,
            "interests": self.interests,
            "age": self.age,
            "details": {
                category: [d.to_dict() for d in details]
                for category, details in self.details.items()
            },
        }


CategoryResult = Tuple[float, List[CompatibilityDetail]]


def _detail(category: str, score: float, reason: str) -> CompatibilityDetail:
    score = int(round(score))
    return CompatibilityDetail(category, score, reason, score >= POSITIVE_THRESHOLD)


def _money(amount: float) -> str:
    return f"${amount:,.0f}"


class CompatibilityScorer:
    """
    Compatibility scorer for roommate discovery.

    Attributes:
        config: ScoringConfig with weights and decay parameters
    """

    def __init__(self, config: Optional[ScoringConfig] = None):
        """
        Initialize the scorer.

        Args:
            config: ScoringConfig instance (defaults to the standard weights)
        """
        self.config = config or ScoringConfig()
        self.config.validate()
        logger.debug(f"Initialized CompatibilityScorer with weights={self.config.weights.to_dict()}")

    def set_weights(self, overrides: Dict[str, float]) -> None:
        """Override some category weights; the result is renormalized to sum to 1."""
        self.config.weights = self.config.weights.with_overrides(overrides)
        logger.info(f"Updated scoring weights: {self.config.weights.to_dict()}")

    def get_weights(self) -> ScoringWeights:
        return ScoringWeights(**self.config.weights.to_dict())

    def score(
        self,
        viewer: UserProfile,
        candidate: UserProfile,
        distance: Optional[float] = None,
        today: Optional[date] = None
    ) -> CompatibilityBreakdown:
        """
        Compute the compatibility breakdown of ``candidate`` for ``viewer``.

        Args:
            viewer: Profile whose roommate preferences drive the scoring
            candidate: Profile being scored
            distance: Miles between the two, or None when unknown
            today: Reference date for ages (default: current date)

        Returns:
            CompatibilityBreakdown with sub-scores and reasons
        """
        results = {
            "lifestyle": self._lifestyle(viewer, candidate),
            "budget": self._budget(viewer, candidate),
            "location": self._location(viewer, candidate, distance),
            "preferences": self._preferences(viewer, candidate),
            "deal_breakers": self._deal_breakers(viewer, candidate),
            "interests": self._interests(viewer, candidate),
            "age": self._age(viewer, candidate, today),
        }

        sub_scores = {
            name: int(round(float(np.clip(score, 0, 100))))
            for name, (score, _) in results.items()
        }
        vector = np.array([sub_scores[name] for name in CATEGORIES], dtype=float)
        overall = float(np.dot(vector, self.config.weights.as_vector()))
        overall = int(round(float(np.clip(overall, 0, 100))))

        return CompatibilityBreakdown(
            overall=overall,
            details={name: details for name, (_, details) in results.items()},
            **sub_scores
        )

    # -------------------------------------------------------------------------
    # Category rules
    # -------------------------------------------------------------------------

    def _lifestyle(self, viewer: UserProfile, candidate: UserProfile) -> CategoryResult:
        """Share of the candidate's habits that fall in the viewer's accepted sets."""
        accepted = viewer.roommate.preferred_lifestyle
        habits = candidate.lifestyle
        checks = [
            ("Cleanliness", accepted.cleanliness, habits.cleanliness),
            ("Social Level", accepted.social_level, habits.social_level),
            ("Sleep Schedule", accepted.sleep_schedule, habits.sleep_schedule),
        ]

        details = []
        points = []
        for label, accepted_values, value in checks:
            if not accepted_values:
                score, reason = 100, f"No {label.lower()} preference"
            elif value is None:
                score, reason = 0, f"{label} not specified"
            elif value in accepted_values:
                score, reason = 100, f"{label} matches your preference ({value.value})"
            else:
                score, reason = 0, f"{label} outside your preference ({value.value})"
            points.append(score)
            details.append(_detail(label, score, reason))

        return float(np.mean(points)), details

    def _budget(self, viewer: UserProfile, candidate: UserProfile) -> CategoryResult:
        """100 on overlap, then linear decay to 0 at ``budget_max_gap``."""
        wanted = viewer.roommate.budget_range
        offered = candidate.roommate.budget_range
        if wanted is None:
            return 100.0, [_detail("Budget Range", 100, "No budget preference")]
        if offered is None:
            return 0.0, [_detail("Budget Range", 0, "Budget not specified")]

        if wanted.overlaps(offered):
            low = max(wanted.min, offered.min)
            high = min(wanted.max, offered.max)
            reason = f"Budget ranges overlap ({_money(low)}-{_money(high)})"
            return 100.0, [_detail("Budget Range", 100, reason)]

        gap = wanted.gap_to(offered)
        score = 100.0 * max(0.0, 1.0 - gap / self.config.budget_max_gap)
        reason = f"Budget ranges don't overlap ({_money(gap)} apart)"
        return score, [_detail("Budget Range", score, reason)]

    def _location(
        self,
        viewer: UserProfile,
        candidate: UserProfile,
        distance: Optional[float]
    ) -> CategoryResult:
        """Full score within the radius, then a per-mile penalty."""
        radius = viewer.roommate.preferred_radius
        if radius is None:
            radius = self.config.default_radius_miles

        if distance is not None:
            if distance <= radius:
                return 100.0, [_detail("Location", 100, f"Within {radius:g} miles ({distance:g} mi)")]
            excess = distance - radius
            score = max(0.0, 100.0 - excess * self.config.location_penalty_per_mile)
            reason = f"{distance:g} miles away, {excess:g} beyond your {radius:g} mile radius"
            return score, [_detail("Location", score, reason)]

        # Unknown distance: compare city and state
        mine = viewer.location
        theirs = candidate.location
        if mine is None or not mine.city:
            return 100.0, [_detail("Location", 100, "No location preference")]
        if theirs is None or not theirs.city:
            return 0.0, [_detail("Location", 0, "Location not specified")]

        if mine.city.lower() == theirs.city.lower():
            score, reason = 100, "Same city"
        elif mine.state and mine.state.lower() == (theirs.state or "").lower():
            score, reason = 75, "Same state"
        else:
            score, reason = 25, "Different locations"
        return float(score), [_detail("Location", score, reason)]

    def _preferences(self, viewer: UserProfile, candidate: UserProfile) -> CategoryResult:
        """Share of the viewer's must-haves the candidate offers."""
        must_haves = []
        for item in viewer.roommate.must_haves:
            if item.strip() and item.strip().lower() not in [m.lower() for m in must_haves]:
                must_haves.append(item.strip())
        if not must_haves:
            return 100.0, [_detail("Must-Haves", 100, "No must-haves set")]

        offered = candidate.offered_traits()
        details = []
        matched = 0
        for item in must_haves:
            if item.lower() in offered:
                matched += 1
                details.append(_detail("Must-Haves", 100, f"Has must-have: {item}"))
            else:
                details.append(_detail("Must-Haves", 0, f"Missing must-have: {item}"))

        return 100.0 * matched / len(must_haves), details

    def _deal_breakers(self, viewer: UserProfile, candidate: UserProfile) -> CategoryResult:
        """100 minus a fixed penalty per violated deal-breaker, floored at 0."""
        flags = viewer.roommate.deal_breakers.active()
        if not flags:
            return 100.0, [_detail("Deal Breakers", 100, "No deal breakers set")]

        violations = violated_deal_breakers(flags, candidate.lifestyle)
        if not violations:
            return 100.0, [_detail("Deal Breakers", 100, "No deal breaker violations")]

        details = []
        for flag in violations:
            _, reason = DEAL_BREAKER_TRAITS[flag]
            label = flag.replace("_", " ").title()
            details.append(CompatibilityDetail(label, 0, reason, False))

        score = max(0.0, 100.0 - self.config.deal_breaker_penalty * len(violations))
        return score, details

    def _interests(self, viewer: UserProfile, candidate: UserProfile) -> CategoryResult:
        """Shared interests relative to the smaller interest set."""
        mine = []
        for interest in viewer.interests:
            if interest.lower() not in [m.lower() for m in mine]:
                mine.append(interest)
        if not mine:
            return 100.0, [_detail("Common Interests", 100, "No interests to compare")]

        theirs = {i.lower() for i in candidate.interests}
        if not theirs:
            return 0.0, [_detail("Common Interests", 0, "No interests listed")]

        common = [i for i in mine if i.lower() in theirs]
        score = 100.0 * len(common) / min(len(mine), len(theirs))
        if common:
            shown = ", ".join(common[:3]) + ("..." if len(common) > 3 else "")
            reason = f"{len(common)} shared interests: {shown}"
        else:
            reason = "No common interests found"
        return score, [_detail("Common Interests", score, reason)]

    def _age(self, viewer: UserProfile, candidate: UserProfile, today: Optional[date]) -> CategoryResult:
        """100 inside the viewer's age range, minus a penalty per year outside."""
        age_range = viewer.roommate.age_range
        if age_range is None:
            return 100.0, [_detail("Age Preference", 100, "No age preference")]

        age = candidate.age(today)
        if age is None:
            return 0.0, [_detail("Age Preference", 0, "Age not specified")]

        if age_range.contains(age):
            return 100.0, [_detail("Age Preference", 100, f"Age {age} matches your preference")]

        years_out = age_range.min - age if age < age_range.min else age - age_range.max
        score = max(0.0, 100.0 - years_out * self.config.age_penalty_per_year)
        reason = f"Age {age} is {years_out:g} years outside your preferred range"
        return score, [_detail("Age Preference", score, reason)]
