"""
Filter evaluation for discovery cards.

Each filter field is one clause; clauses are AND-combined and independent
of each other, so evaluation order never changes the result. The default
filter set admits every candidate.

Missing Candidate Data:
- Unknown age, budget or distance passes the range clauses
- Membership clauses (gender, housing types, lifestyle sets) exclude a
  candidate whose attribute is missing once the set is non-empty
- Deal-breakers exclude only candidates that state the trait
"""

import logging
from datetime import date
from typing import Callable, List, Optional, Tuple, Iterable

from ..deck.cards import DiscoveryCard
from ..profiles.traits import exhibits
from .filters import DiscoveryFilters

logger = logging.getLogger(__name__)

Clause = Callable[[DiscoveryFilters, DiscoveryCard, Optional[date]], bool]


def _age(filters: DiscoveryFilters, card: DiscoveryCard, today: Optional[date]) -> bool:
    age = card.profile.age(today)
    return age is None or filters.age_range.contains(age)


def _budget(filters: DiscoveryFilters, card: DiscoveryCard, today: Optional[date]) -> bool:
    budget = card.profile.roommate.budget_range
    return budget is None or budget.overlaps(filters.budget_range)


def _distance(filters: DiscoveryFilters, card: DiscoveryCard, today: Optional[date]) -> bool:
    return card.distance is None or card.distance <= filters.max_distance


def _gender(filters: DiscoveryFilters, card: DiscoveryCard, today: Optional[date]) -> bool:
    return not filters.genders or card.profile.gender in filters.genders


def _housing(filters: DiscoveryFilters, card: DiscoveryCard, today: Optional[date]) -> bool:
    if not filters.housing_types:
        return True
    return any(t in filters.housing_types for t in card.profile.roommate.housing_types)


def _lifestyle(filters: DiscoveryFilters, card: DiscoveryCard, today: Optional[date]) -> bool:
    for category, accepted in filters.lifestyle.active().items():
        if getattr(card.profile.lifestyle, category) not in accepted:
            return False
    return True


def _deal_breakers(filters: DiscoveryFilters, card: DiscoveryCard, today: Optional[date]) -> bool:
    return not any(exhibits(flag, card.profile.lifestyle)
                   for flag in filters.deal_breakers.active())


def _interests(filters: DiscoveryFilters, card: DiscoveryCard, today: Optional[date]) -> bool:
    required = {i.lower() for i in filters.interests}
    return required <= {i.lower() for i in card.profile.interests}


def _photos(filters: DiscoveryFilters, card: DiscoveryCard, today: Optional[date]) -> bool:
    return not filters.has_photos or len(card.profile.photos) >= 1


def _verified(filters: DiscoveryFilters, card: DiscoveryCard, today: Optional[date]) -> bool:
    return not filters.is_verified or card.profile.is_verified


def _min_score(filters: DiscoveryFilters, card: DiscoveryCard, today: Optional[date]) -> bool:
    return card.compatibility_score >= filters.min_compatibility_score


CLAUSES: List[Tuple[str, Clause]] = [
    ("age", _age),
    ("budget", _budget),
    ("distance", _distance),
    ("gender", _gender),
    ("housing_types", _housing),
    ("lifestyle", _lifestyle),
    ("deal_breakers", _deal_breakers),
    ("interests", _interests),
    ("has_photos", _photos),
    ("is_verified", _verified),
    ("min_compatibility_score", _min_score),
]


def matches(filters: DiscoveryFilters, card: DiscoveryCard, today: Optional[date] = None) -> bool:
    """
    Whether ``card`` passes every clause of ``filters``.

    Args:
        filters: Viewer's filter set
        card: Scored candidate card
        today: Reference date for ages (default: current date)

    Returns:
        True if the candidate is admitted
    """
    return all(clause(filters, card, today) for _, clause in CLAUSES)


def rejection_reasons(
    filters: DiscoveryFilters,
    card: DiscoveryCard,
    today: Optional[date] = None
) -> List[str]:
    """Names of the clauses ``card`` fails (empty when it is admitted)."""
    return [name for name, clause in CLAUSES if not clause(filters, card, today)]


def apply_filters(
    filters: DiscoveryFilters,
    cards: Iterable[DiscoveryCard],
    today: Optional[date] = None
) -> List[DiscoveryCard]:
    """
    Keep the cards admitted by ``filters``, preserving order.

    Args:
        filters: Viewer's filter set
        cards: Candidate cards
        today: Reference date for ages

    Returns:
        Admitted cards
    """
    admitted = []
    for card in cards:
        if matches(filters, card, today):
            admitted.append(card)
        elif logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"Filtered out {card.id}: {rejection_reasons(filters, card, today)}")
    return admitted
