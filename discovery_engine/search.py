"""
Profile search.

Free-text search over candidate profiles, scored for the viewer, filtered
with the viewer's (partial) filters, sorted and paginated. Text matches
are case-insensitive substring matches against bio, occupation, interests
and city.

Sorting:
- compatibility: overall score
- distance: miles from the viewer
- recent: profile ``updated_at``
- age: candidate age

Cards missing the sort value always sort last. Ties keep profile id
order. Pages are 1-based.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Any, List, Optional, Iterable, Union

from .deck.cards import DiscoveryCard, build_card
from .errors import ValidationError
from .filtering.evaluator import apply_filters
from .filtering.filters import DiscoveryFilters
from .profiles.schema import UserProfile
from .scoring.compatibility import CompatibilityScorer

logger = logging.getLogger(__name__)

SORT_FIELDS = ["compatibility", "distance", "recent", "age"]
SORT_ORDERS = ["asc", "desc"]


@dataclass
class SearchQuery:
    """
    A search request.

    Attributes:
        query: Free text (empty matches every profile)
        filters: Partial filters merged onto the defaults
        sort_by: One of SORT_FIELDS
        sort_order: "asc" or "desc"
        page: 1-based page number
        limit: Results per page
    """
    query: str = ""
    filters: Dict[str, Any] = field(default_factory=dict)
    sort_by: str = "compatibility"
    sort_order: str = "desc"
    page: int = 1
    limit: int = 20

    def validate(self) -> None:
        errors = []
        if self.sort_by not in SORT_FIELDS:
            errors.append(f"sort_by must be one of {SORT_FIELDS}, got {self.sort_by}")
        if self.sort_order not in SORT_ORDERS:
            errors.append(f"sort_order must be one of {SORT_ORDERS}, got {self.sort_order}")
        if self.page < 1:
            errors.append(f"page must be >= 1, got {self.page}")
        if self.limit < 1:
            errors.append(f"limit must be >= 1, got {self.limit}")
        if errors:
            raise ValidationError(errors)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SearchQuery":
        return cls(
            query=d.get("query", ""),
            filters=dict(d.get("filters") or {}),
            sort_by=d.get("sortBy", d.get("sort_by", "compatibility")),
            sort_order=d.get("sortOrder", d.get("sort_order", "desc")),
            page=int(d.get("page", 1)),
            limit=int(d.get("limit", 20)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query": self.query,
            "filters": dict(self.filters),
            "sortBy": self.sort_by,
            "sortOrder": self.sort_order,
            "page": self.page,
            "limit": self.limit,
        }


@dataclass
class SearchResults:
    """One page of search results."""
    cards: List[DiscoveryCard]
    total_count: int
    has_more: bool
    page: int
    filters: DiscoveryFilters

    def to_dict(self) -> Dict[str, Any]:
        return {
            "profiles": [card.to_dict() for card in self.cards],
            "totalCount": self.total_count,
            "hasMore": self.has_more,
            "page": self.page,
            "filters": self.filters.to_dict(),
        }


def matches_text(profile: UserProfile, text: str) -> bool:
    """Case-insensitive substring match on bio, occupation, interests and city."""
    needle = text.strip().lower()
    if not needle:
        return True
    haystack = [profile.bio, profile.occupation] + list(profile.interests)
    if profile.location is not None:
        haystack.append(profile.location.city)
    return any(needle in (value or "").lower() for value in haystack)


def _sort_value(card: DiscoveryCard, sort_by: str, today: Optional[date]):
    if sort_by == "compatibility":
        return card.compatibility_score
    if sort_by == "distance":
        return card.distance
    if sort_by == "recent":
        return card.profile.updated_at
    return card.profile.age(today)


def sort_cards(
    cards: List[DiscoveryCard],
    sort_by: str = "compatibility",
    sort_order: str = "desc",
    today: Optional[date] = None
) -> List[DiscoveryCard]:
    """Sort cards by ``sort_by``; cards without a value go last."""
    ordered = sorted(cards, key=lambda c: c.profile.id)
    known = [c for c in ordered if _sort_value(c, sort_by, today) is not None]
    unknown = [c for c in ordered if _sort_value(c, sort_by, today) is None]
    known.sort(key=lambda c: _sort_value(c, sort_by, today), reverse=sort_order == "desc")
    return known + unknown


def search_profiles(
    viewer: UserProfile,
    profiles: Iterable[UserProfile],
    query: Union[SearchQuery, str],
    scorer: CompatibilityScorer,
    today: Optional[date] = None
) -> SearchResults:
    """
    Search candidate profiles for ``viewer``.

    Args:
        viewer: Profile doing the search (never part of the results)
        profiles: Candidate pool
        query: SearchQuery or plain search text
        scorer: Compatibility scorer used for the cards
        today: Reference date for ages

    Returns:
        SearchResults for the requested page

    Raises:
        ValidationError: If the query or its filters are malformed
    """
    if isinstance(query, str):
        query = SearchQuery(query=query)
    query.validate()
    filters = DiscoveryFilters().merged(query.filters)

    pool = [p for p in profiles if p.user_id != viewer.user_id and matches_text(p, query.query)]
    cards = [build_card(viewer, p, scorer, today=today, prefix="search") for p in pool]
    cards = apply_filters(filters, cards, today)
    cards = sort_cards(cards, query.sort_by, query.sort_order, today)

    start = (query.page - 1) * query.limit
    end = start + query.limit
    logger.info(f"Search '{query.query}' matched {len(cards)} profiles")
    return SearchResults(
        cards=cards[start:end],
        total_count=len(cards),
        has_more=end < len(cards),
        page=query.page,
        filters=filters,
    )
