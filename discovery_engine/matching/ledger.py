"""
Match ledger.

The ledger accumulates the one-directional Match records produced by
likes and super-likes, and the MutualMatch records created when two
users like each other.

Invariants:
- At most one Match per (user, target, match type); recording the same
  decision again returns the existing record
- At most one MutualMatch per unordered pair of users
- A Match is never mutated after creation except to set ``is_mutual``
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Any, List, Optional, FrozenSet, Tuple

from ..deck.actions import SwipeAction
from ..profiles.schema import UserProfile

logger = logging.getLogger(__name__)


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Match:
    """
    One user's like or super-like toward another.

    Attributes:
        id: Match identifier
        user_id: User who swiped
        target_user_id: User who was swiped on
        match_type: LIKE or SUPER_LIKE
        is_mutual: Set once the target likes back
        compatibility_score: Overall score at the time of the swipe
        matched_at: ISO timestamp of the swipe
    """
    id: str
    user_id: str
    target_user_id: str
    match_type: SwipeAction
    is_mutual: bool
    compatibility_score: int
    matched_at: str
    created_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "targetUserId": self.target_user_id,
            "matchType": self.match_type.value,
            "isMutual": self.is_mutual,
            "compatibilityScore": self.compatibility_score,
            "matchedAt": self.matched_at,
            "createdAt": self.created_at,
        }


@dataclass
class MutualMatch:
    """Two users who liked each other."""
    id: str
    user1_id: str
    user2_id: str
    user1_profile: UserProfile
    user2_profile: UserProfile
    compatibility_score: int
    matched_at: str
    last_message_at: Optional[str] = None
    is_active: bool = True

    @property
    def pair(self) -> FrozenSet[str]:
        return frozenset((self.user1_id, self.user2_id))

    def involves(self, user_id: str) -> bool:
        return user_id in self.pair

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user1Id": self.user1_id,
            "user2Id": self.user2_id,
            "user1Profile": self.user1_profile.to_dict(),
            "user2Profile": self.user2_profile.to_dict(),
            "compatibilityScore": self.compatibility_score,
            "matchedAt": self.matched_at,
            "lastMessageAt": self.last_message_at,
            "isActive": self.is_active,
        }


class MatchLedger:
    """
    In-memory store of matches and mutual matches.

    Args:
        clock: Returns the current time as an ISO string (default: UTC now)
        id_factory: Returns fresh record ids (default: uuid4 hex)
    """

    def __init__(
        self,
        clock: Optional[Callable[[], str]] = None,
        id_factory: Optional[Callable[[], str]] = None
    ):
        self.clock = clock or utc_now
        self.id_factory = id_factory or (lambda: uuid.uuid4().hex)
        self._matches: Dict[Tuple[str, str, SwipeAction], Match] = {}
        self._mutuals: Dict[FrozenSet[str], MutualMatch] = {}

    @property
    def matches(self) -> List[Match]:
        return list(self._matches.values())

    @property
    def mutual_matches(self) -> List[MutualMatch]:
        return list(self._mutuals.values())

    def record_match(
        self,
        user_id: str,
        target_user_id: str,
        match_type: SwipeAction,
        compatibility_score: int
    ) -> Match:
        """
        Record a like or super-like.

        Args:
            user_id: Swiping user
            target_user_id: User swiped on
            match_type: Must be a positive action
            compatibility_score: Overall score at swipe time

        Returns:
            The new Match, or the existing one for the same decision

        Raises:
            ValueError: If ``match_type`` is a pass
        """
        match_type = SwipeAction(match_type)
        if not match_type.is_positive:
            raise ValueError("Passes are not recorded in the match ledger")

        key = (user_id, target_user_id, match_type)
        existing = self._matches.get(key)
        if existing is not None:
            logger.debug(f"Match already recorded: {user_id} -> {target_user_id} ({match_type.value})")
            return existing

        now = self.clock()
        match = Match(
            id=f"match_{self.id_factory()}",
            user_id=user_id,
            target_user_id=target_user_id,
            match_type=match_type,
            is_mutual=self.get_mutual(user_id, target_user_id) is not None,
            compatibility_score=int(compatibility_score),
            matched_at=now,
            created_at=now,
        )
        self._matches[key] = match
        logger.info(f"Recorded {match_type.value}: {user_id} -> {target_user_id}")
        return match

    def matches_between(self, user_id: str, target_user_id: str) -> List[Match]:
        """Matches from ``user_id`` toward ``target_user_id``."""
        return [m for (u, t, _), m in self._matches.items() if u == user_id and t == target_user_id]

    def has_liked(self, user_id: str, target_user_id: str) -> bool:
        return bool(self.matches_between(user_id, target_user_id))

    def matches_for(self, user_id: str) -> List[Match]:
        return [m for m in self._matches.values() if m.user_id == user_id]

    def create_mutual_match(
        self,
        profile_a: UserProfile,
        profile_b: UserProfile,
        compatibility_score: int
    ) -> MutualMatch:
        """
        Create the mutual match for a pair and flag both sides' matches.

        Calling this again for the same pair, in either order, returns the
        existing record.
        """
        pair = frozenset((profile_a.user_id, profile_b.user_id))
        for a, b in [(profile_a.user_id, profile_b.user_id), (profile_b.user_id, profile_a.user_id)]:
            for match in self.matches_between(a, b):
                match.is_mutual = True

        existing = self._mutuals.get(pair)
        if existing is not None:
            return existing

        mutual = MutualMatch(
            id=f"mutual_{self.id_factory()}",
            user1_id=profile_a.user_id,
            user2_id=profile_b.user_id,
            user1_profile=profile_a,
            user2_profile=profile_b,
            compatibility_score=int(compatibility_score),
            matched_at=self.clock(),
        )
        self._mutuals[pair] = mutual
        logger.info(f"Mutual match: {profile_a.user_id} <-> {profile_b.user_id}")
        return mutual

    def get_mutual(self, user_a: str, user_b: str) -> Optional[MutualMatch]:
        return self._mutuals.get(frozenset((user_a, user_b)))

    def get_mutual_by_id(self, mutual_id: str) -> Optional[MutualMatch]:
        for mutual in self._mutuals.values():
            if mutual.id == mutual_id:
                return mutual
        return None

    def mutuals_for(self, user_id: str) -> List[MutualMatch]:
        return [m for m in self._mutuals.values() if m.involves(user_id)]

    def touch_last_message(self, mutual_id: str, when: Optional[str] = None) -> MutualMatch:
        """
        Update ``last_message_at`` on a mutual match.

        Raises:
            KeyError: If no mutual match has this id
        """
        mutual = self.get_mutual_by_id(mutual_id)
        if mutual is None:
            raise KeyError(f"Unknown mutual match: {mutual_id}")
        mutual.last_message_at = when or self.clock()
        return mutual

    def to_dict(self) -> Dict[str, Any]:
        return {
            "matches": [m.to_dict() for m in self._matches.values()],
            "mutualMatches": [m.to_dict() for m in self._mutuals.values()],
        }


class LedgerReciprocalLookup:
    """Answers "has this candidate liked me?" from the ledger's own records."""

    def __init__(self, ledger: MatchLedger):
        self.ledger = ledger

    async def has_liked_me(self, viewer_id: str, candidate_id: str) -> bool:
        return self.ledger.has_liked(candidate_id, viewer_id)
