"""
Profile repository: the engine's source of candidate profiles.

The engine only reads from the repository, plus two collaborator calls
made during swiping: ``record_swipe`` (fire-and-forget reconciliation)
and ``has_liked_me`` (reciprocal-like lookup).

Exclusion Policy:
    Candidates the viewer has already swiped are never served again, and
    the viewer is never served to themselves. Pages use keyset cursors
    (the id of the last profile returned), so exclusions that happen
    between pages never shift the window.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple, Iterable, Protocol, Any

from ..deck.actions import SwipeAction
from ..errors import FetchError
from .schema import UserProfile

logger = logging.getLogger(__name__)


@dataclass
class CandidatePage:
    """
    One page of candidates.

    Attributes:
        profiles: Candidates in id order
        has_more: Whether another page exists after this one
        next_cursor: Cursor for the next page (None when there is none)
        total_count: Eligible candidates for this viewer across all pages
    """
    profiles: List[UserProfile] = field(default_factory=list)
    has_more: bool = False
    next_cursor: Optional[str] = None
    total_count: int = 0


class ProfileRepository(Protocol):
    """Interface the discovery session expects from a profile backend."""

    async def fetch_candidates(
        self,
        viewer_id: str,
        filters: Any,
        limit: int,
        cursor: Optional[str] = None
    ) -> CandidatePage:
        ...

    async def record_swipe(self, viewer_id: str, candidate_id: str, action: SwipeAction) -> None:
        ...

    async def has_liked_me(self, viewer_id: str, candidate_id: str) -> bool:
        ...


class InMemoryProfileRepository:
    """
    Profile repository backed by a list held in memory.

    Filters are accepted for interface compatibility with server-side
    backends; this repository leaves filtering to the engine.

    Args:
        profiles: Profiles to serve
        latency_ms: Simulated latency added to every call
    """

    def __init__(self, profiles: Iterable[UserProfile], latency_ms: float = 0):
        if latency_ms < 0:
            raise ValueError(f"latency_ms must be >= 0, got {latency_ms}")
        self.latency_ms = latency_ms
        self._profiles: Dict[str, UserProfile] = {}
        self._swiped: Dict[str, Set[str]] = {}
        self._likes: Set[Tuple[str, str]] = set()
        self._failures: List[str] = []
        self.fetch_count = 0
        for profile in profiles:
            self.add_profile(profile)

    @property
    def profiles(self) -> List[UserProfile]:
        return [self._profiles[key] for key in sorted(self._profiles)]

    def add_profile(self, profile: UserProfile) -> None:
        self._profiles[profile.user_id] = profile

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        return self._profiles.get(user_id)

    def seed_like(self, user_id: str, target_user_id: str) -> None:
        """Record that ``user_id`` liked ``target_user_id`` outside this session."""
        self._likes.add((user_id, target_user_id))

    def fail_next(self, count: int = 1, message: str = "Profile service unavailable") -> None:
        """Make the next ``count`` fetches raise FetchError."""
        self._failures.extend([message] * count)

    def swiped_by(self, viewer_id: str) -> Set[str]:
        return set(self._swiped.get(viewer_id, set()))

    async def _delay(self) -> None:
        if self.latency_ms > 0:
            await asyncio.sleep(self.latency_ms / 1000.0)

    def _eligible(self, viewer_id: str) -> List[str]:
        swiped = self._swiped.get(viewer_id, set())
        return [key for key in sorted(self._profiles) if key != viewer_id and key not in swiped]

    async def fetch_candidates(
        self,
        viewer_id: str,
        filters: Any,
        limit: int,
        cursor: Optional[str] = None
    ) -> CandidatePage:
        """
        Fetch the next page of candidates for ``viewer_id``.

        Args:
            viewer_id: User id of the viewer
            filters: Viewer's DiscoveryFilters (unused here)
            limit: Maximum profiles to return
            cursor: Id of the last profile of the previous page

        Returns:
            CandidatePage

        Raises:
            FetchError: When a failure was scheduled with ``fail_next``
        """
        await self._delay()
        self.fetch_count += 1
        if self._failures:
            message = self._failures.pop(0)
            logger.error(f"Candidate fetch failed for {viewer_id}: {message}")
            raise FetchError(message)
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")

        eligible = self._eligible(viewer_id)
        window = [key for key in eligible if cursor is None or key > cursor]
        page = window[:limit]
        has_more = len(window) > limit
        logger.debug(f"Fetched {len(page)} candidates for {viewer_id} "
                     f"(cursor={cursor}, has_more={has_more})")
        return CandidatePage(
            profiles=[self._profiles[key] for key in page],
            has_more=has_more,
            next_cursor=page[-1] if page and has_more else None,
            total_count=len(eligible),
        )

    async def record_swipe(self, viewer_id: str, candidate_id: str, action: SwipeAction) -> None:
        """Remember a swipe so the candidate is excluded from later pages."""
        await self._delay()
        action = SwipeAction(action)
        self._swiped.setdefault(viewer_id, set()).add(candidate_id)
        if action.is_positive:
            self._likes.add((viewer_id, candidate_id))
        else:
            self._likes.discard((viewer_id, candidate_id))

    async def has_liked_me(self, viewer_id: str, candidate_id: str) -> bool:
        await self._delay()
        return (candidate_id, viewer_id) in self._likes
