"""
Discovery session: one viewer's discovery feed.

The session owns the deck, the filters, the match ledger and the swipe
processor, and exposes them to a UI as observable state plus async
commands.

Control Flow:
    load() -> fetch pages -> score -> filter -> deck.load()
    swipe() -> processor.swipe() -> deck.advance() -> record_swipe()
            -> refill_task when the low-watermark is reached
    load_more() -> fetch -> score -> filter -> deck.append()

Concurrency:
- Swipes are serialized with an asyncio.Lock, in submission order
- Every fetch remembers the deck generation it was issued under; a
  response that comes back after load(), set_filters(), reset_filters()
  or leave() is dropped
- load_more() never runs while a load is in flight

Errors:
- FetchError and ValidationError become the ``error`` string and leave
  the previous deck and filters in place
- InvalidCardError propagates to the caller
"""

import asyncio
import logging
from datetime import date
from typing import Dict, Any, List, Optional, Set, Tuple, Union

from .deck.actions import SwipeAction
from .deck.cards import DiscoveryCard, build_card
from .deck.deck import DiscoveryDeck, DeckConfig, DeckState
from .errors import FetchError, InvalidCardError, ValidationError
from .filtering.evaluator import apply_filters
from .filtering.filters import DiscoveryFilters
from .matching.ledger import Match, MatchLedger, MutualMatch
from .matching.swipe import ReciprocalMatchLookup, SwipeOutcome, SwipeProcessor
from .profiles.repository import ProfileRepository
from .profiles.schema import UserProfile
from .scoring.compatibility import CompatibilityScorer
from .search import SearchQuery, SearchResults, search_profiles
from .storage import FilterStore

logger = logging.getLogger(__name__)

LOAD_ERROR = "Failed to load discovery cards"
LOAD_MORE_ERROR = "Failed to load more cards"
SWIPE_ERROR = "Failed to process swipe action"
SEARCH_ERROR = "Search failed"


class DiscoverySession:
    """
    A viewer's discovery session.

    Attributes:
        viewer: Profile doing the discovering
        deck: DiscoveryDeck with the current cards
        filters: Active DiscoveryFilters
        search_query: Last search text
        search_results: Results of the last search, if any
        ledger: MatchLedger receiving this viewer's matches
        error: Last recoverable error message, None when healthy
        refill_task: Pending watermark-triggered load_more, if any
    """

    def __init__(
        self,
        viewer: UserProfile,
        repository: ProfileRepository,
        scorer: Optional[CompatibilityScorer] = None,
        config: Optional[DeckConfig] = None,
        store: Optional[FilterStore] = None,
        ledger: Optional[MatchLedger] = None,
        lookup: Optional[ReciprocalMatchLookup] = None,
        today: Optional[date] = None
    ):
        """
        Initialize the session and restore persisted filters.

        Args:
            viewer: Profile doing the discovering
            repository: Candidate source
            scorer: Compatibility scorer (default weights if None)
            config: Deck paging configuration
            store: Where filters and search query are persisted
            ledger: Match ledger (a fresh one if None)
            lookup: Reciprocal-like lookup (the repository if None)
            today: Fixed reference date for ages
        """
        self.viewer = viewer
        self.repository = repository
        self.scorer = scorer or CompatibilityScorer()
        self.config = config or DeckConfig()
        self.config.validate()
        self.store = store
        self.today = today

        self.deck = DiscoveryDeck(low_watermark=self.config.low_watermark)
        self.ledger = ledger or MatchLedger()
        self.processor = SwipeProcessor(viewer, self.deck, self.ledger, lookup or repository)

        self.filters = DiscoveryFilters()
        self.search_query = ""
        self.search_results: Optional[SearchResults] = None
        self.error: Optional[str] = None
        self.refill_task: Optional[asyncio.Task] = None
        self.active = True

        self._cursor: Optional[str] = None
        self._loading = 0
        self._swipe_lock = asyncio.Lock()
        self._reconciliations: Set[asyncio.Task] = set()

        if store is not None:
            filters, query = store.load()
            if filters is not None:
                self.filters = filters
            self.search_query = query
            logger.info(f"Restored discovery state for {viewer.user_id} "
                        f"(default filters={self.filters.is_default()})")

    # =========================================================================
    # Observable state
    # =========================================================================

    @property
    def cards(self) -> List[DiscoveryCard]:
        return list(self.deck.cards)

    @property
    def current_card(self) -> Optional[DiscoveryCard]:
        return self.deck.current()

    @property
    def current_index(self) -> int:
        return self.deck.current_index

    @property
    def has_more(self) -> bool:
        return self.deck.has_more

    @property
    def is_loading(self) -> bool:
        return self._loading > 0

    @property
    def state(self) -> DeckState:
        return self.deck.state

    @property
    def matches(self) -> List[Match]:
        return self.ledger.matches_for(self.viewer.user_id)

    @property
    def mutual_matches(self) -> List[MutualMatch]:
        return self.ledger.mutuals_for(self.viewer.user_id)

    def snapshot(self) -> Dict[str, Any]:
        """Observable state as a dictionary."""
        current = self.current_card
        return {
            "currentCard": current.to_dict() if current else None,
            "currentIndex": self.current_index,
            "cardCount": len(self.deck),
            "hasMore": self.has_more,
            "isLoading": self.is_loading,
            "error": self.error,
            "state": self.state.value,
            "filters": self.filters.to_dict(),
            "searchQuery": self.search_query,
        }

    # =========================================================================
    # Fetching
    # =========================================================================

    async def _fetch_cards(
        self,
        limit: int,
        cursor: Optional[str]
    ) -> Tuple[List[DiscoveryCard], bool, Optional[str]]:
        """Fetch pages until ``limit`` cards pass the filters or candidates run out."""
        admitted: List[DiscoveryCard] = []
        has_more = True
        pages = 0
        while len(admitted) < limit and has_more and pages < self.config.max_fetch_pages:
            page = await self.repository.fetch_candidates(
                self.viewer.user_id, self.filters, limit, cursor
            )
            pages += 1
            cards = [build_card(self.viewer, p, self.scorer, today=self.today) for p in page.profiles]
            admitted.extend(apply_filters(self.filters, cards, self.today))
            has_more = page.has_more
            cursor = page.next_cursor
        logger.debug(f"Fetched {pages} pages, {len(admitted)} cards admitted")
        return admitted, has_more, cursor

    def _cancel_refill(self) -> None:
        if self.refill_task is not None and not self.refill_task.done():
            self.refill_task.cancel()
        self.refill_task = None

    async def load(self) -> bool:
        """
        Replace the deck with a fresh first page.

        Returns:
            True if the deck was loaded; False on error or a stale response
        """
        self._cancel_refill()
        generation = self.deck.invalidate()
        self._loading += 1
        self.error = None
        try:
            cards, has_more, cursor = await self._fetch_cards(self.config.page_size, None)
        except FetchError as e:
            if generation == self.deck.generation:
                self.error = str(e) or LOAD_ERROR
                self.deck.fail(self.error)
            return False
        finally:
            self._loading -= 1

        if generation != self.deck.generation or not self.active:
            logger.debug(f"Dropping stale load response (generation {generation})")
            return False
        self.deck.load(cards, has_more)
        self._cursor = cursor
        return True

    async def load_more(self) -> bool:
        """
        Append the next page to the deck.

        Returns:
            True if cards were appended
        """
        if self.is_loading or not self.deck.has_more or not self.active:
            return False
        generation = self.deck.generation
        self._loading += 1
        try:
            cards, has_more, cursor = await self._fetch_cards(self.config.refill_size, self._cursor)
        except FetchError as e:
            if self.deck.fail(str(e) or LOAD_MORE_ERROR, generation):
                self.error = str(e) or LOAD_MORE_ERROR
            return False
        finally:
            self._loading -= 1

        if not self.deck.append(cards, has_more, generation):
            return False
        self._cursor = cursor
        self.error = None
        return True

    def _schedule_refill(self) -> None:
        if not self.deck.needs_refill or self.is_loading:
            return
        if self.refill_task is not None and not self.refill_task.done():
            return
        logger.debug(f"Low watermark reached at index {self.deck.current_index}, refilling")
        self.refill_task = asyncio.create_task(self.load_more())

    # =========================================================================
    # Swiping
    # =========================================================================

    async def swipe(
        self,
        action: Union[SwipeAction, str],
        card_id: Optional[str] = None
    ) -> Optional[SwipeOutcome]:
        """
        Swipe on the current card (or on ``card_id``).

        The deck advances when the swiped card is the current one.

        Returns:
            SwipeOutcome, or None if the reciprocal lookup failed

        Raises:
            InvalidCardError: If the card is not in the deck
        """
        async with self._swipe_lock:
            current = self.current_card
            if card_id is None:
                if current is None:
                    raise InvalidCardError("<empty deck>")
                card_id = current.id

            action = SwipeAction(action)
            generation = self.deck.generation
            outcome = None
            try:
                outcome = await self.processor.swipe(card_id, action)
            except FetchError as e:
                self.error = str(e) or SWIPE_ERROR
                logger.error(f"Swipe on {card_id} failed: {self.error}")

            if generation == self.deck.generation and current is not None and current.id == card_id:
                self.deck.advance()

            card = self.deck.find(card_id)
            if card is not None:
                task = asyncio.create_task(self._reconcile(card.profile.user_id, action))
                self._reconciliations.add(task)
                task.add_done_callback(self._reconciliations.discard)

            self._schedule_refill()
            return outcome

    async def _reconcile(self, candidate_id: str, action: SwipeAction) -> None:
        try:
            await self.repository.record_swipe(self.viewer.user_id, candidate_id, action)
        except FetchError as e:
            logger.warning(f"Could not record swipe on {candidate_id}: {e}")

    # =========================================================================
    # Filters and search
    # =========================================================================

    def _persist(self) -> None:
        if self.store is not None:
            self.store.save(self.filters, self.search_query)

    async def set_filters(self, partial: Dict[str, Any]) -> bool:
        """
        Apply a partial filter update and reload the deck.

        Returns:
            False if the update was rejected (previous filters stay in effect)
        """
        try:
            filters = self.filters.merged(partial)
        except ValidationError as e:
            self.error = str(e)
            logger.warning(f"Rejected filter update {partial}: {e}")
            return False
        self.filters = filters
        self._persist()
        return await self.load()

    async def reset_filters(self) -> bool:
        self.filters = DiscoveryFilters()
        self._persist()
        return await self.load()

    async def search(self, query: Union[SearchQuery, str]) -> Optional[SearchResults]:
        """
        Search the candidate pool and remember the query text.

        Returns:
            SearchResults, or None on error
        """
        if isinstance(query, str):
            query = SearchQuery(query=query)
        self.search_query = query.query
        self._persist()

        profiles: List[UserProfile] = []
        cursor = None
        try:
            for _ in range(self.config.max_fetch_pages):
                page = await self.repository.fetch_candidates(
                    self.viewer.user_id, self.filters, self.config.page_size, cursor
                )
                profiles.extend(page.profiles)
                cursor = page.next_cursor
                if not page.has_more:
                    break
            results = search_profiles(self.viewer, profiles, query, self.scorer, today=self.today)
        except (FetchError, ValidationError) as e:
            self.error = str(e) or SEARCH_ERROR
            return None

        self.search_results = results
        return results

    def clear_search(self) -> None:
        self.search_query = ""
        self.search_results = None
        self._persist()

    async def leave(self) -> None:
        """Abandon pending fetches and flush pending swipe records."""
        self.active = False
        self._cancel_refill()
        self.deck.invalidate()
        self._persist()
        if self._reconciliations:
            await asyncio.gather(*list(self._reconciliations))
        logger.info(f"{self.viewer.user_id} left discovery")

    async def drain(self) -> None:
        """Wait for the pending refill and swipe records to finish."""
        if self.refill_task is not None:
            await asyncio.gather(self.refill_task, return_exceptions=True)
        if self._reconciliations:
            await asyncio.gather(*list(self._reconciliations))
