"""
Discovery deck state machine.

The deck holds the ordered, session-scoped sequence of scored cards shown
to a viewer, the index of the current card and whether the repository has
more candidates. It never fetches: callers read ``needs_refill`` and issue
the fetch themselves, then hand the result back through ``append``.

States:
- EMPTY: no cards
- POPULATED: cards loaded, the viewer is somewhere in the deck
- EXHAUSTED: no more candidates and the last card has been swiped; left
  only through ``load`` or ``reset``

Index Invariant:
    0 <= current_index <= max(0, len(cards) - 1)

Stale Responses:
    Every ``load``, ``reset`` and ``invalidate`` bumps ``generation``. A
    fetch records the generation it was issued under and passes it back to
    ``append``; responses from an older generation are dropped.
"""

import logging
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Dict, Any, List, Optional
import json

from .cards import DiscoveryCard

logger = logging.getLogger(__name__)


class DeckState(Enum):
    """Lifecycle state of a discovery deck."""
    EMPTY = "empty"
    POPULATED = "populated"
    EXHAUSTED = "exhausted"


@dataclass
class DeckConfig:
    """
    Configuration for deck paging.

    Attributes:
        page_size: Cards requested by a fresh load
        refill_size: Cards requested by a load-more
        low_watermark: Remaining-card threshold that triggers a refill
        max_fetch_pages: Upper bound on repository pages fetched per load
    """
    page_size: int = 20
    refill_size: int = 10
    low_watermark: int = 3
    max_fetch_pages: int = 5

    def validate(self) -> None:
        """Validate configuration values."""
        if self.page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {self.page_size}")
        if self.refill_size < 1:
            raise ValueError(f"refill_size must be >= 1, got {self.refill_size}")
        if self.low_watermark < 1:
            raise ValueError(f"low_watermark must be >= 1, got {self.low_watermark}")
        if self.max_fetch_pages < 1:
            raise ValueError(f"max_fetch_pages must be >= 1, got {self.max_fetch_pages}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DeckConfig":
        """Create from dictionary."""
        return cls(**d)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "DeckConfig":
        """Create from main config dictionary."""
        deck_config = config.get("deck", {})
        return cls(
            page_size=deck_config.get("page_size", 20),
            refill_size=deck_config.get("refill_size", 10),
            low_watermark=deck_config.get("low_watermark", 3),
            max_fetch_pages=deck_config.get("max_fetch_pages", 5),
        )

    def save(self, filepath: str) -> None:
        """Save to JSON file."""
        with open(filepath, "w") as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.info(f"Saved deck config to {filepath}")

    @classmethod
    def load(cls, filepath: str) -> "DeckConfig":
        """Load from JSON file."""
        with open(filepath, "r") as f:
            d = json.load(f)
        return cls.from_dict(d)


class DiscoveryDeck:
    """
    Ordered deck of discovery cards with a clamped cursor.

    Attributes:
        cards: Cards in display order
        current_index: Index of the card on top of the deck
        has_more: Whether the repository can supply more candidates
        error: Last fetch error message, None after a successful fetch
        generation: Counter used to discard stale fetch responses
    """

    def __init__(self, low_watermark: int = 3):
        if low_watermark < 1:
            raise ValueError(f"low_watermark must be >= 1, got {low_watermark}")
        self.low_watermark = low_watermark
        self.cards: List[DiscoveryCard] = []
        self.current_index = 0
        self.has_more = True
        self.error: Optional[str] = None
        self.generation = 0

    def __len__(self) -> int:
        return len(self.cards)

    @property
    def state(self) -> DeckState:
        if not self.cards:
            return DeckState.EMPTY
        if not self.has_more and self.cards[-1].is_swiped:
            return DeckState.EXHAUSTED
        return DeckState.POPULATED

    @property
    def remaining(self) -> int:
        """Cards from the current one to the end, inclusive."""
        if not self.cards:
            return 0
        return len(self.cards) - self.current_index

    @property
    def needs_refill(self) -> bool:
        """Whether the cursor reached the low-watermark and more cards exist."""
        return self.has_more and self.current_index >= len(self.cards) - self.low_watermark

    def load(self, cards: List[DiscoveryCard], has_more: bool) -> int:
        """
        Replace the whole deck and start over at the first card.

        Args:
            cards: Freshly scored and filtered cards
            has_more: Whether the repository has more candidates

        Returns:
            The new generation
        """
        for card in cards:
            card.clear_swipe()
        self.cards = list(cards)
        self.current_index = 0
        self.has_more = has_more
        self.error = None
        self.generation += 1
        logger.info(f"Deck loaded with {len(self.cards)} cards (has_more={has_more}, "
                    f"generation={self.generation})")
        return self.generation

    def append(
        self,
        cards: List[DiscoveryCard],
        has_more: bool,
        generation: Optional[int] = None
    ) -> bool:
        """
        Add cards to the tail.

        Cards already in the deck are skipped. The cursor stays put unless
        it is parked on an already-swiped last card, in which case the first
        appended card becomes current.

        Args:
            cards: Newly fetched cards
            has_more: Whether the repository has more candidates
            generation: Generation the fetch was issued under (None skips the check)

        Returns:
            False if the response was stale and ignored
        """
        if generation is not None and generation != self.generation:
            logger.debug(f"Ignoring stale append (generation {generation}, "
                         f"current {self.generation})")
            return False

        known = {card.id for card in self.cards}
        added = [card for card in cards if card.id not in known]
        old_len = len(self.cards)
        parked = (old_len > 0 and self.current_index == old_len - 1
                  and self.cards[self.current_index].is_swiped)
        self.cards.extend(added)
        if added and parked:
            self.current_index = old_len
        self.has_more = has_more
        self.error = None
        logger.debug(f"Appended {len(added)} cards, deck size {len(self.cards)}")
        return True

    def current(self) -> Optional[DiscoveryCard]:
        if not self.cards:
            return None
        return self.cards[self.current_index]

    def advance(self) -> int:
        """Move to the next card, clamped to the last index."""
        if not self.cards:
            self.current_index = 0
        else:
            self.current_index = min(self.current_index + 1, len(self.cards) - 1)
        return self.current_index

    def fail(self, message: str, generation: Optional[int] = None) -> bool:
        """
        Record a fetch error; cards and cursor are kept.

        Returns:
            False if the failure belongs to a stale fetch and was ignored
        """
        if generation is not None and generation != self.generation:
            return False
        self.error = message
        logger.error(f"Deck fetch failed: {message}")
        return True

    def invalidate(self) -> int:
        """Drop any pending fetch without touching the cards."""
        self.generation += 1
        return self.generation

    def reset(self) -> int:
        """Clear the deck back to EMPTY."""
        self.cards = []
        self.current_index = 0
        self.has_more = True
        self.error = None
        self.generation += 1
        logger.info("Deck reset")
        return self.generation

    def find(self, card_id: str) -> Optional[DiscoveryCard]:
        for card in self.cards:
            if card.id == card_id:
                return card
        return None

    def unswiped(self) -> List[DiscoveryCard]:
        return [card for card in self.cards if not card.is_swiped]
