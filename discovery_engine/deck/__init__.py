"""Discovery cards and the deck state machine."""

from .actions import SwipeAction
from .cards import DiscoveryCard, build_card
from .deck import DiscoveryDeck, DeckState, DeckConfig

__all__ = [
    "SwipeAction",
    "DiscoveryCard",
    "build_card",
    "DiscoveryDeck",
    "DeckState",
    "DeckConfig",
]
