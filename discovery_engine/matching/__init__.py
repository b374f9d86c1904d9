"""Swipe processing and the match ledger."""

from ..deck.actions import SwipeAction
from .ledger import Match, MutualMatch, MatchLedger, LedgerReciprocalLookup
from .swipe import SwipeProcessor, SwipeOutcome, ReciprocalMatchLookup

__all__ = [
    "SwipeAction",
    "Match",
    "MutualMatch",
    "MatchLedger",
    "LedgerReciprocalLookup",
    "SwipeProcessor",
    "SwipeOutcome",
    "ReciprocalMatchLookup",
]
