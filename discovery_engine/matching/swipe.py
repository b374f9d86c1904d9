"""
Swipe processing.

A swipe is a local state transition on a card in the deck, followed by
ledger bookkeeping for likes and super-likes:

1. The card must be in the current deck (InvalidCardError otherwise)
2. Swipe flags are overwritten from the action
3. Likes and super-likes record a Match
4. The reciprocal lookup decides whether the candidate already liked the
   viewer; if so both matches become mutual and one MutualMatch exists
5. Passes touch nothing but the card flags

Advancing the deck is the caller's job.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union, Dict, Any, Protocol

from ..deck.cards import DiscoveryCard, SwipeAction
from ..deck.deck import DiscoveryDeck
from ..errors import InvalidCardError, SwipeInProgressError
from ..profiles.schema import UserProfile
from .ledger import Match, MatchLedger, MutualMatch

logger = logging.getLogger(__name__)

MUTUAL_MATCH_MESSAGE = "It's a match! You can now message each other."
PASS_MESSAGE = "Profile passed"
LIKE_MESSAGE = "Like sent!"
SUPER_LIKE_MESSAGE = "Super like sent!"


class ReciprocalMatchLookup(Protocol):
    """Source of truth for whether a candidate already liked the viewer."""

    async def has_liked_me(self, viewer_id: str, candidate_id: str) -> bool:
        ...


@dataclass
class SwipeOutcome:
    """Result of a processed swipe."""
    card: DiscoveryCard
    match: Optional[Match] = None
    mutual_match: Optional[MutualMatch] = None
    message: str = ""

    @property
    def is_mutual(self) -> bool:
        return self.mutual_match is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cardId": self.card.id,
            "match": self.match.to_dict() if self.match else None,
            "mutualMatch": self.mutual_match.to_dict() if self.mutual_match else None,
            "isMutualMatch": self.is_mutual,
            "message": self.message,
        }


class SwipeProcessor:
    """
    Applies a viewer's swipes to the deck and the match ledger.

    Only one swipe may be in flight at a time; a second swipe submitted
    while the reciprocal lookup of the first is pending raises
    SwipeInProgressError.
    """

    def __init__(
        self,
        viewer: UserProfile,
        deck: DiscoveryDeck,
        ledger: MatchLedger,
        lookup: ReciprocalMatchLookup
    ):
        self.viewer = viewer
        self.deck = deck
        self.ledger = ledger
        self.lookup = lookup
        self._in_flight: Optional[str] = None

    @property
    def busy(self) -> bool:
        return self._in_flight is not None

    async def swipe(
        self,
        card: Union[DiscoveryCard, str],
        action: Union[SwipeAction, str]
    ) -> SwipeOutcome:
        """
        Process one swipe.

        Args:
            card: Card (or card id) being swiped
            action: like, pass or super_like

        Returns:
            SwipeOutcome with the updated card and any ledger records

        Raises:
            InvalidCardError: If the card is not in the current deck
            SwipeInProgressError: If another swipe is still being processed
            ValueError: If ``action`` is not a swipe action
        """
        card_id = card.id if isinstance(card, DiscoveryCard) else card
        if self._in_flight is not None:
            raise SwipeInProgressError(f"Swipe on {self._in_flight} still in progress")

        target = self.deck.find(card_id)
        if target is None:
            logger.warning(f"Rejected swipe on unknown card {card_id}")
            raise InvalidCardError(card_id)
        action = SwipeAction(action)

        self._in_flight = card_id
        try:
            target.apply_swipe(action)
            logger.debug(f"{self.viewer.user_id} swiped {action.value} on {card_id}")
            if not action.is_positive:
                return SwipeOutcome(card=target, message=PASS_MESSAGE)

            candidate = target.profile
            match = self.ledger.record_match(
                self.viewer.user_id, candidate.user_id, action, target.compatibility_score
            )

            mutual = None
            if await self.lookup.has_liked_me(self.viewer.user_id, candidate.user_id):
                mutual = self.ledger.create_mutual_match(
                    self.viewer, candidate, target.compatibility_score
                )

            if mutual is not None:
                message = MUTUAL_MATCH_MESSAGE
            elif action == SwipeAction.SUPER_LIKE:
                message = SUPER_LIKE_MESSAGE
            else:
                message = LIKE_MESSAGE
            return SwipeOutcome(card=target, match=match, mutual_match=mutual, message=message)
        finally:
            self._in_flight = None
