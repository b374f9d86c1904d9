"""
Error taxonomy for the discovery engine.

FetchError and ValidationError are recoverable: the session turns them
into its ``error`` string and keeps its last good state. InvalidCardError
and SwipeInProgressError indicate a caller bug and are raised directly.
"""


class DiscoveryError(Exception):
    """Base class for all discovery engine errors."""


class FetchError(DiscoveryError):
    """The profile repository was unreachable or returned a failure."""


class InvalidCardError(DiscoveryError):
    """A swipe referenced a card that is not in the current deck."""

    def __init__(self, card_id: str):
        super().__init__(f"Card not in current deck: {card_id}")
        self.card_id = card_id


class SwipeInProgressError(DiscoveryError):
    """A swipe was submitted while another swipe was still being processed."""


class ValidationError(DiscoveryError, ValueError):
    """Malformed filter values (for example min > max in a range)."""

    def __init__(self, errors):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))
