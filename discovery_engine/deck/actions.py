"""Swipe actions."""

from enum import Enum


class SwipeAction(Enum):
    """Swipe decisions a viewer can make on a card."""
    LIKE = "like"
    PASS = "pass"
    SUPER_LIKE = "super_like"

    @property
    def is_positive(self) -> bool:
        """Likes and super-likes express interest; passes do not."""
        return self in (SwipeAction.LIKE, SwipeAction.SUPER_LIKE)
