"""
Roommate Discovery Engine

This package implements the discovery/matching core of a roommate
marketplace: compatibility scoring between a viewer and candidate
profiles, viewer-chosen filters, a paginated swipe deck, and the
bookkeeping that turns swipes into matches and mutual matches.

Key Design Decisions:
- Scoring and filtering are pure functions over immutable profiles
- The deck owns its state explicitly; nothing lives in a global store
- Fetches are the only suspending operations; stale responses are
  discarded using a generation counter
- Reciprocal likes come from an injected lookup, never from chance
"""

__version__ = "1.0.0"
