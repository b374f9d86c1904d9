"""
Persistence of discovery preferences between sessions.

Only the viewer's filters and last search query survive a reload. They
are written as one blob under a single storage key:

    {"discovery-store": {"state": {"filters": {...}, "searchQuery": "..."}, "version": 0}}

Cards, matches and deck position are session-only.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .errors import ValidationError
from .filtering.filters import DiscoveryFilters

logger = logging.getLogger(__name__)

STORE_VERSION = 0


class FilterStore:
    """
    JSON-file key-value store for discovery filters and search query.

    Args:
        path: JSON file holding the store
        key: Storage key the blob lives under
    """

    def __init__(self, path: str, key: str = "discovery-store"):
        self.path = Path(path)
        self.key = key

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "FilterStore":
        """Create from main config dictionary."""
        storage_config = config.get("storage", {})
        return cls(
            path=storage_config.get("path", "artifacts/discovery_state.json"),
            key=storage_config.get("key", "discovery-store"),
        )

    def _read_all(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        with open(self.path, "r") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                logger.warning(f"Ignoring unreadable store {self.path}: {e}")
                return {}
        return data if isinstance(data, dict) else {}

    def save(self, filters: DiscoveryFilters, search_query: str = "") -> None:
        """Persist filters and search query, keeping other keys in the file."""
        data = self._read_all()
        data[self.key] = {
            "state": {"filters": filters.to_dict(), "searchQuery": search_query},
            "version": STORE_VERSION,
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(data, f, indent=2)
        logger.debug(f"Saved discovery state under '{self.key}' to {self.path}")

    def load(self) -> Tuple[Optional[DiscoveryFilters], str]:
        """
        Restore persisted filters and search query.

        Returns:
            (filters, search_query); filters is None when nothing usable is stored
        """
        blob = self._read_all().get(self.key)
        if not isinstance(blob, dict):
            return None, ""
        state = blob.get("state", {})

        filters = None
        if state.get("filters") is not None:
            try:
                filters = DiscoveryFilters.from_dict(state["filters"])
            except ValidationError as e:
                logger.warning(f"Discarding invalid stored filters: {e}")
        return filters, str(state.get("searchQuery") or "")

    def clear(self) -> None:
        data = self._read_all()
        if data.pop(self.key, None) is not None:
            with open(self.path, "w") as f:
                json.dump(data, f, indent=2)
