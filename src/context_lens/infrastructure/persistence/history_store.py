"""
infrastructure.persistence.history_store - Profile + capped analysis history.

Implements the HistoryStore port on top of any KeyValueStorage. Two keys
are used: one holds the serialized UserProfile, the other the whole
newest-first history list. Every mutation rewrites its key in full; at
HISTORY_LIMIT entries that is cheap, although the embedded image previews
dominate the size on disk.
"""

from __future__ import annotations

import json
import logging
from uuid import uuid4

from context_lens.domain.exceptions import StorageUnavailableError
from context_lens.domain.models import (
    FullAnalysisResponse,
    HistoryItem,
    UserProfile,
    now_ms,
)
from context_lens.domain.ports import KeyValueStorage

logger = logging.getLogger(__name__)

USER_KEY = "context_lens_user"
HISTORY_KEY = "context_lens_history"
HISTORY_LIMIT = 10


class LocalHistoryStore:
    """Synchronous HistoryStore backed by a KeyValueStorage.

    Any backend failure surfaces as StorageUnavailableError; the caller
    decides whether to degrade to an empty state.
    """

    def __init__(self, storage: KeyValueStorage):
        self._storage = storage

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    def get_user(self) -> UserProfile | None:
        raw = self._storage.get(USER_KEY)
        if raw is None:
            return None
        try:
            return UserProfile.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError) as e:
            raise StorageUnavailableError(f"Stored profile is corrupt: {e}") from e

    def save_user(self, profile: UserProfile) -> None:
        self._storage.set(USER_KEY, json.dumps(profile.to_dict()))
        logger.info("Saved profile for '%s' (%s)", profile.username, profile.currency)

    def clear_user(self) -> None:
        """Remove the profile and the history together (logout)."""
        self._storage.remove(USER_KEY)
        self._storage.remove(HISTORY_KEY)
        logger.info("Cleared profile and history")

    def clear_profile(self) -> None:
        """Remove only the profile; history is left untouched."""
        self._storage.remove(USER_KEY)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def get_history(self) -> list[HistoryItem]:
        raw = self._storage.get(HISTORY_KEY)
        if raw is None:
            return []
        try:
            return [HistoryItem.from_dict(d) for d in json.loads(raw)]
        except (ValueError, KeyError, TypeError) as e:
            raise StorageUnavailableError(f"Stored history is corrupt: {e}") from e

    def add_to_history(
        self,
        image_preview: str,
        note: str,
        result: FullAnalysisResponse,
    ) -> HistoryItem:
        """Prepend a new record and drop everything past HISTORY_LIMIT.

        Stored history that cannot be read is treated as empty and
        overwritten by the new record.
        """
        item = HistoryItem(
            id=uuid4().hex,
            timestamp=now_ms(),
            image_preview=image_preview,
            note=note,
            result=result,
        )
        try:
            existing = self.get_history()
        except StorageUnavailableError as e:
            # Unreadable history is replaced; a dead backend still fails on write.
            logger.warning("Discarding unreadable history: %s", e)
            existing = []
        history = [item, *existing][:HISTORY_LIMIT]
        self._write_history(history)
        logger.debug("History now holds %d item(s)", len(history))
        return item

    def delete_history_item(self, item_id: str) -> list[HistoryItem]:
        """Remove the matching record (no-op if absent) and return what is left."""
        history = [h for h in self.get_history() if h.id != item_id]
        self._write_history(history)
        return history

    def clear_history(self) -> None:
        """Remove all history; the profile is left untouched."""
        self._storage.remove(HISTORY_KEY)
        logger.info("Cleared history")

    def _write_history(self, history: list[HistoryItem]) -> None:
        self._storage.set(HISTORY_KEY, json.dumps([h.to_dict() for h in history]))
