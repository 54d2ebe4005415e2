"""
application.controller - Orchestrates the single-screen workflow.

    start → login → select_file / set_note → submit_analysis → history

Owns one AppState and updates it through named transitions. Depends only
on the HistoryStore and AnalysisClientPort protocols; concrete
implementations are injected by factory.py.

At most one analysis may be in flight; a second submit raises
AnalysisInProgressError instead of relying on a disabled button.
Storage failures never crash a transition: the state degrades to
"empty / not persisted" and the failure is logged.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from context_lens.application.state import (
    GENERIC_FAILURE_MESSAGE,
    AnalysisStatus,
    AppState,
    SelectedImage,
)
from context_lens.domain.exceptions import (
    AnalysisInProgressError,
    AnalysisRequestError,
    InvalidSelectionError,
    MissingCredentialError,
    NotLoggedInError,
    StorageUnavailableError,
)
from context_lens.domain.models import FullAnalysisResponse, HistoryItem, UserProfile
from context_lens.domain.ports import AnalysisClientPort, HistoryStore

logger = logging.getLogger(__name__)


class AppController:
    """Application controller for Context Lens."""

    def __init__(self, store: HistoryStore, client: AnalysisClientPort):
        self._store = store
        self._client = client
        self._state = AppState()
        self._in_flight = False
        # Bumped by transitions that abandon the current screen, so a
        # late-settling request does not overwrite newer state.
        self._epoch = 0

    @property
    def state(self) -> AppState:
        return self._state

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def start(self) -> AppState:
        """Load the persisted profile and history (once, at startup)."""
        try:
            user = self._store.get_user()
        except StorageUnavailableError as e:
            logger.warning("Could not load profile, starting logged out: %s", e)
            user = None

        self._state = AppState(user=user)
        if user is not None:
            self._state.history = self._load_history()
            logger.info(
                "Restored session for '%s' with %d history item(s)",
                user.username, len(self._state.history),
            )
        return self._state

    def login(self, username: str, currency: str = "USD") -> UserProfile:
        """Create and persist a local profile.

        Raises:
            ValueError: If the username is blank or the currency is malformed.
        """
        profile = UserProfile.create(username, currency)
        try:
            self._store.save_user(profile)
        except StorageUnavailableError as e:
            logger.warning("Profile for '%s' not persisted: %s", profile.username, e)
        self._state.user = profile
        self._state.history = self._load_history()
        return profile

    def logout(self) -> None:
        """Forget the profile and its history, and reset the screen."""
        try:
            self._store.clear_user()
        except StorageUnavailableError as e:
            logger.warning("Could not clear stored profile: %s", e)
        self._epoch += 1
        self._state = AppState()

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def select_file(self, path: str) -> SelectedImage:
        """Pick a new image; replaces any history item being viewed.

        Raises:
            InvalidSelectionError: If the file is missing or not an image.
        """
        image = SelectedImage.from_path(path)
        self._epoch += 1
        self._state.selected_image = image
        self._state.restored_preview = None
        self._state.result = None
        self._state.status = AnalysisStatus.IDLE
        self._state.error = None
        logger.debug("Selected %s (%s)", image.path, image.mime_type)
        return image

    def clear_selection(self) -> None:
        """Back to an empty input screen."""
        self._epoch += 1
        self._state.selected_image = None
        self._state.restored_preview = None
        self._state.result = None
        self._state.note = ""
        self._state.status = AnalysisStatus.IDLE
        self._state.error = None

    def set_note(self, text: str) -> None:
        self._state.note = text or ""

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    async def submit_analysis(self) -> Optional[FullAnalysisResponse]:
        """Analyze the selected image and record the result in history.

        Returns:
            The response, or None when the request failed (state.error set)
            or was abandoned by a later transition.

        Raises:
            NotLoggedInError:        No local profile.
            InvalidSelectionError:   No image selected.
            AnalysisInProgressError: Another analysis is still running.
        """
        user = self._state.user
        if user is None:
            raise NotLoggedInError("Log in before analyzing an image.")
        image = self._state.selected_image
        if image is None:
            raise InvalidSelectionError("Select an image first.")
        if self._in_flight:
            raise AnalysisInProgressError("An analysis is already running.")

        self._in_flight = True
        epoch = self._epoch
        note = self._state.note
        self._state.status = AnalysisStatus.REQUESTING
        self._state.error = None

        try:
            response = await self._client.analyze_image(
                image.base64_data,
                image.mime_type,
                note or None,
                user.currency,
            )
        except (AnalysisRequestError, MissingCredentialError, ValueError) as e:
            logger.error("Analysis failed: %s", e)
            if epoch == self._epoch:
                self._state.status = AnalysisStatus.FAILED
                self._state.error = GENERIC_FAILURE_MESSAGE
            return None
        finally:
            self._in_flight = False

        if epoch != self._epoch:
            logger.info("Discarding result of an abandoned analysis")
            return None

        self._state.result = response
        self._state.status = AnalysisStatus.for_response(response)
        try:
            self._store.add_to_history(image.data_uri, note, response)
        except StorageUnavailableError as e:
            logger.warning("Analysis result not saved to history: %s", e)
        self._state.history = self._load_history()
        return response

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def select_history_item(self, item: Union[HistoryItem, str]) -> HistoryItem:
        """Show a past analysis (by item or id) in place of the input screen.

        Raises:
            InvalidSelectionError: If the id is not in the current history.
        """
        if isinstance(item, str):
            item = self._find_history_item(item)
        self._epoch += 1
        self._state.restored_preview = item.image_preview
        self._state.note = item.note
        self._state.result = item.result
        self._state.status = AnalysisStatus.for_response(item.result)
        self._state.selected_image = None
        self._state.error = None
        return item

    def delete_history_item(self, item_id: str) -> list[HistoryItem]:
        try:
            self._state.history = self._store.delete_history_item(item_id)
        except StorageUnavailableError as e:
            logger.warning("Could not delete history item %s: %s", item_id, e)
            self._state.history = [h for h in self._state.history if h.id != item_id]
        return self._state.history

    def clear_history(self) -> None:
        """Drop all history; the profile stays logged in."""
        try:
            self._store.clear_history()
        except StorageUnavailableError as e:
            logger.warning("Could not clear stored history: %s", e)
        self._state.history = []

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _load_history(self) -> list[HistoryItem]:
        try:
            return self._store.get_history()
        except StorageUnavailableError as e:
            logger.warning("Could not load history, treating as empty: %s", e)
            return []

    def _find_history_item(self, item_id: str) -> HistoryItem:
        for h in self._state.history:
            if h.id == item_id:
                return h
        raise InvalidSelectionError(f"No history item with id '{item_id}'")
