"""
domain.ports - Abstract interfaces (Protocols) for all system boundaries.

These define WHAT the system needs without specifying HOW. Infrastructure
modules provide concrete implementations. The application controller
depends only on these protocols, never on concrete classes.

Using typing.Protocol (structural typing) instead of ABC: any class that
implements the methods satisfies the port without explicit inheritance.
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from context_lens.domain.models import (
    FullAnalysisResponse,
    HistoryItem,
    UserProfile,
)


# ---------------------------------------------------------------------------
# AI Component Ports
# ---------------------------------------------------------------------------

@runtime_checkable
class AnalysisClientPort(Protocol):
    """Send one image (+ optional note) to the hosted model and decode the report."""

    async def analyze_image(
        self,
        image_b64: str,
        mime_type: str,
        note: Optional[str] = None,
        currency: str = "USD",
    ) -> FullAnalysisResponse: ...


# ---------------------------------------------------------------------------
# Storage Ports
# ---------------------------------------------------------------------------

@runtime_checkable
class KeyValueStorage(Protocol):
    """String-keyed, string-valued durable storage (the on-device backend)."""

    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...
    def remove(self, key: str) -> None: ...


@runtime_checkable
class HistoryStore(Protocol):
    """Local profile plus a capped, newest-first analysis history."""

    def get_user(self) -> UserProfile | None: ...
    def save_user(self, profile: UserProfile) -> None: ...
    def clear_user(self) -> None: ...
    def clear_profile(self) -> None: ...
    def get_history(self) -> list[HistoryItem]: ...
    def add_to_history(
        self, image_preview: str, note: str, result: FullAnalysisResponse,
    ) -> HistoryItem: ...
    def delete_history_item(self, item_id: str) -> list[HistoryItem]: ...
    def clear_history(self) -> None: ...
