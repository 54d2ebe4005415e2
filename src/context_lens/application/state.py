"""
application.state - Explicit application state owned by the controller.

There is no shared global: the controller holds one AppState and updates
it only through its named transitions. Presentation reads it.
"""

from __future__ import annotations

import base64
import mimetypes
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from context_lens.domain.exceptions import InvalidSelectionError
from context_lens.domain.models import FullAnalysisResponse, HistoryItem, UserProfile

GENERIC_FAILURE_MESSAGE = (
    "Failed to analyze the image. "
    "Please ensure you have a valid API key and try again."
)

LOADING_MESSAGES = (
    "Analyzing visual data...",
    "Identifying objects and context...",
    "Detecting potential issues...",
    "Searching for solutions...",
    "Estimating repair costs...",
)

MAX_IMAGE_BYTES = 10 * 1024 * 1024


class AnalysisStatus(str, Enum):
    """Where the current analysis stands."""
    IDLE = "idle"
    REQUESTING = "requesting"
    DECODED = "decoded"               # data present
    DECODED_EMPTY = "decoded_empty"   # data absent, raw text present
    FAILED = "failed"

    @classmethod
    def for_response(cls, response: FullAnalysisResponse) -> AnalysisStatus:
        return cls.DECODED if response.is_decoded else cls.DECODED_EMPTY


@dataclass(frozen=True)
class SelectedImage:
    """An image file chosen for analysis, already read into memory."""
    path: str
    mime_type: str
    data_uri: str

    @property
    def base64_data(self) -> str:
        """The data URI without its "data:<mime>;base64," prefix."""
        return strip_data_uri(self.data_uri)

    @classmethod
    def from_path(cls, path: str | Path) -> SelectedImage:
        """Read an image file and build its data URI preview.

        Raises:
            InvalidSelectionError: Missing file, non-image type, or too large.
        """
        p = Path(path)
        if not p.is_file():
            raise InvalidSelectionError(f"Image file not found: {path}")

        mime_type, _ = mimetypes.guess_type(p.name)
        if not mime_type or not mime_type.startswith("image/"):
            raise InvalidSelectionError(f"Not an image file: {p.name}")

        try:
            raw = p.read_bytes()
        except OSError as e:
            raise InvalidSelectionError(f"Cannot read {p.name}: {e}") from e
        if not raw:
            raise InvalidSelectionError(f"Image file is empty: {p.name}")
        if len(raw) > MAX_IMAGE_BYTES:
            raise InvalidSelectionError(
                f"Image is {len(raw) / 1_048_576:.1f} MB; the limit is 10 MB"
            )

        encoded = base64.b64encode(raw).decode("ascii")
        return cls(
            path=str(p),
            mime_type=mime_type,
            data_uri=f"data:{mime_type};base64,{encoded}",
        )


def strip_data_uri(data_uri: str) -> str:
    """Drop everything up to and including the first comma of a data URI."""
    if data_uri.startswith("data:") and "," in data_uri:
        return data_uri.split(",", 1)[1]
    return data_uri


@dataclass
class AppState:
    """Everything the presentation layer needs to render the single screen.

    Attributes:
        user:              Logged-in local profile, or None (show login).
        history:           Newest-first past analyses.
        selected_image:    Freshly picked file awaiting analysis.
        restored_preview:  Data URI of a history item being viewed.
        note:              Free-text hint for the next analysis.
        status:            Lifecycle of the current analysis.
        result:            Report being shown (fresh or restored from history).
        error:             User-facing failure message, if any.
    """
    user: Optional[UserProfile] = None
    history: list[HistoryItem] = field(default_factory=list)
    selected_image: Optional[SelectedImage] = None
    restored_preview: Optional[str] = None
    note: str = ""
    status: AnalysisStatus = AnalysisStatus.IDLE
    result: Optional[FullAnalysisResponse] = None
    error: Optional[str] = None

    @property
    def is_logged_in(self) -> bool:
        return self.user is not None

    @property
    def is_analyzing(self) -> bool:
        return self.status == AnalysisStatus.REQUESTING

    @property
    def current_preview(self) -> Optional[str]:
        """History preview wins over a picked file, as in the viewer."""
        if self.restored_preview:
            return self.restored_preview
        return self.selected_image.data_uri if self.selected_image else None

    @property
    def can_submit(self) -> bool:
        return (
            self.is_logged_in
            and self.selected_image is not None
            and not self.is_analyzing
        )
