"""
domain.exceptions - Custom exception hierarchy for Context Lens.

All domain-level errors inherit from DomainError so callers can catch
broad or specific exceptions as needed. A response that cannot be decoded
is NOT an error: it is represented as a FullAnalysisResponse with
data=None.
"""


class DomainError(Exception):
    """Base exception for all domain-level errors."""


class MissingCredentialError(DomainError):
    """Raised when no API key is configured; no model call is attempted."""


class AnalysisRequestError(DomainError):
    """Raised when the model call is rejected or the network fails."""


class StorageUnavailableError(DomainError):
    """Raised when on-device storage cannot be read or written."""


class AnalysisInProgressError(DomainError):
    """Raised when an analysis is submitted while another is still running."""


class InvalidSelectionError(DomainError):
    """Raised when the selected file is missing or is not an image."""


class NotLoggedInError(DomainError):
    """Raised when an action needs a local profile and none exists."""
