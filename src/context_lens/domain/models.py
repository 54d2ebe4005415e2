"""
domain.models - Value objects for the diagnostic workflow.

These are immutable data containers with no business logic and no
dependencies on infrastructure (no LangChain, no filesystem).

Every type round-trips through to_dict()/from_dict() using the field
names of the persisted JSON layout, so records written by one version of
the app stay readable by the next.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Optional


def now_ms() -> int:
    """Current wall-clock time as epoch milliseconds."""
    return int(time.time() * 1000)


# ---------------------------------------------------------------------------
# Model output
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Estimation:
    """Price and time estimate, localized by the model to the user's currency."""
    price_range: str = ""
    time_estimate: str = ""
    currency: str = ""

    def to_dict(self) -> dict:
        return {
            "price_range": self.price_range,
            "time_estimate": self.time_estimate,
            "currency": self.currency,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Estimation:
        if not isinstance(data, dict):
            raise ValueError(f"estimation must be an object, got {type(data).__name__}")
        return cls(
            price_range=data.get("price_range", ""),
            time_estimate=data.get("time_estimate", ""),
            currency=data.get("currency", ""),
        )


@dataclass(frozen=True)
class AnalysisResult:
    """Structured diagnostic report decoded from the model response.

    Produced entirely by the remote model. from_dict() only checks the
    overall shape; it never corrects or synthesizes values, so e.g. a
    confidence_score outside 0-100 is passed through untouched.
    """
    object_name: str
    issue_detected: str
    importance: str
    likely_causes: list[str] = field(default_factory=list)
    steps: list[str] = field(default_factory=list)
    estimation: Estimation = field(default_factory=Estimation)
    confidence_score: int = 0
    safety_warning: Optional[str] = None
    product_search_query: Optional[str] = None

    _REQUIRED = (
        "object_name",
        "issue_detected",
        "importance",
        "likely_causes",
        "steps",
        "estimation",
        "confidence_score",
    )

    def to_dict(self) -> dict:
        return {
            "object_name": self.object_name,
            "issue_detected": self.issue_detected,
            "importance": self.importance,
            "likely_causes": list(self.likely_causes),
            "steps": list(self.steps),
            "estimation": self.estimation.to_dict(),
            "confidence_score": self.confidence_score,
            "safety_warning": self.safety_warning,
            "product_search_query": self.product_search_query,
        }

    @classmethod
    def from_dict(cls, data: Any) -> AnalysisResult:
        """Build from a parsed JSON object.

        Raises:
            ValueError: If data is not an object or a required field is missing
                        or has the wrong container type.
        """
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        missing = [k for k in cls._REQUIRED if k not in data]
        if missing:
            raise ValueError(f"missing field(s): {', '.join(missing)}")
        for key in ("likely_causes", "steps"):
            if not isinstance(data[key], list):
                raise ValueError(f"{key} must be a list")

        return cls(
            object_name=data["object_name"],
            issue_detected=data["issue_detected"],
            importance=data["importance"],
            likely_causes=list(data["likely_causes"]),
            steps=list(data["steps"]),
            estimation=Estimation.from_dict(data["estimation"]),
            confidence_score=data["confidence_score"],
            safety_warning=data.get("safety_warning"),
            product_search_query=data.get("product_search_query"),
        )


@dataclass(frozen=True)
class GroundingSource:
    """A web citation attached to a search-grounded response."""
    uri: str
    title: str = ""

    def to_dict(self) -> dict:
        return {"uri": self.uri, "title": self.title}

    @classmethod
    def from_dict(cls, data: dict) -> GroundingSource:
        return cls(uri=data.get("uri", ""), title=data.get("title", ""))


@dataclass(frozen=True)
class FullAnalysisResponse:
    """Everything one analysis call produced.

    data is None when the model's text could not be decoded into an
    AnalysisResult; callers then fall back to showing raw_text.
    """
    data: Optional[AnalysisResult] = None
    grounding_sources: list[GroundingSource] = field(default_factory=list)
    raw_text: Optional[str] = None

    @property
    def is_decoded(self) -> bool:
        return self.data is not None

    def to_dict(self) -> dict:
        return {
            "data": self.data.to_dict() if self.data is not None else None,
            "groundingSources": [s.to_dict() for s in self.grounding_sources],
            "rawText": self.raw_text,
        }

    @classmethod
    def from_dict(cls, data: dict) -> FullAnalysisResponse:
        payload = data.get("data")
        return cls(
            data=AnalysisResult.from_dict(payload) if payload is not None else None,
            grounding_sources=[
                GroundingSource.from_dict(s) for s in data.get("groundingSources") or []
            ],
            raw_text=data.get("rawText"),
        )


# ---------------------------------------------------------------------------
# Local profile & history
# ---------------------------------------------------------------------------

# Offered on the login form; any other three-letter code is still accepted.
SUPPORTED_CURRENCIES: dict[str, str] = {
    "USD": "US Dollar ($)",
    "EUR": "Euro (€)",
    "GBP": "British Pound (£)",
    "CAD": "Canadian Dollar (C$)",
    "AUD": "Australian Dollar (A$)",
    "JPY": "Japanese Yen (¥)",
    "INR": "Indian Rupee (₹)",
    "KES": "Kenyan Shilling (KSh)",
}


@dataclass(frozen=True)
class UserProfile:
    """Locally entered display name and preferred currency."""
    username: str
    currency: str = "USD"
    created_at: int = 0

    @classmethod
    def create(cls, username: str, currency: str = "USD") -> UserProfile:
        """Build a fresh profile from login form input.

        Raises:
            ValueError: If the username is blank or the currency is not a
                        three-letter code.
        """
        name = (username or "").strip()
        if not name:
            raise ValueError("Username must not be empty.")
        code = (currency or "").strip().upper()
        if len(code) != 3 or not code.isalpha():
            raise ValueError(f"Invalid currency code: {currency!r}")
        return cls(username=name, currency=code, created_at=now_ms())

    def to_dict(self) -> dict:
        return {
            "username": self.username,
            "currency": self.currency,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> UserProfile:
        return cls(
            username=data["username"],
            currency=data.get("currency", "USD"),
            created_at=data.get("createdAt", 0),
        )


@dataclass(frozen=True)
class HistoryItem:
    """One persisted past analysis, including its source image preview."""
    id: str
    timestamp: int
    image_preview: str    # data: URI of the original image
    note: str
    result: FullAnalysisResponse

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "imagePreview": self.image_preview,
            "note": self.note,
            "result": self.result.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> HistoryItem:
        return cls(
            id=data["id"],
            timestamp=data.get("timestamp", 0),
            image_preview=data.get("imagePreview", ""),
            note=data.get("note", ""),
            result=FullAnalysisResponse.from_dict(data.get("result") or {}),
        )
