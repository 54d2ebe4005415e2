"""
Shared fixtures: temp-dir storage, a sample model report, fake chat models.

Nothing here touches the network.
"""

import json

import pytest
from langchain_core.messages import AIMessage

from context_lens.infrastructure.persistence.history_store import LocalHistoryStore
from context_lens.infrastructure.persistence.json_storage import JsonFileStorage


SAMPLE_REPORT = {
    "object_name": "Phone",
    "issue_detected": "Cracked screen",
    "importance": "Glass shards can cut fingers and moisture can get in.",
    "likely_causes": ["Drop onto a hard surface", "Pressure in a pocket"],
    "steps": ["Back up your data", "Apply tape over the crack", "Replace the screen"],
    "estimation": {
        "price_range": "80-150 EUR",
        "time_estimate": "1-2 hours",
        "currency": "EUR",
    },
    "confidence_score": 85,
    "safety_warning": "Avoid touching the broken glass.",
    "product_search_query": "replacement screen for phone",
}


class FakeChatModel:
    """Stands in for a LangChain chat model; records what it was sent."""

    def __init__(self, text="", response_metadata=None, error=None):
        self._text = text
        self._metadata = response_metadata or {}
        self._error = error
        self.calls = []

    async def ainvoke(self, messages):
        self.calls.append(messages)
        if self._error is not None:
            raise self._error
        return AIMessage(content=self._text, response_metadata=self._metadata)


class FakeLLMFactory:
    """Replacement for build_llm that hands out one FakeChatModel."""

    def __init__(self, model):
        self.model = model
        self.kwargs = []

    def __call__(self, **kwargs):
        self.kwargs.append(kwargs)
        return self.model


class FakeAnalysisClient:
    """AnalysisClientPort double returning a canned response or raising."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    async def analyze_image(self, image_b64, mime_type, note=None, currency="USD"):
        self.calls.append(
            {"image_b64": image_b64, "mime_type": mime_type, "note": note, "currency": currency}
        )
        if self.error is not None:
            raise self.error
        return self.response


class BrokenStorage:
    """KeyValueStorage whose every operation fails."""

    def get(self, key):
        from context_lens.domain.exceptions import StorageUnavailableError
        raise StorageUnavailableError("disk unavailable")

    def set(self, key, value):
        from context_lens.domain.exceptions import StorageUnavailableError
        raise StorageUnavailableError("disk unavailable")

    def remove(self, key):
        from context_lens.domain.exceptions import StorageUnavailableError
        raise StorageUnavailableError("disk unavailable")


@pytest.fixture
def sample_report():
    return json.loads(json.dumps(SAMPLE_REPORT))


@pytest.fixture
def sample_text():
    return json.dumps(SAMPLE_REPORT)


@pytest.fixture
def storage(tmp_path):
    return JsonFileStorage(tmp_path / "store")


@pytest.fixture
def store(storage):
    return LocalHistoryStore(storage)


@pytest.fixture
def image_file(tmp_path):
    path = tmp_path / "phone.png"
    path.write_bytes(b"\x89PNG\r\n\x1a\nfake-image-bytes")
    return path
