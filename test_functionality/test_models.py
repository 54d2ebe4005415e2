"""Tests for domain value objects."""

import pytest

from context_lens.domain.models import (
    AnalysisResult,
    FullAnalysisResponse,
    GroundingSource,
    HistoryItem,
    UserProfile,
)


def test_profile_create_normalizes_input():
    profile = UserProfile.create("  Dana ", "eur")
    assert profile.username == "Dana"
    assert profile.currency == "EUR"
    assert profile.created_at > 0


@pytest.mark.parametrize("username,currency", [("", "USD"), ("Dana", "EURO"), ("Dana", "12$")])
def test_profile_create_rejects_bad_input(username, currency):
    with pytest.raises(ValueError):
        UserProfile.create(username, currency)


def test_profile_accepts_unlisted_currency():
    assert UserProfile.create("Dana", "CHF").currency == "CHF"


def test_analysis_result_requires_object():
    with pytest.raises(ValueError):
        AnalysisResult.from_dict(["not", "an", "object"])


def test_analysis_result_rejects_string_steps(sample_report):
    sample_report["steps"] = "just do it"
    with pytest.raises(ValueError):
        AnalysisResult.from_dict(sample_report)


def test_full_response_serialized_field_names(sample_report):
    response = FullAnalysisResponse(
        data=AnalysisResult.from_dict(sample_report),
        grounding_sources=[GroundingSource(uri="https://x.example", title="X")],
        raw_text="raw",
    )
    payload = response.to_dict()
    assert payload["data"] == sample_report
    assert payload["groundingSources"] == [{"uri": "https://x.example", "title": "X"}]
    assert payload["rawText"] == "raw"
    assert FullAnalysisResponse.from_dict(payload) == response


def test_history_item_with_undecoded_result():
    item = HistoryItem(
        id="abc",
        timestamp=1,
        image_preview="data:image/png;base64,AAA",
        note="",
        result=FullAnalysisResponse(data=None, raw_text="nope"),
    )
    restored = HistoryItem.from_dict(item.to_dict())
    assert restored == item
    assert restored.result.data is None
