"""
infrastructure.llm.response_decoder - Turn a raw model message into a report.

Models do not always honour "JSON only": they wrap output in ```json
fences or add a sentence before the object. Decoding therefore strips
fences, slices from the first '{' to the last '}' and parses that. When
nothing usable comes out the result is None, never an exception.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional

from context_lens.domain.models import AnalysisResult, GroundingSource

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"```(?:json)?\n?", re.IGNORECASE)


def message_text(message: Any) -> str:
    """Concatenate the text parts of a LangChain message.

    content is a plain string for most providers, but Gemini may return a
    list of content blocks (text mixed with tool/citation parts).
    """
    content = getattr(message, "content", message)
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    parts: list[str] = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type", "text") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


def extract_json_object(text: str) -> Optional[str]:
    """Return the substring between the first '{' and the last '}', fences removed."""
    cleaned = _FENCE.sub("", text or "").strip()
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end == -1 or end <= start:
        return None
    return cleaned[start:end + 1]


def decode_analysis(text: str) -> Optional[AnalysisResult]:
    """Decode model text into an AnalysisResult, or None on any failure."""
    candidate = extract_json_object(text)
    if candidate is None:
        logger.warning("No JSON object found in model response (%d chars)", len(text or ""))
        return None
    try:
        return AnalysisResult.from_dict(json.loads(candidate))
    except (ValueError, TypeError) as e:
        # json.JSONDecodeError is a ValueError
        logger.warning("Failed to decode model response: %s", e)
        logger.debug("Raw response: %s", text)
        return None


def extract_grounding_sources(message: Any) -> list[GroundingSource]:
    """Collect web citations from a search-grounded response, if any."""
    metadata = getattr(message, "response_metadata", None) or {}
    grounding = metadata.get("grounding_metadata") or metadata.get("groundingMetadata") or {}
    chunks = grounding.get("grounding_chunks") or grounding.get("groundingChunks") or []

    sources: list[GroundingSource] = []
    for chunk in chunks:
        web = chunk.get("web") if isinstance(chunk, dict) else None
        if web and web.get("uri"):
            sources.append(GroundingSource(uri=web["uri"], title=web.get("title") or ""))
    return sources
