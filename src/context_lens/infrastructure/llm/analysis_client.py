"""
infrastructure.llm.analysis_client - One multimodal round trip per analysis.

Implements AnalysisClientPort using LangChain. The LLM provider
(gemini / openai / groq) is controlled by the centralized LLM_PROVIDER
setting.

Per invocation:  Idle → Requesting → Decoded | DecodedEmpty | Failed
    - Decoded:       data populated, raw_text kept for diagnostics
    - DecodedEmpty:  data None, raw_text populated (caller shows raw text)
    - Failed:        AnalysisRequestError / MissingCredentialError raised

No caching, no timeout, no retry.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from langchain_core.messages import HumanMessage, SystemMessage

from context_lens.domain.exceptions import AnalysisRequestError
from context_lens.domain.models import FullAnalysisResponse
from context_lens.infrastructure.llm.llm_builder import build_llm, require_credential
from context_lens.infrastructure.llm.prompt import build_system_instruction, build_user_prompt
from context_lens.infrastructure.llm.response_decoder import (
    decode_analysis,
    extract_grounding_sources,
    message_text,
)

logger = logging.getLogger(__name__)


class LangChainAnalysisClient:
    """Send an image + note to a hosted multimodal model and decode the report.

    Implements AnalysisClientPort (structural typing, no explicit inheritance).

    The chat model is built per call through llm_factory (build_llm by
    default), so a missing credential is detected before anything touches
    the network, and tests can inject a fake model.
    """

    def __init__(
        self,
        *,
        provider: str,
        model: str,
        api_key: str,
        search_grounding: bool = False,
        llm_factory: Callable[..., object] = build_llm,
    ):
        self._provider = provider
        self._model = model
        self._api_key = api_key
        self._search_grounding = search_grounding
        self._llm_factory = llm_factory

    async def analyze_image(
        self,
        image_b64: str,
        mime_type: str,
        note: Optional[str] = None,
        currency: str = "USD",
    ) -> FullAnalysisResponse:
        """Analyze one image.

        Args:
            image_b64: Base64-encoded image bytes, WITHOUT a data: URI prefix.
            mime_type: MIME type of the image (e.g. "image/jpeg").
            note:      Optional free-text hint from the user.
            currency:  Currency the model should quote prices in.

        Returns:
            FullAnalysisResponse; data is None if the reply was not valid JSON.

        Raises:
            MissingCredentialError: No API key configured (no call is made).
            AnalysisRequestError:   The model call failed.
            ValueError:             image_b64 still carries a data: URI prefix.
        """
        require_credential(self._provider, self._api_key)
        if image_b64.startswith("data:"):
            raise ValueError("image_b64 must be raw base64, strip the data: URI prefix first")

        llm = self._llm_factory(
            provider=self._provider,
            model=self._model,
            api_key=self._api_key,
            json_mode=True,
            search_grounding=self._search_grounding,
        )
        messages = [
            SystemMessage(content=build_system_instruction(currency)),
            HumanMessage(content=[
                {
                    "type": "image_url",
                    "image_url": {"url": f"data:{mime_type};base64,{image_b64}"},
                },
                {"type": "text", "text": build_user_prompt(note)},
            ]),
        ]

        logger.info(
            "Requesting analysis from %s (%s), %d base64 chars, currency=%s, note=%s",
            self._provider, self._model, len(image_b64), currency, bool(note),
        )
        try:
            response = await llm.ainvoke(messages)
        except Exception as e:
            logger.error("Model request failed: %s", e)
            raise AnalysisRequestError(f"{self._provider} request failed: {e}") from e

        text = message_text(response)
        data = decode_analysis(text)
        sources = extract_grounding_sources(response)
        logger.info(
            "Analysis finished: decoded=%s, sources=%d",
            data is not None, len(sources),
        )
        return FullAnalysisResponse(data=data, grounding_sources=sources, raw_text=text)
