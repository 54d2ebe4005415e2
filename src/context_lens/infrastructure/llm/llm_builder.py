"""
infrastructure.llm.llm_builder - Centralized LLM construction.

Single source of truth for building the multimodal chat model. The
provider is controlled by the LLM_PROVIDER environment variable.

Supported providers:
    - "gemini"  → langchain_google_genai.ChatGoogleGenerativeAI
    - "openai"  → langchain_openai.ChatOpenAI
    - "groq"    → langchain_groq.ChatGroq
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from langchain_core.language_models import BaseChatModel
from langchain_core.runnables import Runnable

from context_lens.domain.exceptions import MissingCredentialError

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("gemini", "openai", "groq")

_KEY_NAMES = {
    "gemini": "GEMINI_API_KEY",
    "openai": "OPENAI_API_KEY",
    "groq": "GROQ_API_KEY",
}


def require_credential(provider: str, api_key: str) -> None:
    """Fail fast when the provider's API key is missing.

    Raises:
        MissingCredentialError: If api_key is empty.
    """
    if not api_key:
        name = _KEY_NAMES.get(provider, "API key")
        raise MissingCredentialError(
            f"{name} is not defined (required when LLM_PROVIDER='{provider}')"
        )


def build_llm(
    *,
    provider: str,
    model: str,
    api_key: str,
    temperature: float = 0.2,
    json_mode: bool = False,
    search_grounding: bool = False,
) -> BaseChatModel | Runnable:
    """Build a chat model instance for the given provider.

    Args:
        provider: One of "gemini", "openai", "groq".
        model: Model name for the selected provider.
        api_key: API key for the selected provider.
        temperature: Sampling temperature.
        json_mode: Ask the provider for a JSON object response. Ignored when
                   search_grounding is active, since Gemini cannot combine
                   tools with a JSON response type.
        search_grounding: Bind Google Search so the response carries web
                          citations (gemini only).

    Returns:
        A configured LangChain chat model (or a tool-bound Runnable).

    Raises:
        MissingCredentialError: If api_key is empty.
        ValueError: If the provider is unknown.
    """
    provider = provider.lower().strip()
    if provider not in SUPPORTED_PROVIDERS:
        raise ValueError(
            f"Unsupported LLM_PROVIDER: '{provider}'. "
            "Must be 'gemini', 'openai', or 'groq'."
        )
    require_credential(provider, api_key)

    if provider == "gemini":
        from langchain_google_genai import ChatGoogleGenerativeAI

        kwargs: Dict[str, Any] = {
            "model": model,
            "temperature": temperature,
            "google_api_key": api_key,
        }
        if json_mode and not search_grounding:
            kwargs["response_mime_type"] = "application/json"

        logger.info(
            "Building Gemini LLM (model=%s, json_mode=%s, search_grounding=%s)",
            model, json_mode, search_grounding,
        )
        llm = ChatGoogleGenerativeAI(**kwargs)
        if search_grounding:
            return llm.bind_tools([{"google_search": {}}])
        return llm

    if search_grounding:
        logger.warning("search_grounding is only supported by gemini; ignoring")

    if provider == "openai":
        from langchain_openai import ChatOpenAI

        kwargs = {
            "model": model,
            "temperature": temperature,
            "openai_api_key": api_key,
        }
        if json_mode:
            kwargs["model_kwargs"] = {"response_format": {"type": "json_object"}}

        logger.info("Building OpenAI LLM (model=%s, json_mode=%s)", model, json_mode)
        return ChatOpenAI(**kwargs)

    from langchain_groq import ChatGroq

    kwargs = {
        "model": model,
        "temperature": temperature,
        "groq_api_key": api_key,
        "max_tokens": 2048,
    }
    if json_mode:
        kwargs["model_kwargs"] = {"response_format": {"type": "json_object"}}

    logger.info("Building Groq LLM (model=%s, json_mode=%s)", model, json_mode)
    return ChatGroq(**kwargs)
