"""
infrastructure.config - Typed, injectable configuration.

A frozen dataclass that can be constructed from the environment (and an
optional .env file) or passed explicitly in tests.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """Centralized configuration for Context Lens.

    No module-level globals: construct via from_env() or pass explicitly
    in tests.
    """
    # Where the profile and history JSON files live.
    storage_dir: Path

    # ── Centralized LLM Provider ────────────────────────────────
    # Allowed: "gemini", "openai", "groq". All are hosted; there is no
    # local inference path.
    llm_provider: str = "gemini"

    # Model names: only the one matching llm_provider is used.
    llm_model_gemini: str = "gemini-2.5-flash"
    llm_model_openai: str = "gpt-4.1-mini"
    llm_model_groq: str = "meta-llama/llama-4-scout-17b-16e-instruct"

    gemini_api_key: str = ""
    openai_api_key: str = ""
    groq_api_key: str = ""

    # Attach Google Search to the request and return its citations.
    # Only honoured by the gemini provider.
    search_grounding: bool = True

    default_currency: str = "USD"
    log_level: str = "WARNING"

    @property
    def active_llm_model(self) -> str:
        """Return the model name for the currently active LLM provider."""
        if self.llm_provider == "openai":
            return self.llm_model_openai
        elif self.llm_provider == "groq":
            return self.llm_model_groq
        return self.llm_model_gemini

    @property
    def active_api_key(self) -> str:
        """Return the API key for the currently active LLM provider."""
        if self.llm_provider == "openai":
            return self.openai_api_key
        elif self.llm_provider == "groq":
            return self.groq_api_key
        return self.gemini_api_key

    @classmethod
    def from_env(cls, storage_dir: Optional[Path] = None) -> Settings:
        """Build Settings from environment variables (after loading .env)."""
        from dotenv import load_dotenv
        load_dotenv()

        home = storage_dir or Path(
            os.getenv("CONTEXT_LENS_HOME", str(Path.home() / ".context-lens"))
        ).expanduser()

        return cls(
            storage_dir=home,
            llm_provider=os.getenv("LLM_PROVIDER", "gemini").strip().lower(),
            llm_model_gemini=os.getenv("LLM_MODEL_GEMINI", "gemini-2.5-flash"),
            llm_model_openai=os.getenv("LLM_MODEL_OPENAI", "gpt-4.1-mini"),
            llm_model_groq=os.getenv(
                "LLM_MODEL_GROQ", "meta-llama/llama-4-scout-17b-16e-instruct",
            ),
            # API_KEY is the name the web build used; keep honouring it.
            gemini_api_key=os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY", ""),
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            groq_api_key=os.getenv("GROQ_API_KEY", ""),
            search_grounding=_env_flag("SEARCH_GROUNDING", True),
            default_currency=os.getenv("DEFAULT_CURRENCY", "USD").upper(),
            log_level=os.getenv("LOG_LEVEL", "WARNING").upper(),
        )
