"""
factory - Composition root for Context Lens.

ALL dependency wiring happens here. No other module constructs its own
dependencies. Adapters call this factory to get a fully configured
controller.

Usage:
    from context_lens.factory import ServiceFactory
    from context_lens.infrastructure.config import Settings

    factory = ServiceFactory(Settings.from_env())
    controller = factory.create_controller()
    controller.start()
"""

from __future__ import annotations

import logging

from context_lens.application.controller import AppController
from context_lens.infrastructure.config import Settings
from context_lens.infrastructure.llm.analysis_client import LangChainAnalysisClient
from context_lens.infrastructure.persistence.history_store import LocalHistoryStore
from context_lens.infrastructure.persistence.json_storage import JsonFileStorage

logger = logging.getLogger(__name__)


class ServiceFactory:
    """Composition root: wires all dependencies together."""

    def __init__(self, config: Settings):
        self._config = config

    @property
    def config(self) -> Settings:
        return self._config

    def create_history_store(self) -> LocalHistoryStore:
        """Profile + history store on the configured storage directory."""
        return LocalHistoryStore(JsonFileStorage(self._config.storage_dir))

    def create_analysis_client(self) -> LangChainAnalysisClient:
        """Analysis client for the configured provider.

        The API key is not checked here: a missing key fails the first
        analysis with MissingCredentialError, leaving login and history
        usable without one.
        """
        config = self._config
        logger.debug(
            "Analysis client: provider=%s model=%s grounding=%s",
            config.llm_provider, config.active_llm_model, config.search_grounding,
        )
        return LangChainAnalysisClient(
            provider=config.llm_provider,
            model=config.active_llm_model,
            api_key=config.active_api_key,
            search_grounding=config.search_grounding and config.llm_provider == "gemini",
        )

    def create_controller(self) -> AppController:
        return AppController(
            store=self.create_history_store(),
            client=self.create_analysis_client(),
        )
