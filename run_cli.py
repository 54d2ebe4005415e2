"""
Run the Context Lens CLI without installing the package.

Usage:
    python run_cli.py [COMMAND] [OPTIONS]

Commands:
    login          Create the local profile (display name + currency)
    logout         Forget the profile and its history
    whoami         Show the current profile
    analyze        Analyze an image:  python run_cli.py analyze photo.jpg --note "won't turn on"
    history        List past analyses
    show           Re-open a past analysis
    delete         Remove one past analysis
    clear-history  Remove all past analyses

Environment variables (all optional except the API key of the chosen provider):
    LLM_PROVIDER        "gemini" (default), "openai", or "groq"
    LLM_MODEL_GEMINI    Model name when LLM_PROVIDER=gemini (default: gemini-2.5-flash)
    LLM_MODEL_OPENAI    Model name when LLM_PROVIDER=openai (default: gpt-4.1-mini)
    LLM_MODEL_GROQ      Model name when LLM_PROVIDER=groq
    GEMINI_API_KEY      Required when LLM_PROVIDER=gemini (API_KEY is also accepted)
    OPENAI_API_KEY      Required when LLM_PROVIDER=openai
    GROQ_API_KEY        Required when LLM_PROVIDER=groq
    SEARCH_GROUNDING    Attach Google Search citations, gemini only (default: true)
    CONTEXT_LENS_HOME   Where profile and history are stored (default: ~/.context-lens)
    DEFAULT_CURRENCY    Currency offered at login (default: USD)
    LOG_LEVEL           Python logging level (default: WARNING)
"""

import sys
from pathlib import Path

# Ensure src/ is importable
sys.path.insert(0, str(Path(__file__).parent / "src"))

from context_lens.adapters.cli.main import app

if __name__ == "__main__":
    app()
