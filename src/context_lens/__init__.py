"""
context_lens - Photograph an object, get a structured diagnostic report.

Layers:
    domain          value objects, ports, exceptions (no infrastructure imports)
    application     controller + explicit application state
    infrastructure  configuration, on-device storage, LLM access
    adapters        terminal presentation (Typer + Rich)
"""

__version__ = "1.0.0"
