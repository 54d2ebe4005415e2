"""
application - Controller and explicit application state.

Depends on domain/ only. Concrete storage and model clients are injected
by the composition root (factory.py).
"""
