"""Continuation firing engine"""

from .resolution import ResolutionEngine, get_default_engine

__all__ = ["ResolutionEngine", "get_default_engine"]
