"""
Connectors for external generative providers.
"""
from chromalab.connectors.gemini_backend import GeminiBackend

__all__ = ["GeminiBackend"]
