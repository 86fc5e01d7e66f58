"""
Chromalab - AI assistant core for professional hair colorists.

Turns a client photo into a validated hair analysis and a step-by-step
color formulation plan, with studio, research and chat tools around it.
"""

from chromalab.core import (
    ChromalabError,
    ChromalabConfig,
    GenerativeBackend,
    load_config,
    get_config,
)

# Models package - shared data classes and enums
from chromalab import models

__version__ = "0.1.0"

__all__ = [
    "ChromalabError",
    "ChromalabConfig",
    "GenerativeBackend",
    "load_config",
    "get_config",
    "models",
]
