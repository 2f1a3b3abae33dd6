"""
Utility functions.

Usage:
    from hybrid_rag.utils import get_llm, replace_t_with_space, configure_logging
"""

from .helpers import get_llm, preview, replace_t_with_space
from .log_utils import configure_logging

__all__ = ["get_llm", "preview", "replace_t_with_space", "configure_logging"]
