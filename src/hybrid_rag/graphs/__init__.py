"""
LangGraph workflow for hybrid querying.

Usage:
    from hybrid_rag.graphs import build_query_graph
"""

from .query import build_query_graph
from .state import QueryState

__all__ = [
    "build_query_graph",
    "QueryState",
]
