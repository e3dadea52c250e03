"""Graph view construction: scope filtering, classification and layout."""

from .builder import GraphViewCache, build_graph_view
from .classify import classify_nodes, select_sovereigns
from .layout import layered_layout
from .scope import ScopedGraph, filter_scope

__all__ = [
    "GraphViewCache",
    "ScopedGraph",
    "build_graph_view",
    "classify_nodes",
    "filter_scope",
    "layered_layout",
    "select_sovereigns",
]
