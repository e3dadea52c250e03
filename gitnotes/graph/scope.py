"""Select the visible subgraph for a focal collection and scope."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable

from ..models import Collection, Scope
from ..vault.graph import LinkGraph

logger = logging.getLogger(__name__)


@dataclass
class ScopedGraph:
    """Visible nodes and the edges among them, with in-view degree."""

    scope: Scope
    focal_collection_id: str
    node_ids: list[str] = field(default_factory=list)  # universe order
    edges: list[tuple[str, str]] = field(default_factory=list)
    degree: Counter[str] = field(default_factory=Counter)
    external: set[str] = field(default_factory=set)  # visible ids outside the focal collection

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._visible

    def __post_init__(self) -> None:
        self._visible = set(self.node_ids)
        self._adjacent: dict[str, set[str]] = {n: set() for n in self.node_ids}
        for src, dst in self.edges:
            self._adjacent.setdefault(src, set()).add(dst)
            self._adjacent.setdefault(dst, set()).add(src)

    def neighbors(self, node_id: str) -> set[str]:
        """Undirected neighbors within the view."""
        return set(self._adjacent.get(node_id, set()))


def filter_scope(
    graph: LinkGraph,
    collections: Iterable[Collection],
    focal_collection_id: str,
    scope: Scope,
) -> ScopedGraph:
    """Compute the node subset to render.

    - local: exactly the focal collection's documents
    - global: focal documents plus their direct (one-hop, either direction) neighbors

    Edges are re-derived from the visible set: an edge is kept only if both
    endpoints are visible. Degrees count visible edges only.
    """
    if scope not in ("local", "global"):
        raise ValueError("scope must be one of: local, global")

    focal = next((c for c in collections if c.id == focal_collection_id), None)
    if focal is None:
        logger.warning("unknown collection %r; graph view is empty", focal_collection_id)
        return ScopedGraph(scope=scope, focal_collection_id=focal_collection_id)

    focal_ids = {doc.id for doc in focal.documents if doc.id in graph}
    visible = set(focal_ids)

    if scope == "global":
        # One hop only, computed from the focal set (not transitively)
        for root in focal_ids:
            visible.update(graph.edges.get(root, set()))
            visible.update(graph.reverse_edges.get(root, set()))

    node_ids = [n for n in graph.nodes if n in visible]

    edges: list[tuple[str, str]] = []
    degree: Counter[str] = Counter({n: 0 for n in node_ids})
    for src in node_ids:
        for dst in graph.successors(src):
            if dst in visible:
                edges.append((src, dst))
                degree[src] += 1
                degree[dst] += 1

    return ScopedGraph(
        scope=scope,
        focal_collection_id=focal_collection_id,
        node_ids=node_ids,
        edges=edges,
        degree=degree,
        external=visible - focal_ids,
    )
