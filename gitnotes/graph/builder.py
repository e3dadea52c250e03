"""Graph view pipeline: adjacency -> scope -> classification -> layout."""

from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import replace
from typing import Iterable

from ..config import GraphConfig
from ..models import Collection, GraphEdge, GraphNode, GraphView, NodeCategory, Scope
from ..vault.graph import LinkGraph
from ..vault.parser import strip_md
from .classify import NodeClass, classify_nodes
from .layout import NodeBox, layered_layout
from .scope import ScopedGraph, filter_scope

logger = logging.getLogger(__name__)

BIDIRECTIONAL_STROKE = "#52525B"
ONE_WAY_STROKE = "#27272A"


def node_width(degree: int, scope: Scope, config: GraphConfig) -> int:
    """Base width per scope plus a linear bonus for clamped degree."""
    return config.base_width(scope) + min(degree, config.degree_clamp) * config.width_per_degree


def _node_style(node_class: NodeClass, scope: Scope) -> dict:
    style: dict = {
        "border_color": node_class.color,
        "border_width": 2 if node_class.important else 1,
        "border_style": "solid",
        "font_weight": "bold" if node_class.important else "normal",
        "opacity": 1.0,
    }
    if scope == "local" and node_class.category is NodeCategory.NEUTRAL:
        style["border_style"] = "dashed"
        style["opacity"] = 0.8
    return style


def _edge_style(bidirectional: bool) -> dict:
    stroke = BIDIRECTIONAL_STROKE if bidirectional else ONE_WAY_STROKE
    return {
        "stroke": stroke,
        "stroke_width": 1,
        "dasharray": None if bidirectional else "4 4",
        "marker_color": stroke,
    }


def build_graph_view(
    collections: Iterable[Collection],
    focal_collection_id: str,
    scope: Scope = "local",
    *,
    config: GraphConfig | None = None,
    graph: LinkGraph | None = None,
) -> GraphView:
    """Build the positioned, colored view for one render pass.

    `graph` may be passed when the caller already built adjacency over the
    same collections.
    """
    t0 = time.perf_counter()
    config = config or GraphConfig()
    collections = list(collections)
    documents = {doc.id: doc for c in collections for doc in c.documents}

    if graph is None:
        graph = LinkGraph.from_documents(documents.values())

    view: ScopedGraph = filter_scope(graph, collections, focal_collection_id, scope)
    classes = classify_nodes(view, documents, collections, config)

    nodes: list[GraphNode] = []
    for node_id in view.node_ids:
        doc = documents[node_id]
        node_class = classes[node_id]
        degree = view.degree[node_id]
        nodes.append(
            GraphNode(
                id=node_id,
                label=strip_md(doc.name),
                collection_id=doc.collection_id,
                color=node_class.color,
                category=node_class.category,
                important=node_class.important,
                degree=degree,
                width=node_width(degree, scope, config),
                height=config.node_height,
                external=node_id in view.external,
                style=_node_style(node_class, scope),
            )
        )

    edges = [
        GraphEdge(
            source=src,
            target=dst,
            bidirectional=graph.is_bidirectional(src, dst),
            style=_edge_style(graph.is_bidirectional(src, dst)),
        )
        for src, dst in view.edges
    ]

    placements = layered_layout(
        (NodeBox(n.id, n.width, n.height) for n in nodes),
        view.edges,
        node_sep=config.node_sep,
        rank_sep=config.rank_sep,
    )
    for n in nodes:
        p = placements[n.id]
        n.x, n.y = p.x, p.y

    orphans = 0
    if len(nodes) > 1:
        orphans = sum(1 for n in nodes if n.degree == 0)

    dt_ms = (time.perf_counter() - t0) * 1000.0
    stats = {
        "scope": scope,
        "collection": focal_collection_id,
        "nodes": len(nodes),
        "edges": len(edges),
        "bidirectional_edges": sum(1 for e in edges if e.bidirectional),
        "orphans": orphans,
        "sovereigns": sum(1 for n in nodes if n.category is NodeCategory.SOVEREIGN),
        "nodes_all": len(graph.nodes),
        "edges_all": graph.edge_count,
        "time_ms": round(dt_ms, 3),
    }
    logger.debug("graph view %s/%s: %s", focal_collection_id, scope, stats)
    return GraphView(nodes=nodes, edges=edges, stats=stats)


def content_fingerprint(
    collections: Iterable[Collection],
    focal_collection_id: str,
    scope: Scope,
    config: GraphConfig,
) -> str:
    """Hash of everything a graph view depends on."""
    h = hashlib.sha256()
    h.update(f"{focal_collection_id}\0{scope}\0{config!r}\0".encode("utf-8"))
    for c in collections:
        h.update(f"C\0{c.id}\0".encode("utf-8"))
        for doc in c.documents:
            h.update(f"D\0{doc.id}\0{doc.name}\0{doc.collection_id}\0".encode("utf-8"))
            h.update(hashlib.sha256((doc.content or "").encode("utf-8")).digest())
    return h.hexdigest()


class GraphViewCache:
    """Memoize graph views on a content fingerprint.

    Views are rebuilt from scratch on any change; the cache only skips
    identical rebuilds. Returned views are copies, so callers may mutate them.
    """

    def __init__(self, config: GraphConfig | None = None, max_entries: int = 16):
        self.config = config or GraphConfig()
        self.max_entries = max_entries
        self._entries: dict[str, GraphView] = {}
        self.hits = 0
        self.misses = 0

    def get(self, collections: Iterable[Collection], focal_collection_id: str, scope: Scope = "local") -> GraphView:
        collections = list(collections)
        key = content_fingerprint(collections, focal_collection_id, scope, self.config)
        cached = self._entries.get(key)
        if cached is None:
            self.misses += 1
            cached = build_graph_view(collections, focal_collection_id, scope, config=self.config)
            if len(self._entries) >= self.max_entries:
                self._entries.pop(next(iter(self._entries)))
            self._entries[key] = cached
        else:
            self.hits += 1
        return _copy_view(cached)

    def clear(self) -> None:
        self._entries.clear()


def _copy_view(view: GraphView) -> GraphView:
    return GraphView(
        nodes=[replace(n, style=dict(n.style)) for n in view.nodes],
        edges=[replace(e, style=dict(e.style)) for e in view.edges],
        stats=dict(view.stats),
    )
