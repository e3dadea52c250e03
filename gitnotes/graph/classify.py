"""Node coloring: collection origin (global) or sovereignty (local)."""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from typing import Iterable

from ..config import GraphConfig
from ..models import Collection, Document, NodeCategory
from .scope import ScopedGraph


@dataclass(frozen=True)
class NodeClass:
    """Classification of one visible node."""

    category: NodeCategory
    color: str
    important: bool
    sovereign_id: str | None = None  # the hub a subject inherits from (or itself)


def classify_nodes(
    view: ScopedGraph,
    documents: dict[str, Document],
    collections: Iterable[Collection],
    config: GraphConfig | None = None,
) -> dict[str, NodeClass]:
    """Assign exactly one class per visible node. Deterministic for a given view."""
    config = config or GraphConfig()
    if view.scope == "global":
        return _classify_by_collection(view, documents, list(collections), config)
    return _classify_by_sovereignty(view, documents, config)


def _classify_by_collection(
    view: ScopedGraph,
    documents: dict[str, Document],
    collections: list[Collection],
    config: GraphConfig,
) -> dict[str, NodeClass]:
    index = {c.id: i for i, c in enumerate(collections)}
    out: dict[str, NodeClass] = {}
    for node_id in view.node_ids:
        doc = documents[node_id]
        idx = index.get(doc.collection_id)
        color = config.palette_color(idx) if idx is not None else config.neutral_color
        important = view.degree[node_id] > config.importance_degree or node_id in view.external
        out[node_id] = NodeClass(category=NodeCategory.COLLECTION, color=color, important=important)
    return out


def select_sovereigns(
    view: ScopedGraph,
    documents: dict[str, Document],
    *,
    strategy: str = "degree",
) -> list[str]:
    """Return sovereign ids in palette order.

    The first readme.md is always the first sovereign. Other nodes follow in
    (readme first, descending in-view degree) order and qualify with degree >= 2.
    The "exclusive" strategy additionally rejects nodes adjacent to an
    already-chosen sovereign; it is deprecated in favor of "degree".
    """
    if strategy not in ("degree", "exclusive"):
        raise ValueError("strategy must be one of: degree, exclusive")
    if strategy == "exclusive":
        warnings.warn(
            "the 'exclusive' sovereignty strategy is deprecated; use 'degree'",
            DeprecationWarning,
            stacklevel=2,
        )

    nodes = view.node_ids
    ordered = sorted(nodes, key=lambda n: (not documents[n].is_readme, -view.degree[n]))

    sovereigns: list[str] = []
    chosen: set[str] = set()

    readme = next((n for n in nodes if documents[n].is_readme), None)
    if readme is not None:
        sovereigns.append(readme)
        chosen.add(readme)

    for node_id in ordered:
        if node_id in chosen or view.degree[node_id] < 2:
            continue
        if strategy == "exclusive" and view.neighbors(node_id) & chosen:
            continue
        sovereigns.append(node_id)
        chosen.add(node_id)

    return sovereigns


def _classify_by_sovereignty(
    view: ScopedGraph,
    documents: dict[str, Document],
    config: GraphConfig,
) -> dict[str, NodeClass]:
    sovereigns = select_sovereigns(view, documents, strategy=config.sovereignty)
    color_of = {s: config.palette_color(i) for i, s in enumerate(sovereigns)}

    out: dict[str, NodeClass] = {}
    for node_id in view.node_ids:
        if node_id in color_of:
            out[node_id] = NodeClass(NodeCategory.SOVEREIGN, color_of[node_id], True, node_id)
            continue

        touching = view.neighbors(node_id) & color_of.keys()
        if len(touching) == 1:
            hub = next(iter(touching))
            out[node_id] = NodeClass(NodeCategory.SUBJECT, color_of[hub], True, hub)
        else:
            # Zero or several hubs: stays grey
            out[node_id] = NodeClass(NodeCategory.NEUTRAL, config.neutral_color, False)

    return out
