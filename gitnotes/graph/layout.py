"""Layered (Sugiyama-style) left-to-right layout.

Ranking, crossing reduction and coordinate assignment are done by grandalf's
`SugiyamaLayout`, which lays ranks out top-to-bottom. This module feeds it
boxes with width and height swapped, turns the resulting centers back into
left-to-right top-left corners, and stacks disconnected components.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import networkx as nx
from grandalf.graphs import Edge, Graph, Vertex
from grandalf.layouts import SugiyamaLayout

DEFAULT_NODE_SEP = 60
DEFAULT_RANK_SEP = 100


@dataclass(frozen=True)
class NodeBox:
    id: str
    width: float
    height: float


@dataclass(frozen=True)
class Placement:
    """A positioned node. (x, y) is the top-left corner."""

    id: str
    x: float
    y: float
    width: float
    height: float
    rank: int
    order: int

    @property
    def center(self) -> tuple[float, float]:
        return self.x + self.width / 2, self.y + self.height / 2


@dataclass
class _VertexView:
    # grandalf reads w/h and writes the center into xy
    w: float
    h: float
    xy: tuple[float, float] = (0.0, 0.0)


def _sugiyama_centers(
    component: list[str],
    edges: list[tuple[str, str]],
    boxes: dict[str, NodeBox],
    node_sep: float,
    rank_sep: float,
) -> dict[str, tuple[float, float]]:
    """Left-to-right centers of one connected component."""
    vertices = {node: Vertex(node) for node in component}
    for node, vertex in vertices.items():
        box = boxes[node]
        vertex.view = _VertexView(w=box.height, h=box.width)

    core = Graph(
        list(vertices.values()),
        [Edge(vertices[s], vertices[t]) for s, t in edges],
    ).C[0]

    sug = SugiyamaLayout(core)
    sug.xspace = node_sep
    sug.yspace = rank_sep
    sug.init_all()
    sug.draw()

    return {node: (v.view.xy[1], v.view.xy[0]) for node, v in vertices.items()}


def layered_layout(
    nodes: Iterable[NodeBox],
    edges: Iterable[tuple[str, str]],
    *,
    node_sep: float = DEFAULT_NODE_SEP,
    rank_sep: float = DEFAULT_RANK_SEP,
) -> dict[str, Placement]:
    """Position boxes left-to-right by rank.

    Within a rank boxes are stacked with `node_sep` between them; consecutive
    ranks are `rank_sep` apart measured from the widest box of a rank.
    Disconnected components are stacked top to bottom, `node_sep` apart.
    Edges naming unknown nodes, and self loops, are ignored.
    """
    boxes = {b.id: b for b in nodes}
    if not boxes:
        return {}

    graph: nx.DiGraph = nx.DiGraph()
    graph.add_nodes_from(boxes)
    graph.add_edges_from((s, t) for s, t in edges if s in boxes and t in boxes and s != t)

    index = {n: i for i, n in enumerate(boxes)}
    components = sorted(
        (sorted(c, key=index.__getitem__) for c in nx.weakly_connected_components(graph)),
        key=lambda c: index[c[0]],
    )

    corners: dict[str, tuple[float, float]] = {}
    ranks: dict[str, int] = {}
    y_offset = 0.0
    for component in components:
        if len(component) == 1:
            node = component[0]
            centers = {node: (boxes[node].width / 2, boxes[node].height / 2)}
        else:
            centers = _sugiyama_centers(component, list(graph.edges(component)), boxes, node_sep, rank_sep)

        # one rank per distinct column center
        columns = sorted({cx for cx, _ in centers.values()})
        rank_of = {cx: r for r, cx in enumerate(columns)}

        left = min(cx - boxes[n].width / 2 for n, (cx, _) in centers.items())
        top = min(cy - boxes[n].height / 2 for n, (_, cy) in centers.items())
        bottom = y_offset
        for node, (cx, cy) in centers.items():
            box = boxes[node]
            x = cx - box.width / 2 - left
            y = cy - box.height / 2 - top + y_offset
            corners[node] = (x, y)
            ranks[node] = rank_of[cx]
            bottom = max(bottom, y + box.height)
        y_offset = bottom + node_sep

    by_rank: dict[int, list[str]] = {}
    for node in sorted(boxes, key=lambda n: (corners[n][1], index[n])):
        by_rank.setdefault(ranks[node], []).append(node)

    placements: dict[str, Placement] = {}
    for rank, column in by_rank.items():
        for order, node in enumerate(column):
            box = boxes[node]
            x, y = corners[node]
            placements[node] = Placement(
                id=node,
                x=x,
                y=y,
                width=box.width,
                height=box.height,
                rank=rank,
                order=order,
            )
    return {n: placements[n] for n in boxes}
