"""Directed link graph construction over a document universe."""

from dataclasses import dataclass, field
from typing import Iterable

from ..models import Document
from .parser import iter_link_names
from .resolver import NameResolver


@dataclass
class LinkGraph:
    """Forward and reverse adjacency of resolved wiki links.

    Always built over the global universe so scope filtering can expand across
    collections. Node iteration follows universe order.
    """

    order: dict[str, int] = field(default_factory=dict)  # id -> universe index
    edges: dict[str, set[str]] = field(default_factory=dict)  # src -> dsts
    reverse_edges: dict[str, set[str]] = field(default_factory=dict)  # dst -> srcs
    pairs: set[tuple[str, str]] = field(default_factory=set)  # (src, dst)
    unresolved: dict[str, list[str]] = field(default_factory=dict)  # src -> names

    @classmethod
    def from_documents(cls, documents: Iterable[Document]) -> "LinkGraph":
        """Build the graph by parsing every document and resolving its links."""
        docs = list(documents)
        graph = cls()
        resolver = NameResolver(docs)

        # Add all nodes first so isolated documents still appear
        for doc in docs:
            graph.add_node(doc.id)

        for doc in docs:
            for name in iter_link_names(doc.content):
                target = resolver.resolve(name, source_id=doc.id)
                if target is not None:
                    graph.add_edge(doc.id, target)
                elif resolver.resolve(name) is None:
                    graph.unresolved.setdefault(doc.id, []).append(name)

        return graph

    def add_node(self, node_id: str) -> None:
        if node_id not in self.order:
            self.order[node_id] = len(self.order)
        self.edges.setdefault(node_id, set())
        self.reverse_edges.setdefault(node_id, set())

    def add_edge(self, src: str, dst: str) -> None:
        if src == dst:
            return
        self.add_node(src)
        self.add_node(dst)
        self.edges[src].add(dst)
        self.reverse_edges[dst].add(src)
        self.pairs.add((src, dst))

    @property
    def nodes(self) -> list[str]:
        return list(self.order)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.order

    def has_edge(self, src: str, dst: str) -> bool:
        return (src, dst) in self.pairs

    def is_bidirectional(self, a: str, b: str) -> bool:
        """True iff both a->b and b->a exist. Symmetric by construction."""
        return (a, b) in self.pairs and (b, a) in self.pairs

    def _sorted(self, ids: Iterable[str]) -> list[str]:
        return sorted(ids, key=lambda n: self.order.get(n, len(self.order)))

    def successors(self, node_id: str) -> list[str]:
        return self._sorted(self.edges.get(node_id, set()))

    def predecessors(self, node_id: str) -> list[str]:
        return self._sorted(self.reverse_edges.get(node_id, set()))

    def neighbors_undirected(self, node_id: str) -> list[str]:
        return self._sorted(self.edges.get(node_id, set()) | self.reverse_edges.get(node_id, set()))

    def out_degree(self, node_id: str) -> int:
        return len(self.edges.get(node_id, set()))

    def in_degree(self, node_id: str) -> int:
        return len(self.reverse_edges.get(node_id, set()))

    @property
    def edge_count(self) -> int:
        return len(self.pairs)
