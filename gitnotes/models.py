"""Data models for workspace documents and the graph view."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

# Render scope of a graph view
Scope = Literal["local", "global"]

MD_SUFFIX = ".md"


def strip_md(name: str) -> str:
    """Drop a trailing .md suffix."""
    if name.endswith(MD_SUFFIX):
        return name[: -len(MD_SUFFIX)]
    return name


@dataclass
class Document:
    """A markdown note owned by a collection."""

    id: str
    name: str  # label, conventionally ending in .md
    content: str
    collection_id: str
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def stem(self) -> str:
        """Name without a trailing .md suffix (the form used inside links)."""
        return strip_md(self.name)

    @property
    def is_readme(self) -> bool:
        return self.name.lower() == "readme.md"


@dataclass
class Collection:
    """A named group of documents (a "repository" of notes)."""

    id: str
    name: str
    documents: list[Document] = field(default_factory=list)

    def get(self, document_id: str) -> Document | None:
        for doc in self.documents:
            if doc.id == document_id:
                return doc
        return None


class NodeCategory(str, Enum):
    """How a visible node was classified."""

    SOVEREIGN = "sovereign"
    SUBJECT = "subject"
    NEUTRAL = "neutral"
    COLLECTION = "collection"


@dataclass
class GraphNode:
    """A positioned, styled node of a graph view."""

    id: str
    label: str
    collection_id: str
    color: str
    category: NodeCategory
    important: bool
    degree: int
    width: int
    height: int
    x: float = 0.0
    y: float = 0.0
    external: bool = False
    style: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "collection_id": self.collection_id,
            "color": self.color,
            "category": self.category.value,
            "important": self.important,
            "degree": self.degree,
            "size": {"width": self.width, "height": self.height},
            "position": {"x": round(self.x, 2), "y": round(self.y, 2)},
            "external": self.external,
            "style": dict(self.style),
        }


@dataclass
class GraphEdge:
    """A directed edge of a graph view."""

    source: str
    target: str
    bidirectional: bool
    style: dict[str, Any] = field(default_factory=dict)

    @property
    def id(self) -> str:
        return f"{self.source}-{self.target}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "bidirectional": self.bidirectional,
            "style": dict(self.style),
        }


@dataclass
class GraphView:
    """Disposable projection of the link graph for one render pass."""

    nodes: list[GraphNode] = field(default_factory=list)
    edges: list[GraphEdge] = field(default_factory=list)
    stats: dict[str, Any] = field(default_factory=dict)

    def node(self, node_id: str) -> GraphNode | None:
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
            "stats": dict(self.stats),
        }
