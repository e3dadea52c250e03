"""Linked mentions and broken-link diagnostics."""

from dataclasses import dataclass
from typing import Iterable

from ..models import Collection, Document
from .graph import LinkGraph
from .parser import WIKILINK_PATTERN
from .resolver import NameResolver

CONTEXT_CHARS = 60


@dataclass(frozen=True)
class Backlink:
    """A document that links to the target, with a snippet around the first link."""

    document_id: str
    document_name: str
    collection_id: str
    collection_name: str
    context: str


@dataclass(frozen=True)
class BrokenLink:
    """A [[name]] token that resolves to no document."""

    document_id: str
    document_name: str
    collection_id: str
    target: str


def _snippet(content: str, start: int, end: int, width: int = CONTEXT_CHARS) -> str:
    lo = max(0, start - width)
    hi = min(len(content), end + width)
    return " ".join(content[lo:hi].split())


def find_backlinks(collections: Iterable[Collection], target_id: str) -> list[Backlink]:
    """Every document (across all collections) whose links resolve to `target_id`."""
    collections = list(collections)
    documents = [doc for c in collections for doc in c.documents]
    resolver = NameResolver(documents)
    names = {c.id: c.name for c in collections}

    results: list[Backlink] = []
    for doc in documents:
        if doc.id == target_id:
            continue
        for match in WIKILINK_PATTERN.finditer(doc.content or ""):
            if resolver.resolve(match.group(1), source_id=doc.id) == target_id:
                results.append(
                    Backlink(
                        document_id=doc.id,
                        document_name=doc.name,
                        collection_id=doc.collection_id,
                        collection_name=names.get(doc.collection_id, doc.collection_id),
                        context=_snippet(doc.content, match.start(), match.end()),
                    )
                )
                break
    return results


def find_broken_links(documents: Iterable[Document], graph: LinkGraph | None = None) -> list[BrokenLink]:
    """Unresolvable link tokens, in document order."""
    documents = list(documents)
    graph = graph or LinkGraph.from_documents(documents)
    results: list[BrokenLink] = []
    for doc in documents:
        for name in graph.unresolved.get(doc.id, []):
            results.append(
                BrokenLink(
                    document_id=doc.id,
                    document_name=doc.name,
                    collection_id=doc.collection_id,
                    target=name,
                )
            )
    return results
