"""Workspace loading: collections are folders, documents are markdown files."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

import frontmatter

from ..models import Collection, Document

logger = logging.getLogger(__name__)


@dataclass
class Workspace:
    """Container for all loaded collections."""

    path: Path
    collections: list[Collection] = field(default_factory=list)

    # Lookup tables built after loading
    _by_id: dict[str, Document] = field(default_factory=dict)
    _paths: dict[str, Path] = field(default_factory=dict)  # document id -> file

    def __post_init__(self):
        self._build_lookups()

    def _build_lookups(self):
        self._by_id = {doc.id: doc for doc in self.all_documents}

    @property
    def all_documents(self) -> list[Document]:
        """Every document, collection by collection."""
        return [doc for c in self.collections for doc in c.documents]

    def get(self, document_id: str) -> Document | None:
        return self._by_id.get(document_id)

    def collection(self, collection_id: str) -> Collection | None:
        for c in self.collections:
            if c.id == collection_id:
                return c
        return None

    def path_of(self, document_id: str) -> Path | None:
        return self._paths.get(document_id)

    def set_path(self, document_id: str, path: Path) -> None:
        self._paths[document_id] = path


def split_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Return (metadata, body). Text without a frontmatter block is returned as-is."""
    if not frontmatter.checks(text):
        return {}, text
    post = frontmatter.loads(text)
    return dict(post.metadata), post.content


def join_frontmatter(metadata: dict[str, Any], body: str) -> str:
    """Inverse of split_frontmatter."""
    if not metadata:
        return body
    return frontmatter.dumps(frontmatter.Post(body, **metadata)) + "\n"


def _coerce_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


def load_document(path: Path, collection_dir: Path) -> Document:
    """Load a single markdown file."""
    metadata, content = split_frontmatter(path.read_text(encoding="utf-8"))

    rel = path.relative_to(collection_dir).as_posix()
    doc_id = metadata.get("id")
    if not isinstance(doc_id, str) or not doc_id.strip():
        doc_id = f"{collection_dir.name}/{rel}"

    updated = _coerce_datetime(metadata.get("updated"))
    if updated is None:
        updated = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)

    return Document(
        id=doc_id.strip(),
        name=path.name,
        content=content,
        collection_id=collection_dir.name,
        updated_at=updated,
    )


def load_workspace(workspace_path: Path) -> Workspace:
    """Load every collection folder of a workspace.

    Hidden folders (such as `.gitnotes`) are skipped. Collections are sorted by
    name and documents by relative path, so ordering is stable between runs.
    A file that fails to load (bad frontmatter, undecodable bytes) is skipped
    with a warning.
    """
    workspace_path = workspace_path.resolve()
    collections: list[Collection] = []
    paths: dict[str, Path] = {}

    for folder in sorted(p for p in workspace_path.iterdir() if p.is_dir()):
        if folder.name.startswith("."):
            continue

        collection = Collection(id=folder.name, name=folder.name)
        for md_file in sorted(folder.rglob("*.md")):
            if any(part.startswith(".") for part in md_file.relative_to(folder).parts):
                continue
            try:
                doc = load_document(md_file, folder)
            except Exception as e:
                logger.warning("skipping %s: %s", md_file, e)
                continue
            if doc.id in paths:
                logger.warning("duplicate document id %r (%s); keeping first", doc.id, md_file)
                continue
            collection.documents.append(doc)
            paths[doc.id] = md_file

        collections.append(collection)

    workspace = Workspace(path=workspace_path, collections=collections)
    workspace._paths = paths
    logger.debug(
        "loaded workspace %s: %d collections, %d documents",
        workspace_path,
        len(collections),
        len(paths),
    )
    return workspace
