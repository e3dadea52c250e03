"""Persistence collaborators for link mutation.

The mutator never touches storage directly; it goes through a DocumentStore.
"""

from __future__ import annotations

import logging
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Protocol

from ..models import Collection
from .loader import Workspace, join_frontmatter, split_frontmatter

logger = logging.getLogger(__name__)


class DocumentNotFoundError(KeyError):
    """Raised when a store does not know a document id."""

    def __init__(self, document_id: str):
        super().__init__(document_id)
        self.document_id = document_id

    def __str__(self) -> str:
        return f"Unknown document: {self.document_id}"


class DocumentStore(Protocol):
    """Read/write access the link mutator needs."""

    def get_content(self, document_id: str) -> str:
        """Latest persisted content of a document."""
        ...

    def set_content(self, document_id: str, content: str) -> None:
        ...

    def set_name(self, document_id: str, name: str) -> None:
        ...


class MemoryStore:
    """Dictionary-backed store over in-memory collections.

    Writes update the stored copy only; callers keep their own Document objects
    in sync once a write has returned.
    """

    def __init__(self, collections: Iterable[Collection]):
        self._content: dict[str, str] = {}
        self._names: dict[str, str] = {}
        self._collection_of: dict[str, str] = {}
        self._updated: dict[str, datetime] = {}
        for c in collections:
            for doc in c.documents:
                self._content[doc.id] = doc.content
                self._names[doc.id] = doc.name
                self._collection_of[doc.id] = c.id
                self._updated[doc.id] = doc.updated_at

    def _require(self, document_id: str) -> None:
        if document_id not in self._content:
            raise DocumentNotFoundError(document_id)

    def get_content(self, document_id: str) -> str:
        self._require(document_id)
        return self._content[document_id]

    def get_name(self, document_id: str) -> str:
        self._require(document_id)
        return self._names[document_id]

    def updated_at(self, document_id: str) -> datetime:
        self._require(document_id)
        return self._updated[document_id]

    def set_content(self, document_id: str, content: str) -> None:
        self._require(document_id)
        self._content[document_id] = content
        self._updated[document_id] = datetime.now(timezone.utc)

    def set_name(self, document_id: str, name: str) -> None:
        self._require(document_id)
        collection_id = self._collection_of[document_id]
        for other_id, other_name in self._names.items():
            if other_id != document_id and self._collection_of[other_id] == collection_id and other_name == name:
                raise FileExistsError(f"{name} already exists in {collection_id}")
        self._names[document_id] = name
        self._updated[document_id] = datetime.now(timezone.utc)


def atomic_write_text(path: Path, text: str, *, encoding: str = "utf-8") -> None:
    """
    Write to a temp file in the same directory, fsync, then replace().

    Prevents partial writes on crash.
    """
    tmp_path = path.parent / f".{path.name}.tmp-{uuid.uuid4().hex}"
    try:
        with open(tmp_path, "w", encoding=encoding, newline="") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        tmp_path.replace(path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()


class DirectoryStore:
    """Store backed by the workspace folders loaded with `load_workspace`.

    Frontmatter blocks are preserved when content is rewritten.
    """

    def __init__(self, workspace: Workspace):
        self.workspace = workspace

    def _path(self, document_id: str) -> Path:
        path = self.workspace.path_of(document_id)
        if path is None:
            raise DocumentNotFoundError(document_id)
        return path

    def get_content(self, document_id: str) -> str:
        _, body = split_frontmatter(self._path(document_id).read_text(encoding="utf-8"))
        return body

    def set_content(self, document_id: str, content: str) -> None:
        path = self._path(document_id)
        metadata, _ = split_frontmatter(path.read_text(encoding="utf-8"))
        atomic_write_text(path, join_frontmatter(metadata, content))
        logger.debug("wrote %s (%d chars)", path, len(content))

    def set_name(self, document_id: str, name: str) -> None:
        path = self._path(document_id)
        if not name or "/" in name or "\\" in name:
            raise ValueError(f"Invalid document name: {name!r}")
        target = path.with_name(name)
        if target.exists() and target != path:
            raise FileExistsError(f"{target} already exists")
        path.rename(target)
        self.workspace.set_path(document_id, target)
        logger.debug("renamed %s -> %s", path, target)
