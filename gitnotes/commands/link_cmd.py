"""Connect, disconnect and rename commands."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console

from ..audit_log import log_operation
from ..config import CONFIG_FILENAME, load_config
from ..models import MD_SUFFIX, Document
from ..vault.loader import Workspace, load_workspace
from ..vault.mutator import CascadeError, CascadeReport, LinkMutator
from ..vault.store import DirectoryStore


class NoteLookupError(LookupError):
    """A note reference matched no document, or more than one."""


def resolve_note(workspace: Workspace, ref: str, collection: str | None = None) -> Document:
    """Find a document by id, or by name with or without `.md`.

    Names are looked up inside `collection` when given, otherwise across the
    whole workspace; a name matching several documents is an error.
    """
    doc = workspace.get(ref)
    if doc is not None and (collection is None or doc.collection_id == collection):
        return doc

    if collection is not None:
        scope = workspace.collection(collection)
        if scope is None:
            raise NoteLookupError(f"Unknown collection: {collection}")
        candidates = scope.documents
    else:
        candidates = workspace.all_documents

    wanted = {ref, ref + MD_SUFFIX}
    matches = [d for d in candidates if d.name in wanted]
    if not matches:
        where = f" in {collection}" if collection else ""
        raise NoteLookupError(f"Note not found{where}: {ref}")
    if len(matches) > 1:
        ids = ", ".join(d.id for d in matches)
        raise NoteLookupError(f"Ambiguous note {ref!r} matches: {ids} (pass --collection or an id)")
    return matches[0]


def _open(workspace_path: Path) -> tuple[Workspace, LinkMutator]:
    config = load_config(workspace_path / CONFIG_FILENAME)
    workspace = load_workspace(workspace_path)
    return workspace, LinkMutator(DirectoryStore(workspace), config)


def run_connect(workspace_path: Path, source: str, target: str, *, collection: str | None = None) -> int:
    """Add a link from SOURCE to TARGET."""
    console = Console(stderr=True)
    workspace, mutator = _open(workspace_path)

    try:
        src = resolve_note(workspace, source, collection)
        dst = resolve_note(workspace, target, collection)
    except NoteLookupError as e:
        console.print(str(e), style="red")
        return 1

    result = mutator.connect(src, dst)
    if not result.changed:
        console.print(f"{src.name} already links to {dst.name}", style="yellow")
        return 0

    log_operation(
        workspace.path,
        "connect",
        links_added=result.links_added,
        documents=[src.id],
        metadata={"source": src.id, "target": dst.id},
    )
    console.print(f"Connected {src.name} -> {dst.name}", style="green")
    return 0


def run_disconnect(workspace_path: Path, source: str, target: str, *, collection: str | None = None) -> int:
    """Remove every link from SOURCE to TARGET."""
    console = Console(stderr=True)
    workspace, mutator = _open(workspace_path)

    try:
        src = resolve_note(workspace, source, collection)
        dst = resolve_note(workspace, target, collection)
    except NoteLookupError as e:
        console.print(str(e), style="red")
        return 1

    result = mutator.disconnect(src, dst)
    if not result.changed:
        console.print(f"{src.name} does not link to {dst.name}", style="yellow")
        return 0

    log_operation(
        workspace.path,
        "disconnect",
        links_removed=result.links_removed,
        documents=[src.id],
        metadata={"source": src.id, "target": dst.id},
    )
    console.print(f"Disconnected {src.name} -> {dst.name} ({result.links_removed} link(s))", style="green")
    return 0


def run_rename(workspace_path: Path, note: str, new_name: str, *, collection: str) -> int:
    """Rename NOTE and rewrite links to it inside its collection."""
    console = Console(stderr=True)
    workspace, mutator = _open(workspace_path)

    try:
        doc = resolve_note(workspace, note, collection)
    except NoteLookupError as e:
        console.print(str(e), style="red")
        return 1

    old_name = doc.name
    new_name = new_name.strip()
    if old_name.endswith(MD_SUFFIX) and new_name and not new_name.endswith(MD_SUFFIX):
        new_name += MD_SUFFIX

    owner = workspace.collection(doc.collection_id)
    documents = owner.documents if owner else [doc]

    try:
        report = mutator.rename_cascade(doc, old_name, new_name, documents)
    except (ValueError, FileExistsError) as e:
        console.print(f"Rename refused: {e}", style="red")
        return 1
    except CascadeError as e:
        report = e.report
        _log_rename(workspace.path, doc, report)
        console.print(f"Renamed {old_name} -> {new_name}, but some links were not updated:", style="yellow")
        for doc_id, err in sorted(report.failed.items()):
            console.print(f"  - {doc_id}: {err}", style="red")
        return 1

    _log_rename(workspace.path, doc, report)
    console.print(
        f"Renamed {old_name} -> {new_name}; {report.replacements} link(s) rewritten "
        f"in {len(report.updated)} document(s)",
        style="green",
    )
    return 0


def _log_rename(workspace_path: Path, doc: Document, report: CascadeReport) -> None:
    metadata = {
        "document": doc.id,
        "old_name": report.old_name,
        "new_name": report.new_name,
    }
    if report.failed:
        metadata["failed"] = dict(report.failed)
    log_operation(
        workspace_path,
        "rename",
        links_added=report.replacements,
        links_removed=report.replacements,
        documents=[doc.id, *report.updated],
        metadata=metadata,
    )
