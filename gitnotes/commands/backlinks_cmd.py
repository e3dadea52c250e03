"""Backlinks, broken-link and history commands."""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..audit_log import format_audit_entry, read_audit_log
from ..vault.backlinks import find_backlinks, find_broken_links
from ..vault.loader import load_workspace
from .link_cmd import NoteLookupError, resolve_note


def run_backlinks(
    workspace_path: Path,
    note: str,
    *,
    collection: str | None = None,
    output_json: bool = False,
) -> int:
    """List documents linking to NOTE, with context."""
    console = Console(stderr=True)
    workspace = load_workspace(workspace_path)

    try:
        target = resolve_note(workspace, note, collection)
    except NoteLookupError as e:
        console.print(str(e), style="red")
        return 1

    backlinks = find_backlinks(workspace.collections, target.id)

    if output_json:
        print(json.dumps([asdict(b) for b in backlinks], indent=2))
        return 0

    if not backlinks:
        console.print(f"No linked mentions of {target.name}", style="yellow")
        return 0

    out = Console()
    t = Table(title=f"Linked mentions of {target.name} ({len(backlinks)})", show_header=True, header_style="bold")
    t.add_column("Document", style="cyan", no_wrap=True)
    t.add_column("Collection")
    t.add_column("Context")
    for b in backlinks:
        t.add_row(escape(b.document_name), escape(b.collection_name), escape(b.context))
    out.print(t)
    return 0


def run_broken(workspace_path: Path, *, output_json: bool = False) -> int:
    """List link names that resolve to no document. Exit 1 when any exist."""
    console = Console(stderr=True)
    workspace = load_workspace(workspace_path)

    broken = find_broken_links(workspace.all_documents)

    if output_json:
        print(json.dumps([asdict(b) for b in broken], indent=2))
        return 1 if broken else 0

    if not broken:
        console.print("No broken links", style="green")
        return 0

    out = Console()
    t = Table(title=f"Broken links ({len(broken)})", show_header=True, header_style="bold")
    t.add_column("Document", style="cyan", no_wrap=True)
    t.add_column("Collection")
    t.add_column("Target", style="red")
    for b in broken:
        t.add_row(escape(b.document_name), escape(b.collection_id), escape(f"[[{b.target}]]"))
    out.print(t)
    return 1


def run_history(workspace_path: Path, *, last_n: int | None = 20) -> int:
    """Print recent link mutations from the audit log."""
    console = Console(stderr=True)
    entries = read_audit_log(workspace_path, last_n=last_n)
    if not entries:
        console.print("Audit log is empty", style="yellow")
        return 0

    for entry in entries:
        print(format_audit_entry(entry))
        print()
    return 0
