"""
Audit log of link mutations.

Every connect, disconnect and rename run against a workspace appends one JSON
object per line to `<workspace>/.gitnotes/audit.log`: how many links were added
or removed, which documents were written, and free-form metadata.
"""

import json
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Iterator

AUDIT_DIR = ".gitnotes"
AUDIT_FILE = "audit.log"


@dataclass
class AuditEntry:
    """One recorded link mutation."""

    timestamp: str
    operation: str
    links_added: int = 0
    links_removed: int = 0
    documents: list[str] = field(default_factory=list)  # ids written
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "operation": self.operation,
            "links": {"added": self.links_added, "removed": self.links_removed},
            "documents": list(self.documents),
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AuditEntry":
        links = data.get("links") or {}
        return cls(
            timestamp=data["timestamp"],
            operation=data["operation"],
            links_added=int(links.get("added", 0)),
            links_removed=int(links.get("removed", 0)),
            documents=list(data.get("documents", [])),
            metadata=dict(data.get("metadata", {})),
        )


def audit_log_path(workspace_path: Path) -> Path:
    return workspace_path / AUDIT_DIR / AUDIT_FILE


def log_operation(
    workspace_path: Path,
    operation: str,
    *,
    links_added: int = 0,
    links_removed: int = 0,
    documents: Iterable[str] = (),
    metadata: dict[str, Any] | None = None,
) -> AuditEntry:
    """Append an entry for `operation` and return it."""
    entry = AuditEntry(
        timestamp=datetime.now(timezone.utc).isoformat(),
        operation=operation,
        links_added=links_added,
        links_removed=links_removed,
        documents=list(documents),
        metadata=metadata or {},
    )

    path = audit_log_path(workspace_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as f:
        f.write(json.dumps(entry.to_dict(), sort_keys=True) + "\n")

    return entry


def iter_audit_log(path: Path) -> Iterator[AuditEntry]:
    """Yield entries of a log file in write order, skipping lines that do not parse."""
    if not path.exists():
        return
    with path.open("r", encoding="utf-8") as f:
        for raw in f:
            raw = raw.strip()
            if not raw:
                continue
            try:
                yield AuditEntry.from_dict(json.loads(raw))
            except (json.JSONDecodeError, KeyError, TypeError, ValueError):
                continue


def read_audit_log(workspace_path: Path, last_n: int | None = None) -> list[AuditEntry]:
    """Entries of the workspace audit log, oldest first; only the last `last_n` when given."""
    entries = iter_audit_log(audit_log_path(workspace_path))
    if last_n is None:
        return list(entries)
    if last_n <= 0:
        return []
    return list(deque(entries, maxlen=last_n))


def format_audit_entry(entry: AuditEntry) -> str:
    """Human-readable multi-line rendering of an entry."""
    lines = [f"[{entry.timestamp}] {entry.operation}"]

    counts = []
    if entry.links_added:
        counts.append(f"+{entry.links_added} link(s)")
    if entry.links_removed:
        counts.append(f"-{entry.links_removed} link(s)")
    if counts:
        lines.append("  " + ", ".join(counts))
    if entry.documents:
        lines.append(f"  documents: {', '.join(entry.documents)}")

    for key, value in sorted(entry.metadata.items()):
        lines.append(f"  {key}: {value}")

    return "\n".join(lines)
