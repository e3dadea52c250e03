"""Text-level link insertion, removal and rename cascades.

Every rewrite here must produce text that `parser.extract_links` reads back
consistently: a connected target is found again, a disconnected one is gone.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable

from ..config import DEFAULT_RELATION_LABELS, GraphConfig
from ..models import MD_SUFFIX, Document
from .parser import WIKILINK_PATTERN, iter_link_names, link_token, strip_md
from .store import DocumentStore

logger = logging.getLogger(__name__)

_EXCESS_BLANK_LINES = re.compile(r"\n{3,}")
_EMPHASIS = r"(?:\*\*|__)?"


def _link_pattern(stem: str) -> str:
    """Regex source for [[stem]] or [[stem.md]], capturing the inner text."""
    return rf"\[\[({re.escape(stem)}(?:\.md)?)\]\]"


# -----------------------------------------------------------------------------
# Pure text functions
# -----------------------------------------------------------------------------


def add_link(content: str, target_name: str, *, label: str = "Related") -> tuple[str, bool]:
    """Append a `<label>: [[target]]` line unless the exact token is already present.

    Returns (new_content, changed).
    """
    token = link_token(target_name)
    if strip_md(target_name) in iter_link_names(content):
        return content, False

    line = f"{label}: {token}"
    if not content.strip():
        return line, True
    return f"{content.rstrip()}\n\n{line}", True


def _is_link_to(name: str, stem: str) -> bool:
    """Whether a parsed link name points at `stem`, with or without .md, in any case."""
    wanted = stem.lower()
    return name.lower() in (wanted, wanted + MD_SUFFIX)


def remove_link(
    content: str,
    target_name: str,
    *,
    relation_labels: Iterable[str] = DEFAULT_RELATION_LABELS,
) -> tuple[str, bool]:
    """Remove every link to `target_name` (with or without .md, any case).

    Only tokens `WIKILINK_PATTERN` reads as links to the target are touched.

    Line policy:
    - list items made only of the link are dropped
    - relation lines (``Related: [[x]]``, ``Parent: [[x]]``...) are dropped
    - lines holding only the link are dropped
    - other lines keep the name but lose the brackets

    Afterwards runs of blank lines collapse to one and the text is stripped.
    Content without a matching token is returned untouched.
    """
    stem = strip_md(target_name)
    if not any(_is_link_to(name, stem) for name in iter_link_names(content)):
        return content, False

    link = _link_pattern(stem)
    labels = "|".join(re.escape(label) for label in relation_labels)
    whole_line = [
        # - [[x]] / 1. [[x]] / - [ ] [[x]]
        re.compile(rf"^\s*(?:[-*+]|\d+[.)])\s+(?:\[[ xX]\]\s+)?{link}\s*[.,;]?\s*$", re.IGNORECASE),
        # Related: [[x]] / - **Parent:** [[x]]
        re.compile(
            rf"^\s*(?:[-*+>]\s+)?{_EMPHASIS}(?:{labels}){_EMPHASIS}\s*:?\s*{_EMPHASIS}\s*{link}\s*[.,;]?\s*$",
            re.IGNORECASE,
        ),
        re.compile(rf"^\s*{link}\s*$", re.IGNORECASE),
    ]

    def unbracket(match: re.Match) -> str:
        return match.group(1) if _is_link_to(match.group(1), stem) else match.group(0)

    kept: list[str] = []
    for line in content.split("\n"):
        if not any(_is_link_to(name, stem) for name in iter_link_names(line)):
            kept.append(line)
            continue
        if any(p.match(line) for p in whole_line):
            continue
        kept.append(WIKILINK_PATTERN.sub(unbracket, line))

    result = _EXCESS_BLANK_LINES.sub("\n\n", "\n".join(kept)).strip()
    return result, True


def rewrite_link_targets(content: str, old_name: str, new_name: str) -> tuple[str, int]:
    """Rewrite [[old]] and [[old.md]] into [[new]]. Returns (new_content, replacements)."""
    old_stem = strip_md(old_name)
    if not old_stem:
        return content, 0
    replacement = link_token(new_name)
    count = 0

    def substitute(match: re.Match) -> str:
        nonlocal count
        if match.group(1) not in (old_stem, old_stem + MD_SUFFIX):
            return match.group(0)
        count += 1
        return replacement

    return WIKILINK_PATTERN.sub(substitute, content), count


# -----------------------------------------------------------------------------
# Store-backed operations
# -----------------------------------------------------------------------------


@dataclass
class MutationResult:
    """Outcome of a connect/disconnect on one document."""

    document_id: str
    changed: bool
    before: str
    after: str
    links_added: int = 0
    links_removed: int = 0


@dataclass
class CascadeReport:
    """Aggregated outcome of a rename cascade."""

    renamed_id: str
    old_name: str
    new_name: str
    updated: list[str] = field(default_factory=list)  # document ids rewritten
    failed: dict[str, str] = field(default_factory=dict)  # document id -> error
    replacements: int = 0

    @property
    def ok(self) -> bool:
        return not self.failed

    def raise_for_failures(self) -> None:
        if self.failed:
            raise CascadeError(self)


class CascadeError(Exception):
    """One or more documents could not be rewritten during a rename cascade.

    The primary rename has already been applied when this is raised.
    """

    def __init__(self, report: CascadeReport):
        self.report = report
        failed = ", ".join(f"{doc_id} ({err})" for doc_id, err in sorted(report.failed.items()))
        super().__init__(
            f"Rename {report.old_name} -> {report.new_name} left {len(report.failed)} "
            f"document(s) un-updated: {failed}"
        )


def _touch(doc: Document) -> None:
    doc.updated_at = datetime.now(timezone.utc)


class LinkMutator:
    """Apply link edits through a DocumentStore.

    New content is computed first and written second; the in-memory Document
    is only updated once the store accepted the write.
    """

    def __init__(self, store: DocumentStore, config: GraphConfig | None = None):
        self.store = store
        self.config = config or GraphConfig()

    def connect(self, source: Document, target: Document) -> MutationResult:
        """Make `source` link to `target`. Idempotent."""
        if source.id == target.id:
            logger.debug("connect %s to itself ignored", source.id)
            return MutationResult(source.id, False, source.content, source.content)

        after, changed = add_link(source.content, target.name, label=self.config.connect_label)
        if changed:
            self.store.set_content(source.id, after)
            before, source.content = source.content, after
            _touch(source)
            logger.info("connected %s -> %s", source.name, target.name)
            return MutationResult(source.id, True, before, after, links_added=1)
        return MutationResult(source.id, False, source.content, source.content)

    def disconnect(self, source: Document, target: Document) -> MutationResult:
        """Remove every link from `source` to `target`. A second call is a no-op."""
        before = source.content
        removed = sum(1 for name in iter_link_names(before) if _is_link_to(name, target.stem))
        after, changed = remove_link(before, target.name, relation_labels=self.config.relation_labels)
        if not changed:
            return MutationResult(source.id, False, before, before)

        self.store.set_content(source.id, after)
        source.content = after
        _touch(source)
        logger.info("disconnected %s -> %s (%d token(s))", source.name, target.name, removed)
        return MutationResult(source.id, True, before, after, links_removed=removed)

    def rename_cascade(
        self,
        renamed: Document,
        old_name: str,
        new_name: str,
        collection_documents: Iterable[Document],
    ) -> CascadeReport:
        """Rename a document and rewrite references to it inside its collection.

        Each secondary document is re-read from the store before rewriting, so
        back-to-back cascades never write stale content. Every document is
        attempted; failures are collected and raised together as CascadeError.
        """
        documents = list(collection_documents)
        old_stem = strip_md(old_name).strip()
        new_stem = strip_md(new_name).strip()
        if not old_stem or not new_stem:
            raise ValueError("Invalid note name.")
        if old_name == new_name:
            raise ValueError("Name did not change.")
        for doc in documents:
            if doc.id != renamed.id and (doc.name == new_name or doc.stem == new_stem):
                raise ValueError(f"A note named {new_name!r} already exists.")

        self.store.set_name(renamed.id, new_name)
        renamed.name = new_name
        _touch(renamed)
        logger.info("renamed %s: %s -> %s", renamed.id, old_name, new_name)

        report = CascadeReport(renamed_id=renamed.id, old_name=old_name, new_name=new_name)
        if old_stem == new_stem:
            # Only the suffix changed; link tokens already match the new name
            return report

        for doc in documents:
            if doc.id == renamed.id:
                continue
            try:
                latest = self.store.get_content(doc.id)
                after, count = rewrite_link_targets(latest, old_name, new_name)
                if count:
                    self.store.set_content(doc.id, after)
                    doc.content = after
                    _touch(doc)
                    report.updated.append(doc.id)
                    report.replacements += count
                elif latest != doc.content:
                    doc.content = latest
            except Exception as exc:
                logger.warning("rename cascade failed for %s: %s", doc.id, exc)
                report.failed[doc.id] = str(exc) or exc.__class__.__name__

        logger.info(
            "rename cascade %s -> %s: %d updated, %d failed",
            old_name,
            new_name,
            len(report.updated),
            len(report.failed),
        )
        report.raise_for_failures()
        return report
