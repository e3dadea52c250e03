"""Wiki-link scanning for note content."""

import re
from typing import Iterator

from ..models import strip_md

# Match [[anything]] non-greedily; the inner text is taken verbatim (no alias/section handling)
WIKILINK_PATTERN = re.compile(r"\[\[(.*?)\]\]")


def iter_link_names(content: str | None) -> Iterator[str]:
    """Yield referenced names in order of appearance, duplicates included.

    Each call returns a fresh generator. Unterminated brackets never match.
    """
    if not content:
        return
    for match in WIKILINK_PATTERN.finditer(content):
        yield match.group(1)


def extract_links(content: str | None) -> list[str]:
    """Extract all wiki-link names from content as a list."""
    return list(iter_link_names(content))


def link_token(name: str) -> str:
    """The canonical link token for a document name: [[Name]] without .md."""
    return f"[[{strip_md(name)}]]"
