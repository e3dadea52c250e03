"""Resolution of link names to document ids."""

import logging
from collections import defaultdict
from typing import Iterable

from ..models import MD_SUFFIX, Document
from .parser import strip_md

logger = logging.getLogger(__name__)


class NameResolver:
    """Map referenced names to document ids over a document universe.

    The lookup table is keyed by both the full name ("Todo.md") and the stem
    ("Todo"). When several documents claim the same key, the one seen last in
    iteration order wins; callers must not rely on which one that is.
    """

    def __init__(self, documents: Iterable[Document]):
        self._by_name: dict[str, str] = {}
        self._claims: dict[str, set[str]] = defaultdict(set)

        for doc in documents:
            for key in (doc.name, strip_md(doc.name)):
                self._by_name[key] = doc.id
                self._claims[key].add(doc.id)

        for key in self.ambiguous_names():
            logger.debug("ambiguous note name %r claimed by %d documents", key, len(self._claims[key]))

    def resolve(self, name: str, source_id: str | None = None) -> str | None:
        """Return the id for `name`, trying an exact match then `name + ".md"`.

        Returns None when nothing matches or the match is the source itself.
        """
        target = self._by_name.get(name)
        if target is None:
            target = self._by_name.get(name + MD_SUFFIX)
        if target is None or target == source_id:
            return None
        return target

    def ambiguous_names(self) -> list[str]:
        """Names (or stems) that more than one document resolves from."""
        return sorted(k for k, ids in self._claims.items() if len(ids) > 1)
