"""Workspace loading, link parsing, resolution and mutation."""

from .graph import LinkGraph
from .loader import Workspace, load_workspace
from .parser import extract_links, iter_link_names
from .resolver import NameResolver

__all__ = [
    "LinkGraph",
    "NameResolver",
    "Workspace",
    "extract_links",
    "iter_link_names",
    "load_workspace",
]
