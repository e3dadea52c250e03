"""Workspace configuration loaded from `.gitnotes.toml`."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

CONFIG_FILENAME = ".gitnotes.toml"

Sovereignty = Literal["degree", "exclusive"]

DEFAULT_PALETTE: tuple[str, ...] = (
    "#FF4D00",  # orange
    "#00E676",  # green
    "#2979FF",  # blue
    "#D500F9",  # purple
    "#FFEA00",  # yellow
    "#00BCD4",  # cyan
    "#FF1744",  # red
)

DEFAULT_RELATION_LABELS: tuple[str, ...] = (
    "Related",
    "Parent",
    "Child",
    "See",
    "Source",
    "Upstream",
    "Ref",
)


@dataclass(frozen=True)
class GraphConfig:
    """Tunables for classification, sizing, layout and link rewriting."""

    sovereignty: Sovereignty = "degree"
    palette: tuple[str, ...] = DEFAULT_PALETTE
    neutral_color: str = "#52525B"
    importance_degree: int = 2  # global scope: important when degree > this
    degree_clamp: int = 15
    width_per_degree: int = 4
    node_height: int = 60
    local_base_width: int = 160
    global_base_width: int = 140

    node_sep: int = 60
    rank_sep: int = 100

    connect_label: str = "Related"
    relation_labels: tuple[str, ...] = field(default=DEFAULT_RELATION_LABELS)

    def base_width(self, scope: str) -> int:
        return self.global_base_width if scope == "global" else self.local_base_width

    def palette_color(self, index: int) -> str:
        return self.palette[index % len(self.palette)]


def _coerce_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _positive_int(section: dict[str, Any], key: str, default: int, *, allow_zero: bool = False) -> int:
    raw = section.get(key, default)
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ValueError(f"{key} must be an integer")
    if raw < 0 or (raw == 0 and not allow_zero):
        raise ValueError(f"{key} must be a positive integer")
    return raw


def _string_list(section: dict[str, Any], key: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = section.get(key)
    if raw is None:
        return default
    if not isinstance(raw, list) or not all(isinstance(v, str) and v.strip() for v in raw):
        raise ValueError(f"{key} must be a list of non-empty strings")
    if not raw:
        raise ValueError(f"{key} must not be empty")
    return tuple(v.strip() for v in raw)


def parse_config(data: dict[str, Any]) -> GraphConfig:
    """Build a GraphConfig from already-parsed TOML data."""
    defaults = GraphConfig()
    graph = _coerce_dict(data.get("graph"))
    layout = _coerce_dict(data.get("layout"))
    links = _coerce_dict(data.get("links"))

    sovereignty = str(graph.get("sovereignty", defaults.sovereignty)).strip().lower()
    if sovereignty not in ("degree", "exclusive"):
        raise ValueError("sovereignty must be one of: degree, exclusive")

    neutral = str(graph.get("neutral_color", defaults.neutral_color)).strip()
    if not neutral:
        raise ValueError("neutral_color must not be empty")

    connect_label = str(links.get("connect_label", defaults.connect_label)).strip()
    if not connect_label:
        raise ValueError("connect_label must not be empty")

    return GraphConfig(
        sovereignty=sovereignty,  # type: ignore[arg-type]
        palette=_string_list(graph, "palette", defaults.palette),
        neutral_color=neutral,
        importance_degree=_positive_int(graph, "importance_degree", defaults.importance_degree, allow_zero=True),
        degree_clamp=_positive_int(graph, "degree_clamp", defaults.degree_clamp),
        width_per_degree=_positive_int(graph, "width_per_degree", defaults.width_per_degree, allow_zero=True),
        node_height=_positive_int(graph, "node_height", defaults.node_height),
        local_base_width=_positive_int(graph, "local_base_width", defaults.local_base_width),
        global_base_width=_positive_int(graph, "global_base_width", defaults.global_base_width),
        node_sep=_positive_int(layout, "node_sep", defaults.node_sep, allow_zero=True),
        rank_sep=_positive_int(layout, "rank_sep", defaults.rank_sep, allow_zero=True),
        connect_label=connect_label,
        relation_labels=_string_list(links, "relation_labels", defaults.relation_labels),
    )


def load_config(path: Path) -> GraphConfig:
    """
    Load configuration from a TOML file.

    A missing file yields the defaults. Invalid values raise ValueError.
    """
    import tomllib

    if not path.exists():
        return GraphConfig()

    data = tomllib.loads(path.read_text(encoding="utf-8"))
    return parse_config(data)
