"""Graph command - render the link graph view of a collection."""

from __future__ import annotations

import html
import json
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..config import CONFIG_FILENAME, load_config
from ..graph.builder import build_graph_view
from ..models import GraphView, NodeCategory, Scope
from ..vault.loader import load_workspace

BACKGROUND = "#0f1115"
TEXT_COLOR = "#e6e6e6"
NODE_FILL = "#1b1f2a"


def run_graph(
    workspace_path: Path,
    collection: str,
    *,
    scope: Scope = "local",
    fmt: str = "md",
    out: Path | None = None,
) -> int:
    """Output the graph view of one collection in the requested format."""
    console = Console(stderr=True)

    config = load_config(workspace_path / CONFIG_FILENAME)
    workspace = load_workspace(workspace_path)

    focal = workspace.collection(collection)
    if focal is None:
        console.print(f"Unknown collection: {collection}", style="red")
        return 1

    view = build_graph_view(workspace.collections, focal.id, scope, config=config)
    title = f"{focal.name} ({scope} link graph)"

    if fmt == "rich":
        if out:
            rich_console = Console(record=True)
            _print_rich(view, title=title, console=rich_console)
            out.write_text(rich_console.export_text(), encoding="utf-8")
            console.print(f"Wrote graph output to {out}", style="green")
        else:
            _print_rich(view, title=title, console=Console())
        return 0

    text: str
    if fmt == "json":
        text = json.dumps(view.to_dict(), indent=2, sort_keys=True) + "\n"
    elif fmt == "dot":
        text = _to_dot(view, title=title)
    elif fmt == "svg":
        text = _to_svg(view, title=title)
    else:
        text = _to_markdown(view, title=title)

    if out:
        out.write_text(text, encoding="utf-8")
        console.print(f"Wrote graph output to {out}", style="green")
    else:
        print(text, end="" if text.endswith("\n") else "\n")

    return 0


def _node_rows(view: GraphView) -> list:
    return sorted(view.nodes, key=lambda n: (-n.degree, n.label.lower(), n.id))


def _print_rich(view: GraphView, *, title: str, console: Console) -> None:
    stats = view.stats
    console.print(f"[bold]{escape(title)}[/bold]")
    console.print(
        f"Nodes: {stats.get('nodes', 0)}  Edges: {stats.get('edges', 0)}  "
        f"Bidirectional: {stats.get('bidirectional_edges', 0)}  Orphans: {stats.get('orphans', 0)}"
    )
    console.print()

    t = Table(title="Nodes", show_header=True, header_style="bold")
    t.add_column("Node", style="cyan", no_wrap=True)
    t.add_column("Category")
    t.add_column("Degree", justify="right")
    t.add_column("Color")
    for n in _node_rows(view):
        label = f"[bold]{escape(n.label)}[/bold]" if n.important else escape(n.label)
        if n.external:
            label += f" [dim]({escape(n.collection_id)})[/dim]"
        t.add_row(label, n.category.value, str(n.degree), f"[{n.color}]{n.color}[/]")
    console.print(t)
    console.print()

    if view.edges:
        e = Table(title="Links", show_header=True, header_style="bold")
        e.add_column("Source", style="cyan")
        e.add_column("", justify="center")
        e.add_column("Target", style="cyan")
        labels = {n.id: n.label for n in view.nodes}
        for edge in view.edges:
            arrow = "<->" if edge.bidirectional else "->"
            e.add_row(escape(labels.get(edge.source, edge.source)), arrow, escape(labels.get(edge.target, edge.target)))
        console.print(e)


def _to_markdown(view: GraphView, *, title: str) -> str:
    stats = view.stats
    lines: list[str] = []
    lines.append(f"## {title}")
    lines.append("")
    lines.append(f"- Nodes: {stats.get('nodes', 0)}")
    lines.append(f"- Edges: {stats.get('edges', 0)}")
    lines.append(f"- Bidirectional edges: {stats.get('bidirectional_edges', 0)}")
    lines.append(f"- Orphans: {stats.get('orphans', 0)}")
    lines.append("")

    lines.append("### Nodes")
    lines.append("")
    lines.append("| Node | Category | Degree | Color |")
    lines.append("|---|---|---:|---|")
    for n in _node_rows(view):
        name = f"**{n.label}**" if n.important else n.label
        lines.append(f"| {name} | {n.category.value} | {n.degree} | `{n.color}` |")
    lines.append("")

    if view.edges:
        labels = {n.id: n.label for n in view.nodes}
        lines.append("### Links")
        lines.append("")
        for edge in view.edges:
            arrow = "<->" if edge.bidirectional else "->"
            lines.append(f"- `{labels.get(edge.source, edge.source)}` {arrow} `{labels.get(edge.target, edge.target)}`")
        lines.append("")

    return "\n".join(lines).rstrip() + "\n"


def _to_dot(view: GraphView, *, title: str) -> str:
    def esc(s: str) -> str:
        return s.replace("\\", "\\\\").replace('"', '\\"')

    lines = [
        "digraph notes {",
        f'  label="{esc(title)}";',
        "  labelloc=t;",
        "  rankdir=LR;",
        f"  bgcolor=\"{BACKGROUND}\";",
        "  graph [fontname=\"Helvetica\"];",
        f"  node [fontname=\"Helvetica\", fontsize=10, shape=box, style=\"rounded,filled\", fillcolor=\"{NODE_FILL}\", fontcolor=\"{TEXT_COLOR}\"];",
    ]

    for n in view.nodes:
        attrs = {
            "label": n.label,
            "color": n.color,
            "penwidth": f"{n.style.get('border_width', 1):.1f}",
            "width": f"{n.width / 72:.2f}",
            "height": f"{n.height / 72:.2f}",
        }
        if n.style.get("border_style") == "dashed":
            attrs["style"] = "rounded,filled,dashed"
        if n.important:
            attrs["fontname"] = "Helvetica-Bold"
        attr_str = "; ".join(f'{k}="{esc(v)}"' for k, v in attrs.items())
        lines.append(f'  "{esc(n.id)}" [{attr_str}];')

    for edge in view.edges:
        attrs = {"color": edge.style.get("stroke", "#52525B")}
        if not edge.bidirectional:
            attrs["style"] = "dashed"
        attr_str = "; ".join(f'{k}="{esc(v)}"' for k, v in attrs.items())
        lines.append(f'  "{esc(edge.source)}" -> "{esc(edge.target)}" [{attr_str}];')

    lines.append("}")
    return "\n".join(lines) + "\n"


def _to_svg(view: GraphView, *, title: str) -> str:
    """Render the positioned view as a standalone SVG document."""
    margin_x = 40
    margin_y = 70

    width = max((n.x + n.width for n in view.nodes), default=0.0) + margin_x * 2
    height = max((n.y + n.height for n in view.nodes), default=0.0) + margin_y * 2
    width = max(width, 320.0)
    height = max(height, 200.0)

    boxes = {n.id: n for n in view.nodes}

    def esc(s: str) -> str:
        return html.escape(s, quote=True)

    def bezier(x1: float, y1: float, x2: float, y2: float) -> str:
        dx = x2 - x1
        ctrl = max(40.0, abs(dx) * 0.35)
        c1x = x1 + ctrl
        c1y = y1
        c2x = x2 - ctrl
        c2y = y2
        return f"M {x1:.1f},{y1:.1f} C {c1x:.1f},{c1y:.1f} {c2x:.1f},{c2y:.1f} {x2:.1f},{y2:.1f}"

    parts: list[str] = []
    parts.append(
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width:.0f}" height="{height:.0f}" '
        f'viewBox="0 0 {width:.0f} {height:.0f}" style="background:{BACKGROUND}">'
    )
    parts.append(
        f'<text x="{margin_x}" y="{margin_y - 28}" fill="{TEXT_COLOR}" font-family="Helvetica" font-size="16">{esc(title)}</text>'
    )

    strokes = sorted({e.style.get("marker_color", "#52525B") for e in view.edges})
    if strokes:
        parts.append("<defs>")
        for i, color in enumerate(strokes):
            parts.append(
                f'<marker id="arrow-{i}" viewBox="0 0 10 10" refX="10" refY="5" markerWidth="6" markerHeight="6" '
                f'orient="auto-start-reverse"><path d="M 0 0 L 10 5 L 0 10 z" fill="{color}"/></marker>'
            )
        parts.append("</defs>")
    marker_of = {color: f"arrow-{i}" for i, color in enumerate(strokes)}

    # Edges first (under nodes)
    parts.append('<g id="edges" stroke-linecap="round" fill="none">')
    for edge in view.edges:
        src = boxes.get(edge.source)
        dst = boxes.get(edge.target)
        if src is None or dst is None:
            continue
        x1 = margin_x + src.x + src.width
        y1 = margin_y + src.y + src.height / 2
        x2 = margin_x + dst.x
        y2 = margin_y + dst.y + dst.height / 2
        if x2 < x1:
            # Reversed (back) edge: leave from the left side, enter from the right
            x1 = margin_x + src.x
            x2 = margin_x + dst.x + dst.width
        stroke = edge.style.get("stroke", "#52525B")
        dash = edge.style.get("dasharray")
        dash_attr = f' stroke-dasharray="{dash}"' if dash else ""
        marker = marker_of.get(edge.style.get("marker_color", stroke))
        marker_attr = f' marker-end="url(#{marker})"' if marker else ""
        parts.append(
            f'<path d="{bezier(x1, y1, x2, y2)}" stroke="{stroke}" '
            f'stroke-width="{edge.style.get("stroke_width", 1)}"{dash_attr}{marker_attr}/>'
        )
    parts.append("</g>")

    # Nodes
    parts.append('<g id="nodes">')
    for n in view.nodes:
        x = margin_x + n.x
        y = margin_y + n.y
        dash = ' stroke-dasharray="4 4"' if n.style.get("border_style") == "dashed" else ""
        opacity = n.style.get("opacity", 1.0)
        parts.append(
            f'<rect x="{x:.1f}" y="{y:.1f}" width="{n.width}" height="{n.height}" rx="8" '
            f'fill="{NODE_FILL}" stroke="{n.color}" stroke-width="{n.style.get("border_width", 1)}" '
            f'opacity="{opacity}"{dash}/>'
        )
        weight = "bold" if n.important else "normal"
        parts.append(
            f'<text x="{(x + n.width / 2):.1f}" y="{(y + n.height / 2 + 4):.1f}" fill="{TEXT_COLOR}" '
            f'font-family="Helvetica" font-size="12" font-weight="{weight}" text-anchor="middle">{esc(n.label)}</text>'
        )
        if n.category is NodeCategory.SOVEREIGN:
            parts.append(
                f'<circle cx="{(x + 10):.1f}" cy="{(y + 10):.1f}" r="3" fill="{n.color}"/>'
            )
    parts.append("</g>")
    parts.append("</svg>")
    return "\n".join(parts) + "\n"
