from __future__ import annotations

from typing import Iterable, Optional, Sequence, Tuple

from graphviz import Digraph
from graphviz.backend import ExecutableNotFound

from .node_types import EntryPoint, ModuleGraph
from .report import Edge, is_pruned
from .usage_record import ModuleUsage, UsageTable


def _color_for_usage(record: ModuleUsage, pruned: bool) -> str:
    if not record.reachable:
        return "#F44336"  # red
    if pruned:
        return "#BDBDBD"  # grey
    if record.usage.is_fully_used:
        return "#4CAF50"  # green
    return "#FFC107"  # amber


def _get_short_name(module_id: str) -> str:
    """Last path segment of a module id."""
    if not module_id:
        return "root"
    for sep in ("/", "."):
        if sep in module_id:
            return module_id.rstrip(sep).split(sep)[-1] or module_id
    return module_id


def _usage_line(record: ModuleUsage, limit: int = 4) -> str:
    usage = record.usage
    if usage.is_fully_used:
        return "all exports"
    if usage.is_unused or not usage.names:
        return "nothing used"
    names = sorted(usage.names)
    shown = ", ".join(names[:limit])
    if len(names) > limit:
        shown += f" +{len(names) - limit}"
    return shown


def render_usage_graph(
    graph: ModuleGraph,
    table: UsageTable,
    edges: Iterable[Edge],
    output_base: str,
    fmt: str = "svg",
    entries: Optional[Sequence[EntryPoint]] = None,
) -> Tuple[str, str]:
    """
    Render the module graph colored by usage: green = fully used,
    amber = some exports used, grey = pruned, red = unreachable.
    Lazy (nested block) edges are dashed.
    """
    dot = Digraph(
        "usageflow",
        graph_attr={"rankdir": "TB", "splines": "spline", "label": "Export Usage", "labelloc": "t"},
        node_attr={"shape": "box", "style": "rounded,filled", "fontname": "Helvetica"},
        edge_attr={"arrowhead": "vee"},
    )

    roots = {e.module for e in entries or [] if e.module}

    for module in sorted(graph, key=lambda m: m.id):
        record = table[module.id]
        pruned = is_pruned(module, record)
        label = f"{_get_short_name(module.id)}\n{_usage_line(record)}"
        attrs = {}
        if module.id in roots:
            attrs["penwidth"] = "3"
        dot.node(module.id, label=label, fillcolor=_color_for_usage(record, pruned), **attrs)

    seen = set()
    for e in sorted(edges, key=lambda x: (x.src, x.dst, x.lazy)):
        key = (e.src, e.dst, e.lazy)
        if key in seen:
            continue
        seen.add(key)
        dot.edge(e.src, e.dst, color="black", style="dashed" if e.lazy else "solid")

    dot_path = f"{output_base}.dot"
    out_path = f"{output_base}.{fmt}"
    dot.save(dot_path)

    try:
        dot.render(output_base, format=fmt, cleanup=True)
    except ExecutableNotFound:
        # Only DOT written; caller should inform user
        out_path = ""
    return dot_path, out_path
