"""
Usage report built from a finished analysis.

Summarizes which modules are reachable, which were pruned and which declared
exports nobody consumes, and explains how a module was reached.
"""
from __future__ import annotations

import json
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from .lattice import coerce
from .node_types import EntryPoint, Module, ModuleGraph
from .resolver import Resolver, declared_reference_resolver
from .usage_record import ModuleUsage, UsageTable


@dataclass
class Edge:
    src: str
    dst: str
    imports: Any  # JSON form of the imported names, None when the edge carries none
    lazy: bool = False


def collect_edges(graph: ModuleGraph, resolver: Optional[Resolver] = None) -> List[Edge]:
    resolve = resolver or declared_reference_resolver(graph)
    edges: List[Edge] = []
    for module in graph:
        for dep, lazy in module.block.walk():
            ref = resolve(module, dep)
            if ref is None:
                continue
            imported = coerce(ref.imported_names)
            edges.append(
                Edge(
                    src=module.id,
                    dst=ref.module,
                    imports=imported.to_json() if imported is not None else None,
                    lazy=lazy,
                )
            )
    return edges


def is_pruned(module: Module, record: ModuleUsage) -> bool:
    """Reachable, side-effect free and nothing used: its block was never expanded."""
    return record.reachable and module.side_effect_free and record.usage.is_empty


def unused_exports(module: Module, record: ModuleUsage) -> List[str]:
    if not record.reachable:
        return sorted(set(module.exports))
    usage = record.usage
    if usage.is_fully_used:
        return []
    return sorted(set(module.exports) - set(usage.names))


def build_usage_report(
    graph: ModuleGraph,
    entries: Sequence[EntryPoint],
    table: Optional[UsageTable] = None,
) -> Dict[str, Any]:
    table = table if table is not None else graph.usage

    reachable: List[str] = []
    unreachable: List[str] = []
    pruned: List[str] = []
    fully_used = 0
    unused_total = 0
    modules_out: List[Dict[str, Any]] = []

    for module in sorted(graph, key=lambda m: m.id):
        record = table[module.id]
        if record.reachable:
            reachable.append(module.id)
        else:
            unreachable.append(module.id)
        if is_pruned(module, record):
            pruned.append(module.id)
        if record.reachable and record.usage.is_fully_used:
            fully_used += 1
        unused = unused_exports(module, record)
        unused_total += len(unused)
        modules_out.append(
            {
                "id": module.id,
                "reachable": record.reachable,
                "side_effect_free": module.side_effect_free,
                "usage": record.usage.to_json(),
                "owners": {name: sorted(owners) for name, owners in sorted(record.owners.items())},
                "unused_exports": unused,
            }
        )

    report: Dict[str, Any] = {
        "version": "1.0",
        "summary": {
            "modules_total": len(graph),
            "entries": len(entries),
            "reachable": len(reachable),
            "unreachable": len(unreachable),
            "pruned": len(pruned),
            "fully_used": fully_used,
            "unused_exports": unused_total,
        },
        "entries": {e.name: e.module for e in entries},
        "reachable": reachable,
        "unreachable": unreachable,
        "pruned": pruned,
        "modules": modules_out,
    }
    return report


def save_usage_report(report: Dict[str, Any], output_dir: Path) -> Path:
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    out = output_dir / "usage_report.json"
    out.write_text(json.dumps(report, ensure_ascii=False, indent=2), encoding="utf-8")
    return out


def explain_reachability(
    graph: ModuleGraph,
    entries: Sequence[EntryPoint],
    target: str,
    resolver: Optional[Resolver] = None,
    table: Optional[UsageTable] = None,
) -> Dict[str, Any]:
    """Return one entry -> target path through modules that were expanded.

    Must be called after the analysis ran on ``graph``. The result includes:
    {found: bool, entry: str|None, target: str, path_edges: [edge dicts]}
    """
    table = table if table is not None else graph.usage
    edges = collect_edges(graph, resolver)
    adj: Dict[str, List[Edge]] = {}
    for e in edges:
        adj.setdefault(e.src, []).append(e)

    def _expanded(module_id: str) -> bool:
        record = table[module_id]
        return record.reachable and not is_pruned(graph[module_id], record)

    for entry in entries:
        if not entry.module:
            continue
        q = deque([entry.module])
        prev: Dict[str, Tuple[str, Edge]] = {}
        seen: Set[str] = {entry.module}
        while q:
            node = q.popleft()
            if node == target:
                path_edges: List[Dict[str, Any]] = []
                cur = node
                while cur in prev:
                    parent, ed = prev[cur]
                    path_edges.append(ed.__dict__.copy())
                    cur = parent
                path_edges.reverse()
                return {"found": True, "entry": entry.name, "target": target, "path_edges": path_edges}
            if not _expanded(node):
                continue
            for ed in adj.get(node, []):
                if ed.dst not in seen:
                    seen.add(ed.dst)
                    prev[ed.dst] = (node, ed)
                    q.append(ed.dst)
    return {"found": False, "entry": None, "target": target, "path_edges": []}
