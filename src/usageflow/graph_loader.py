"""
Graph description loader - builds a ModuleGraph from YAML/JSON/TOML.

The description is produced by whatever stage builds the module graph; this
loader only checks its structure, it does not resolve anything.
"""
from __future__ import annotations

import fnmatch
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

try:
    import yaml
except ImportError:
    yaml = None

try:  # py3.11+
    import tomllib as tomli
except ImportError:
    try:
        import tomli
    except ImportError:
        tomli = None

from .node_types import Dependency, DependencyBlock, DependencyVariable, EntryPoint, Module, ModuleGraph


class GraphFormatError(ValueError):
    """Raised when a graph description is structurally invalid."""


def load_graph(path: Path) -> Tuple[ModuleGraph, List[EntryPoint]]:
    """
    Load a graph description file.

    Args:
        path: .yaml/.yml, .json or .toml file

    Returns:
        (graph, entries)
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"graph description not found: {path}")

    suffix = path.suffix.lower()
    if suffix in [".yaml", ".yml"]:
        if yaml is None:
            raise ImportError("PyYAML is required to read YAML graph descriptions: pip install pyyaml")
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    elif suffix == ".json":
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    elif suffix == ".toml":
        if tomli is None:
            raise ImportError("tomli is required to read TOML graph descriptions: pip install tomli")
        with path.open("rb") as f:
            data = tomli.load(f)
    else:
        raise ValueError(f"unsupported graph description format: {suffix}")

    return parse_graph_data(data or {})


def parse_graph_data(data: Dict[str, Any]) -> Tuple[ModuleGraph, List[EntryPoint]]:
    if not isinstance(data, dict):
        raise GraphFormatError("graph description must be a mapping")

    graph = ModuleGraph()
    modules = data.get("modules") or {}
    if isinstance(modules, list):
        # list form: [{id: ..., ...}, ...]
        items = []
        for raw in modules:
            if not isinstance(raw, dict) or "id" not in raw:
                raise GraphFormatError(f"module entry without id: {raw!r}")
            items.append((str(raw["id"]), raw))
    elif isinstance(modules, dict):
        items = [(str(k), v or {}) for k, v in modules.items()]
    else:
        raise GraphFormatError("'modules' must be a mapping or a list")

    for module_id, raw in items:
        if not isinstance(raw, dict):
            raise GraphFormatError(f"module {module_id} must be a mapping")
        module = Module(
            id=module_id,
            side_effect_free=bool(raw.get("side_effect_free", False)),
            exports=[str(x) for x in _as_list(raw, "exports", module_id)],
            block=_parse_block(raw, module_id),
        )
        try:
            graph.add_module(module)
        except ValueError as e:
            raise GraphFormatError(str(e)) from e

    entries = parse_entries(data.get("entries") or {}, graph)
    return graph, entries


def parse_entries(raw: Any, graph: ModuleGraph) -> List[EntryPoint]:
    """Accepts ``{name: module}`` or a list of ``{name, module}`` / module ids."""
    entries: List[EntryPoint] = []
    if isinstance(raw, dict):
        pairs = [(str(k), v) for k, v in raw.items()]
    elif isinstance(raw, list):
        pairs = []
        for item in raw:
            if isinstance(item, str):
                pairs.append((item, item))
            elif isinstance(item, dict) and "module" in item:
                pairs.append((str(item.get("name") or item["module"]), item["module"]))
            else:
                raise GraphFormatError(f"invalid entry: {item!r}")
    else:
        raise GraphFormatError("'entries' must be a mapping or a list")

    for name, module_id in pairs:
        if module_id is not None:
            module_id = str(module_id)
            if module_id not in graph:
                raise GraphFormatError(f"entry {name} points to unknown module: {module_id}")
        entries.append(EntryPoint(name=name, module=module_id))
    return entries


def _as_list(raw: Dict[str, Any], key: str, where: str) -> List[Any]:
    value = raw.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise GraphFormatError(f"{where}: {key} must be a list")
    return value


def _parse_block(raw: Dict[str, Any], where: str) -> DependencyBlock:
    block = DependencyBlock()
    block.dependencies = [_parse_dependency(d, where) for d in _as_list(raw, "dependencies", where)]
    for var in _as_list(raw, "variables", where):
        if not isinstance(var, dict):
            raise GraphFormatError(f"{where}: variable must be a mapping")
        block.variables.append(
            DependencyVariable(
                name=str(var.get("name", "")),
                dependencies=[_parse_dependency(d, where) for d in _as_list(var, "dependencies", where)],
            )
        )
    for i, nested in enumerate(_as_list(raw, "blocks", where)):
        if not isinstance(nested, dict):
            raise GraphFormatError(f"{where}: block must be a mapping")
        block.blocks.append(_parse_block(nested, f"{where}/block[{i}]"))
    return block


def _parse_dependency(raw: Any, where: str) -> Dependency:
    if isinstance(raw, str):
        return Dependency(target=raw, request=raw)
    if not isinstance(raw, dict):
        raise GraphFormatError(f"{where}: dependency must be a string or mapping, got {raw!r}")
    target = raw.get("target")
    imports = raw.get("imports")
    if isinstance(imports, str):
        if imports != "*":
            raise GraphFormatError(f"{where}: imports must be a list, true/false or '*'")
        imports = True
    elif isinstance(imports, list):
        imports = [str(x) for x in imports]
    elif imports is not None and not isinstance(imports, bool):
        raise GraphFormatError(f"{where}: invalid imports value {imports!r}")
    return Dependency(
        target=str(target) if target is not None else None,
        imports=imports,
        request=str(raw.get("request") or target or ""),
    )


def apply_side_effect_free_patterns(graph: ModuleGraph, patterns: Iterable[str]) -> List[str]:
    """Mark modules whose id matches any pattern as side-effect free."""
    marked: List[str] = []
    pats = [p for p in patterns or [] if p]
    if not pats:
        return marked
    for module in graph:
        if any(fnmatch.fnmatch(module.id, pat) for pat in pats):
            if not module.side_effect_free:
                module.side_effect_free = True
                marked.append(module.id)
    return marked


def merge_entries(entries: List[EntryPoint], overrides: Optional[Dict[str, str]], graph: ModuleGraph) -> List[EntryPoint]:
    """Overlay configured entries on the ones from the graph description."""
    if not overrides:
        return list(entries)
    by_name = {e.name: e for e in entries}
    for e in parse_entries(dict(overrides), graph):
        by_name[e.name] = e
    return list(by_name.values())
