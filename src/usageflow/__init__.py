"""
usageflow - module reachability and export usage analysis for dead-code elimination

Simple API:

    from usageflow import flag_dependency_usage, load_graph

    graph, entries = load_graph("module-graph.yaml")
    table = flag_dependency_usage(graph, entries)
    print(table["lib.math"].usage, table["lib.math"].owners)

    # custom resolver: (module, dependency) -> Reference | None
    table = flag_dependency_usage(graph, entries, resolver=my_resolver)
"""

from .lattice import FULLY_USED, UNUSED, Usage, UsageKind, merge, named
from .node_types import (
    Dependency,
    DependencyBlock,
    DependencyVariable,
    EntryPoint,
    Module,
    ModuleGraph,
    Reference,
)
from .propagation import UsagePropagation, flag_dependency_usage
from .usage_record import ModuleUsage, Outcome, UsageTable


def load_graph(*args, **kwargs):
    """Lazy import wrapper for load_graph to keep package import free of YAML/TOML loading."""
    from .graph_loader import load_graph as _load_graph

    return _load_graph(*args, **kwargs)


from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("usageflow")
except PackageNotFoundError:
    # Fallback for development/uninstalled package
    __version__ = "unknown"

__all__ = [
    "FULLY_USED",
    "UNUSED",
    "Usage",
    "UsageKind",
    "merge",
    "named",
    "Dependency",
    "DependencyBlock",
    "DependencyVariable",
    "EntryPoint",
    "Module",
    "ModuleGraph",
    "Reference",
    "UsagePropagation",
    "flag_dependency_usage",
    "ModuleUsage",
    "Outcome",
    "UsageTable",
    "load_graph",
    "__version__",
]
