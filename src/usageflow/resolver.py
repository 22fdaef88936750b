"""
Reference resolution contract.

A resolver maps ``(owning module, dependency)`` to a ``Reference`` naming the
target module and the names pulled through the edge, or to ``None`` when the
dependency has no module-level effect. Exceptions raised by a resolver are
not caught by the analysis.
"""
from __future__ import annotations

from typing import Callable, Optional

from .node_types import Dependency, Module, ModuleGraph, Reference

Resolver = Callable[[Module, Dependency], Optional[Reference]]


def declared_reference_resolver(graph: ModuleGraph) -> Resolver:
    """Resolver for graphs whose dependencies already carry their target.

    Dependencies without a target, or whose target is not part of ``graph``,
    resolve to ``None`` (dangling, treated as no effect).
    """

    def resolve(module: Module, dependency: Dependency) -> Optional[Reference]:
        target = dependency.target
        if not target or target not in graph:
            return None
        return Reference(module=target, imported_names=dependency.imports)

    return resolve
