"""
Dependency usage propagation.

Seeds every entry point's root module as fully used, then walks dependency
blocks with a LIFO work stack, merging the names each edge imports into its
target module until no merge changes anything. Usage and owners only grow,
so the walk reaches a fixed point even on cyclic graphs.

    graph, entries = load_graph("module-graph.yaml")
    table = flag_dependency_usage(graph, entries)
    table["lib.math"].usage   # e.g. Named(['add'])
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from .lattice import FULLY_USED, UNUSED, Usage, coerce
from .node_types import Dependency, DependencyBlock, EntryPoint, Module, ModuleGraph, WorkItem
from .resolver import Resolver, declared_reference_resolver
from .usage_record import Outcome, UsageTable

logger = logging.getLogger(__name__)


@dataclass
class PropagationStats:
    pushed: int = 0
    popped: int = 0
    skipped_edges: int = 0  # zero-information edges into already reached modules
    unresolved: int = 0
    max_depth: int = 0


class WorkStack:
    """LIFO stack of pending block expansions."""

    def __init__(self, stats: PropagationStats) -> None:
        self._items: List[WorkItem] = []
        self._stats = stats

    def push(self, item: WorkItem) -> None:
        self._items.append(item)
        self._stats.pushed += 1
        if len(self._items) > self._stats.max_depth:
            self._stats.max_depth = len(self._items)

    def pop(self) -> WorkItem:
        self._stats.popped += 1
        return self._items.pop()

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)


class UsagePropagation:
    """One analysis over ``graph``; ``run`` may be called repeatedly."""

    def __init__(self, graph: ModuleGraph, resolver: Optional[Resolver] = None) -> None:
        self.graph = graph
        self.table: UsageTable = graph.usage
        self.resolver: Resolver = resolver or declared_reference_resolver(graph)
        self.stats = PropagationStats()
        self._stack = WorkStack(self.stats)

    def run(self, entries: Iterable[EntryPoint]) -> UsageTable:
        self.stats = PropagationStats()
        self._stack = WorkStack(self.stats)

        self.table.reset_reachability()

        for entry in entries:
            if not entry.module:
                logger.debug("entry %s has no module, skipped", entry.name)
                continue
            root = self.graph[entry.module]
            logger.debug("seeding entry %s at %s", entry.name, root.id)
            self._apply(root, FULLY_USED, entry.name)

        while self._stack:
            item = self._stack.pop()
            self.process_dependencies_block(item.module, item.block, item.usage, item.entry)

        logger.info(
            "usage propagation done: %d modules, %d tasks, %d skipped edges, %d unresolved, peak depth %d",
            len(self.graph),
            self.stats.popped,
            self.stats.skipped_edges,
            self.stats.unresolved,
            self.stats.max_depth,
        )
        return self.table

    def _apply(self, module: Module, incoming: Usage, entry: str) -> Outcome:
        outcome = self.table.apply_usage(module, incoming, entry)
        if outcome is Outcome.EXPAND:
            usage = self.table[module.id].usage
            logger.debug("expanding %s with %r for %s", module.id, usage, entry)
            self._stack.push(WorkItem(module, module.block, usage, entry))
        elif outcome is Outcome.PRUNED:
            logger.debug("%s is side-effect free and unused, not expanded", module.id)
        return outcome

    def process_dependency(self, module: Module, dependency: Dependency, entry: str) -> None:
        reference = self.resolver(module, dependency)
        if reference is None:
            self.stats.unresolved += 1
            return
        target = self.graph[reference.module]
        imported = coerce(reference.imported_names)
        if imported is None and self.table[target.id].reachable:
            self.stats.skipped_edges += 1
            return
        self._apply(target, imported if imported is not None else UNUSED, entry)

    def process_dependencies_block(
        self, module: Module, block: DependencyBlock, usage: Usage, entry: str
    ) -> None:
        for dep in block.dependencies:
            self.process_dependency(module, dep, entry)
        for var in block.variables:
            for dep in var.dependencies:
                self.process_dependency(module, dep, entry)
        # nested blocks are deferred with the usage that reached this block
        for nested in block.blocks:
            self._stack.push(WorkItem(module, nested, usage, entry))


def flag_dependency_usage(
    graph: ModuleGraph,
    entries: Iterable[EntryPoint],
    resolver: Optional[Resolver] = None,
) -> UsageTable:
    """Compute reachability, used exports and per-entry owners for ``graph``.

    Args:
        graph: module arena; its usage table is updated in place.
        entries: entry points seeding the analysis.
        resolver: dependency resolver, defaults to the declared-edge one.

    Returns:
        UsageTable: ``graph.usage`` after reaching the fixed point.
    """
    return UsagePropagation(graph, resolver).run(entries)
