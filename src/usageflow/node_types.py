"""
Module graph data model.

Modules live in an arena keyed by stable string ids; dependencies name their
target by id instead of holding a reference, so circular imports need no
special ownership handling.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, NamedTuple, Optional, Tuple

from .lattice import Usage
from .usage_record import UsageTable


@dataclass
class Dependency:
    """One edge out of a dependency block.

    ``target`` and ``imports`` are only interpreted by a resolver; the
    propagation engine never looks inside a dependency.
    """

    target: Optional[str] = None
    imports: Any = None
    request: str = ""


@dataclass
class DependencyVariable:
    """Dependencies scoped to an injected variable."""

    name: str
    dependencies: List[Dependency] = field(default_factory=list)


@dataclass
class DependencyBlock:
    dependencies: List[Dependency] = field(default_factory=list)
    variables: List[DependencyVariable] = field(default_factory=list)
    # conditionally evaluated or lazily loaded sub-graphs
    blocks: List["DependencyBlock"] = field(default_factory=list)

    def walk(self, lazy: bool = False) -> Iterator[Tuple[Dependency, bool]]:
        """Yield every dependency in this block and nested blocks.

        The flag tells whether the dependency sits inside a nested block.
        """
        for dep in self.dependencies:
            yield dep, lazy
        for var in self.variables:
            for dep in var.dependencies:
                yield dep, lazy
        for block in self.blocks:
            yield from block.walk(lazy=True)


@dataclass
class Module:
    id: str
    side_effect_free: bool = False
    exports: List[str] = field(default_factory=list)
    block: DependencyBlock = field(default_factory=DependencyBlock)


@dataclass
class EntryPoint:
    name: str
    module: Optional[str]


class Reference(NamedTuple):
    """What a resolver reports for a dependency with a module-level effect."""

    module: str
    imported_names: Any = None


class WorkItem(NamedTuple):
    module: Module
    block: DependencyBlock
    usage: Usage
    entry: str


class ModuleGraph:
    """Arena of modules plus the usage table the analysis writes into."""

    def __init__(self) -> None:
        self.modules: Dict[str, Module] = {}
        self.usage = UsageTable()

    def add_module(self, module: Module) -> Module:
        if module.id in self.modules:
            raise ValueError(f"duplicate module id: {module.id}")
        self.modules[module.id] = module
        self.usage.register(module.id)
        return module

    def __contains__(self, module_id: object) -> bool:
        return module_id in self.modules

    def __iter__(self) -> Iterator[Module]:
        return iter(self.modules.values())

    def __len__(self) -> int:
        return len(self.modules)

    def __getitem__(self, module_id: str) -> Module:
        return self.modules[module_id]
