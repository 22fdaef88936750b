"""
Per-module usage state and the single entry point that mutates it.

The table outlives a run: ``reachable`` is cleared by the driver at the start
of every run, while ``usage`` and ``owners`` keep accumulating. Callers that
want a clean-slate analysis must call ``UsageTable.clear()`` themselves.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Dict, Iterator, Set

from .lattice import UNUSED, Usage, merge

if TYPE_CHECKING:
    from .node_types import Module


class Outcome(Enum):
    # reachable, but a side-effect-free module with nothing used: do not expand
    PRUNED = "pruned"
    NO_NEW_INFO = "no_new_info"
    EXPAND = "expand"


@dataclass
class ModuleUsage:
    reachable: bool = False
    usage: Usage = UNUSED
    owners: Dict[str, Set[str]] = field(default_factory=dict)


class UsageTable:
    def __init__(self) -> None:
        self._records: Dict[str, ModuleUsage] = {}

    def register(self, module_id: str) -> ModuleUsage:
        return self._records.setdefault(module_id, ModuleUsage())

    def __getitem__(self, module_id: str) -> ModuleUsage:
        return self._records[module_id]

    def __contains__(self, module_id: object) -> bool:
        return module_id in self._records

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def items(self):
        return self._records.items()

    def reset_reachability(self) -> None:
        for record in self._records.values():
            record.reachable = False

    def clear(self) -> None:
        """Drop accumulated usage and attribution for every module."""
        for module_id in self._records:
            self._records[module_id] = ModuleUsage()

    def snapshot(self) -> Dict[str, ModuleUsage]:
        return copy.deepcopy(self._records)

    def apply_usage(self, module: "Module", incoming: Usage, entry: str) -> Outcome:
        """Merge ``incoming`` usage reaching ``module`` on behalf of ``entry``.

        Returns:
            Outcome.EXPAND when the module's own dependency block must be
            (re)scheduled, Outcome.PRUNED when it is side-effect free and
            nothing of it is used, Outcome.NO_NEW_INFO otherwise.
        """
        record = self._records[module.id]
        newly_reachable = not record.reachable
        record.reachable = True

        if record.usage.is_fully_used:
            # attribution arriving after full use is not recorded
            return Outcome.EXPAND if newly_reachable else Outcome.NO_NEW_INFO

        new_usage, changed = merge(record.usage, incoming)
        owners_changed = False
        if incoming.is_named:
            for name in incoming.names:
                entries = record.owners.setdefault(name, set())
                if entry not in entries:
                    entries.add(entry)
                    owners_changed = True
        record.usage = new_usage

        if not (changed or owners_changed or newly_reachable):
            return Outcome.NO_NEW_INFO
        if module.side_effect_free and new_usage.is_empty:
            return Outcome.PRUNED
        return Outcome.EXPAND
