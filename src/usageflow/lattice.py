"""
Usage lattice: how much of a module's exports is consumed.

Three shapes, ordered ``UNUSED ⊑ NAMED(S) ⊑ FULLY_USED``; two NAMED values
compare by set inclusion. Values are immutable, so ``merge`` can report
whether anything changed without touching the old value.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, FrozenSet, Iterable, Optional, Tuple


class UsageKind(Enum):
    UNUSED = "unused"
    NAMED = "named"
    FULLY_USED = "all"


@dataclass(frozen=True)
class Usage:
    kind: UsageKind
    names: FrozenSet[str] = frozenset()

    @property
    def is_unused(self) -> bool:
        return self.kind is UsageKind.UNUSED

    @property
    def is_named(self) -> bool:
        return self.kind is UsageKind.NAMED

    @property
    def is_fully_used(self) -> bool:
        return self.kind is UsageKind.FULLY_USED

    @property
    def is_empty(self) -> bool:
        """True when nothing is consumed: UNUSED or an empty NAMED set."""
        return self.kind is UsageKind.UNUSED or (self.kind is UsageKind.NAMED and not self.names)

    def to_json(self) -> Any:
        if self.kind is UsageKind.NAMED:
            return sorted(self.names)
        return self.kind.value

    def __repr__(self) -> str:
        if self.kind is UsageKind.NAMED:
            return f"Named({sorted(self.names)!r})"
        return "FullyUsed" if self.is_fully_used else "Unused"


UNUSED = Usage(UsageKind.UNUSED)
FULLY_USED = Usage(UsageKind.FULLY_USED)


def named(names: Iterable[str]) -> Usage:
    return Usage(UsageKind.NAMED, frozenset(names))


def merge(old: Usage, incoming: Usage) -> Tuple[Usage, bool]:
    """Join ``incoming`` into ``old``.

    Returns:
        (new value, changed) where ``changed`` is False exactly when the
        join is a no-op.
    """
    if old.is_unused:
        return incoming, not incoming.is_unused
    if old.is_fully_used:
        return old, False
    # old is NAMED
    if incoming.is_fully_used:
        return FULLY_USED, True
    if incoming.is_unused:
        return old, False
    joined = old.names | incoming.names
    if len(joined) == len(old.names):
        return old, False
    return Usage(UsageKind.NAMED, joined), True


def leq(a: Usage, b: Usage) -> bool:
    """Partial order of the lattice (``a ⊑ b``)."""
    if a.is_unused or b.is_fully_used:
        return True
    if a.is_fully_used or b.is_unused:
        return False
    return a.names <= b.names


def coerce(value: Any) -> Optional[Usage]:
    """Normalize the loose shapes a resolver may report for imported names.

    ``None`` stays ``None`` (edge carries no refinement), ``True`` is
    FULLY_USED, ``False`` is UNUSED, a ``Usage`` passes through and any
    other iterable of strings becomes NAMED. A bare string is a single name,
    except ``"*"`` which means everything.
    """
    if value is None or isinstance(value, Usage):
        return value
    if value is True:
        return FULLY_USED
    if value is False:
        return UNUSED
    if isinstance(value, str):
        if value == "*":
            return FULLY_USED
        return named([value])
    if not isinstance(value, Iterable):
        raise TypeError(f"unsupported imported names value: {value!r}")
    names = []
    for item in value:
        if not isinstance(item, str):
            raise TypeError(f"export names must be strings, got {type(item).__name__}: {item!r}")
        names.append(item)
    return named(names)
