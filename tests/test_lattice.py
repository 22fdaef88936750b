from __future__ import annotations

import pytest

from usageflow.lattice import FULLY_USED, UNUSED, UsageKind, coerce, leq, merge, named


def test_merge_from_unused_takes_incoming():
    assert merge(UNUSED, UNUSED) == (UNUSED, False)
    assert merge(UNUSED, named(["a"])) == (named(["a"]), True)
    assert merge(UNUSED, FULLY_USED) == (FULLY_USED, True)
    # an empty named set is still more than nothing
    assert merge(UNUSED, named([])) == (named([]), True)


def test_merge_into_fully_used_never_changes():
    for incoming in (UNUSED, named(["x"]), FULLY_USED):
        assert merge(FULLY_USED, incoming) == (FULLY_USED, False)


def test_merge_named():
    old = named(["a", "b"])
    assert merge(old, FULLY_USED) == (FULLY_USED, True)
    assert merge(old, UNUSED) == (old, False)
    assert merge(old, named(["b"])) == (old, False)
    new, changed = merge(old, named(["b", "c"]))
    assert changed
    assert new.names == frozenset({"a", "b", "c"})
    # inputs are left untouched
    assert old.names == frozenset({"a", "b"})


def test_leq_order():
    assert leq(UNUSED, named(["a"]))
    assert leq(named(["a"]), FULLY_USED)
    assert leq(named(["a"]), named(["a", "b"]))
    assert not leq(named(["a", "c"]), named(["a", "b"]))
    assert not leq(FULLY_USED, named(["a"]))
    assert not leq(named([]), UNUSED)


def test_is_empty():
    assert UNUSED.is_empty
    assert named([]).is_empty
    assert not named(["a"]).is_empty
    assert not FULLY_USED.is_empty


def test_coerce_shapes():
    assert coerce(None) is None
    assert coerce(True) is FULLY_USED
    assert coerce(False) is UNUSED
    assert coerce(["a", "b"]) == named(["a", "b"])
    assert coerce(("a",)).kind is UsageKind.NAMED
    assert coerce("*") is FULLY_USED
    value = named(["z"])
    assert coerce(value) is value
    assert coerce(n for n in ("a", "b")) == named(["a", "b"])
    assert coerce({"x": 1, "y": 2}.keys()) == named(["x", "y"])


def test_coerce_rejects_unknown_shapes():
    with pytest.raises(TypeError):
        coerce(42)
    with pytest.raises(TypeError):
        coerce(["a", 1])


def test_to_json():
    assert UNUSED.to_json() == "unused"
    assert FULLY_USED.to_json() == "all"
    assert named(["b", "a"]).to_json() == ["a", "b"]
