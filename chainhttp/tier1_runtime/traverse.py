"""
chainhttp.tier1_runtime.traverse
─────────────────────────────────
Override-chain resolution. A configuration node points at its parent; the
effective value of a field is computed by walking from the node towards the
root and combining what each level holds locally.

Two combining policies:
  - stop predicate: return the first extracted value the predicate accepts
  - accumulator:    feed every level's value into a collector, never stop

Usage:
    charset = first_non_null(leaf, lambda n: n.parent, lambda n: n.charset)

    merged: dict[str, str] = {}
    accumulate(leaf, lambda n: n.parent, lambda n: n.headers, merge_absent(merged))
"""
from __future__ import annotations

from typing import Any, Callable, Mapping, MutableMapping, TypeVar

N = TypeVar("N")
V = TypeVar("V")


def not_null(value: Any) -> bool:
    """Default stop predicate: any present value wins."""
    return value is not None


def traverse(
    node: N | None,
    parent_of: Callable[[N], N | None],
    extract: Callable[[N], V | None],
    combine: Callable[[V | None], bool],
) -> V | None:
    """
    Walk *node* → root, returning the first extracted value for which
    *combine* returns True, or None once the root has been passed.

    An accumulating *combine* simply records the value and returns False,
    which makes the walk visit every level. Runs in O(depth).
    """
    current = node
    while current is not None:
        value = extract(current)
        if combine(value):
            return value
        current = parent_of(current)
    return None


def first_non_null(
    node: N | None,
    parent_of: Callable[[N], N | None],
    extract: Callable[[N], V | None],
    predicate: Callable[[V | None], bool] = not_null,
) -> V | None:
    """Nearest value along the chain accepted by *predicate*."""
    return traverse(node, parent_of, extract, predicate)


def accumulate(
    node: N | None,
    parent_of: Callable[[N], N | None],
    extract: Callable[[N], V | None],
    collector: Callable[[V], None],
) -> None:
    """Feed every present value from *node* up to the root into *collector*."""

    def _collect(value: V | None) -> bool:
        if value is not None:
            collector(value)
        return False

    traverse(node, parent_of, extract, _collect)


def merge_absent(target: MutableMapping[str, Any]) -> Callable[[Mapping[str, Any]], None]:
    """
    Collector that copies entries into *target* without overwriting names
    already present (compared case-insensitively). Walking child → root,
    this makes the nearest descendant win on collisions.
    """
    seen = {key.lower() for key in target}

    def _merge(entries: Mapping[str, Any]) -> None:
        for key, value in entries.items():
            folded = key.lower()
            if folded not in seen:
                seen.add(folded)
                target[key] = value

    return _merge


def extend(target: list) -> Callable[[Any], None]:
    """Collector that appends every entry, keeping duplicates."""
    return target.extend


__sdk_export__ = {
    "exports": ["traverse", "first_non_null", "accumulate", "not_null"],
    "description": "Parent-chain resolution with stop or accumulate policies",
    "tier": "tier1_runtime",
    "module": "traverse",
}
