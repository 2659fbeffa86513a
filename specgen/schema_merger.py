"""Prune the schema pool to what the API surface actually references.

Only refs in structural positions count; a ``$ref`` key buried inside a
``default`` or ``example`` payload is data, not an edge. Refs that still
point nowhere after merging are reported for the caller to classify,
never raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from .refs import iter_paths_refs, iter_schema_refs, ref_name

logger = logging.getLogger(__name__)

_PRIMITIVE_NAMES = frozenset({
    "string", "number", "boolean", "object", "null",
    "undefined", "void", "any", "unknown", "never",
})


@dataclass(frozen=True)
class MergeResult:
    """Pruned pool plus the refs it could not satisfy."""

    paths: dict[str, Any]
    schemas: dict[str, Any]
    missing: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class MissingRefCategories:
    """Missing schema names grouped by likely cause."""

    primitives: list[str] = field(default_factory=list)
    union_types: list[str] = field(default_factory=list)
    params: list[str] = field(default_factory=list)
    other: list[str] = field(default_factory=list)


def _ref_names(refs) -> list[str]:
    return [name for name in (ref_name(r) for r in refs) if name is not None]


def reachable_names(paths: dict[str, Any], pool: dict[str, Any]) -> set[str]:
    """Names in ``pool`` transitively reachable from the paths' structural refs."""
    seen: set[str] = set()
    worklist = _ref_names(iter_paths_refs(paths))

    while worklist:
        name = worklist.pop()
        if name in seen or name not in pool:
            continue
        seen.add(name)
        worklist.extend(n for n in _ref_names(iter_schema_refs(pool[name])) if n not in seen)

    return seen


def find_unresolved_refs(paths: dict[str, Any], schemas: dict[str, Any]) -> dict[str, int]:
    """Count structural refs whose target is absent from ``schemas``.

    Keys appear in first-encountered order: paths first, then schemas in
    pool order.
    """
    missing: dict[str, int] = {}
    refs = list(iter_paths_refs(paths))
    for schema in schemas.values():
        refs.extend(iter_schema_refs(schema))

    for name in _ref_names(refs):
        if name not in schemas:
            missing[name] = missing.get(name, 0) + 1
    return missing


def merge_schemas(paths: dict[str, Any], pool: dict[str, Any]) -> MergeResult:
    """Return the minimal pool reachable from ``paths``, in pool order."""
    reachable = reachable_names(paths, pool)
    schemas = {name: schema for name, schema in pool.items() if name in reachable}

    dropped = len(pool) - len(schemas)
    if dropped:
        logger.debug("Dropped %d unreachable schemas", dropped)

    missing = find_unresolved_refs(paths, schemas)
    for name, count in missing.items():
        logger.warning("Unresolved schema ref %s (%d usages)", name, count)

    return MergeResult(paths=paths, schemas=schemas, missing=missing)


def categorize_missing(missing: dict[str, int]) -> MissingRefCategories:
    """Group missing schema names to hint at the root cause."""
    categories = MissingRefCategories()
    for name in missing:
        if name.lower() in _PRIMITIVE_NAMES:
            categories.primitives.append(name)
        elif "|" in name:
            categories.union_types.append(name)
        elif name.endswith("Params"):
            categories.params.append(name)
        else:
            categories.other.append(name)
    return categories
