"""Collapse alias schemas (A -> B where A is only a $ref) into direct refs.

Every ref to an alias is rewritten to the end of its chain and the alias
is dropped. Aliases that sit on a cycle are left exactly as they are.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .refs import ref_name, rewrite_paths_refs, rewrite_refs, to_ref

logger = logging.getLogger(__name__)

# Keys that carry no schema semantics
_METADATA_KEYS = frozenset({"description", "title", "$comment"})


@dataclass(frozen=True)
class CollapseResult:
    paths: dict[str, Any]
    schemas: dict[str, Any]


def is_alias_schema(schema: dict[str, Any]) -> bool:
    """True when a schema's only semantic key is ``$ref``."""
    if not isinstance(schema.get("$ref"), str):
        return False
    return all(key == "$ref" or key in _METADATA_KEYS for key in schema)


def _direct_aliases(schemas: dict[str, Any]) -> dict[str, str]:
    aliases: dict[str, str] = {}
    for name, schema in schemas.items():
        if not is_alias_schema(schema):
            continue
        target = ref_name(schema["$ref"])
        if target is not None:
            aliases[name] = target
    return aliases


def _final_target(start: str, aliases: dict[str, str], schemas: dict[str, Any]) -> str | None:
    """Follow an alias chain from ``start``.

    Returns the terminal non-alias name, or the first cycle node the chain
    runs into. Returns None when ``start`` is itself on a cycle or the chain
    leads to a schema that does not exist.
    """
    visited = {start}
    current = start
    while current in aliases:
        nxt = aliases[current]
        if nxt not in schemas:
            return None
        if nxt == start:
            return None
        if nxt in visited:
            return nxt
        visited.add(nxt)
        current = nxt
    return current


def resolve_alias_targets(schemas: dict[str, Any]) -> dict[str, str]:
    """Map each collapsible alias name to its final target."""
    aliases = _direct_aliases(schemas)
    targets: dict[str, str] = {}
    for name in aliases:
        target = _final_target(name, aliases, schemas)
        if target is not None and target != name:
            targets[name] = target
    return targets


def collapse_aliases(paths: dict[str, Any], schemas: dict[str, Any]) -> CollapseResult:
    """Rewrite refs through alias chains and drop the collapsed aliases."""
    targets = resolve_alias_targets(schemas)
    if not targets:
        return CollapseResult(paths=paths, schemas=schemas)

    def _rewrite(ref: str) -> str:
        name = ref_name(ref)
        if name in targets:
            return to_ref(targets[name])
        return ref

    for alias, target in targets.items():
        logger.debug("Collapsing alias schema %s -> %s", alias, target)

    return CollapseResult(
        paths=rewrite_paths_refs(paths, _rewrite),
        schemas={
            name: rewrite_refs(schema, _rewrite)
            for name, schema in schemas.items()
            if name not in targets
        },
    )
