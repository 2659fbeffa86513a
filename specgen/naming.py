"""Rename placeholder schemas to readable names based on where they are used.

Upstream schema generation names anonymous inline types after internal
node ids, and generic instantiations over them inherit the id:

  structure-1949804971-123-456
  class-1038812259-491-2678
  SelectRule<structure-1231915544-12>

A placeholder is named after the first property that uses it, through a
cascade that never reuses a name already taken:

  1. Pascal(property)                  -> NamespaceLabels
  2. Parent + Pascal(property)         -> VulnerabilityRulesNamespaceLabels
  3. Parent + Pascal(property) + _N    -> VulnerabilityRulesNamespaceLabels_1

Generic wrappers keep their base and get the token replaced:

  SelectRule<structure-1231915544-12> -> SelectRule<NamespaceLabels>

Clean generics such as SelectRule<string> are never touched.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any
from urllib.parse import unquote

from .refs import ref_name, rewrite_paths_refs, rewrite_refs, to_ref

logger = logging.getLogger(__name__)

_PLACEHOLDER_TOKEN = r"(?:structure|class)-\d+(?:-\d+)*"
_PLACEHOLDER = re.compile(rf"^{_PLACEHOLDER_TOKEN}$")
_CONTAINS_PLACEHOLDER = re.compile(_PLACEHOLDER_TOKEN)


@dataclass(frozen=True)
class Usage:
    """One property that references a placeholder."""

    parent: str
    property: str
    ref: str


@dataclass(frozen=True)
class NormalizeResult:
    paths: dict[str, Any]
    schemas: dict[str, Any]
    renames: dict[str, str]


def is_placeholder(name: str) -> bool:
    """True for a bare placeholder name like ``structure-123-456``."""
    return bool(_PLACEHOLDER.match(unquote(name)))


def contains_placeholder(name: str) -> bool:
    """True when a placeholder token appears anywhere in ``name``."""
    return bool(_CONTAINS_PLACEHOLDER.search(unquote(name)))


def placeholder_tokens(name: str) -> list[str]:
    """All placeholder tokens in a name, in order of appearance."""
    return _CONTAINS_PLACEHOLDER.findall(unquote(name))


def to_pascal_case(name: str) -> str:
    """Upper-case the first letter, keep the rest as-is.

    namespaceLabels -> NamespaceLabels, k8sLabels -> K8sLabels
    """
    if not name:
        return name
    return name[0].upper() + name[1:]


def find_unique_name(property_name: str, parent: str, used: set[str]) -> str:
    """Pick the first free name in the property -> parent+property -> suffix cascade."""
    if property_name not in used:
        return property_name

    with_parent = f"{parent}{property_name}"
    if with_parent not in used:
        return with_parent

    suffix = 1
    while f"{with_parent}_{suffix}" in used:
        suffix += 1
    return f"{with_parent}_{suffix}"


def _property_refs(prop: dict[str, Any]) -> list[str]:
    refs = []
    if isinstance(prop.get("$ref"), str):
        refs.append(prop["$ref"])
    items = prop.get("items")
    if isinstance(items, dict) and isinstance(items.get("$ref"), str):
        refs.append(items["$ref"])
    return refs


def find_usages(schemas: dict[str, Any]) -> dict[str, list[Usage]]:
    """Collect usage sites per placeholder token, in pool then property order."""
    usages: dict[str, list[Usage]] = {}

    for parent, schema in schemas.items():
        if is_placeholder(parent):
            continue
        for prop_name, prop in (schema.get("properties") or {}).items():
            if not isinstance(prop, dict):
                continue
            for ref in _property_refs(prop):
                name = ref_name(ref)
                if name is None:
                    continue
                for token in placeholder_tokens(name):
                    usages.setdefault(token, []).append(Usage(parent, prop_name, name))

    return usages


def build_name_mapping(schemas: dict[str, Any]) -> dict[str, str]:
    """Map each used placeholder token to its new readable name."""
    used = {
        name for name in schemas
        if not is_placeholder(name) and not contains_placeholder(name)
    }
    mapping: dict[str, str] = {}

    for token, sites in find_usages(schemas).items():
        first = sites[0]
        new_name = find_unique_name(to_pascal_case(first.property), first.parent, used)
        mapping[token] = new_name
        used.add(new_name)

    return mapping


def replace_tokens(name: str, mapping: dict[str, str]) -> str:
    """Substitute every mapped placeholder token inside a name."""
    decoded = unquote(name)
    if decoded != name and contains_placeholder(decoded):
        name = decoded
    # whole tokens only: structure-1-2 must not match inside structure-1-23
    return _CONTAINS_PLACEHOLDER.sub(lambda m: mapping.get(m.group(0), m.group(0)), name)


def _new_schema_name(name: str, mapping: dict[str, str]) -> str | None:
    """Resolve a schema's key after renaming; None drops the schema."""
    if is_placeholder(name):
        return mapping.get(unquote(name))
    if contains_placeholder(name):
        return replace_tokens(name, mapping)
    return name


def normalize_names(paths: dict[str, Any], schemas: dict[str, Any]) -> NormalizeResult:
    """Rename placeholder schemas and rewrite every ref that points at them."""
    mapping = build_name_mapping(schemas)

    def _rewrite(ref: str) -> str:
        name = ref_name(ref)
        if name is None or not contains_placeholder(name):
            return ref
        return to_ref(replace_tokens(name, mapping))

    renames: dict[str, str] = {}
    normalized: dict[str, Any] = {}
    for name, schema in schemas.items():
        new_name = _new_schema_name(name, mapping)
        if new_name is None:
            logger.debug("Dropping unused placeholder schema %s", name)
            continue
        if new_name != name:
            renames[name] = new_name
            logger.debug("Renaming schema %s -> %s", name, new_name)
        if new_name in normalized:
            logger.warning("Schema name collision on %s, keeping the first definition", new_name)
            continue
        normalized[new_name] = rewrite_refs(schema, _rewrite)

    return NormalizeResult(
        paths=rewrite_paths_refs(paths, _rewrite) if mapping else paths,
        schemas=normalized,
        renames=renames,
    )
