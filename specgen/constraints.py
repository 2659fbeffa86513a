"""Merge decorator-derived validation constraints into schemas.

Constraints arrive already extracted, keyed by class then property:

    {"CreateUserDto": {"email": {"format": "email"}, "age": {"minimum": 0}}}

Nothing is re-derived here; explicit constraint keys (``type`` included)
override whatever the generator inferred.
"""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)


def apply_constraints(
    schema: dict[str, Any],
    property_constraints: dict[str, dict[str, Any]],
    required: list[str] | None = None,
) -> dict[str, Any]:
    """Return a copy of one schema with constraints and required names merged in."""
    updated = dict(schema)

    properties = schema.get("properties")
    if isinstance(properties, dict) and property_constraints:
        updated["properties"] = {
            name: {**prop, **property_constraints[name]} if name in property_constraints else prop
            for name, prop in properties.items()
        }

    if required:
        merged = list(schema.get("required") or [])
        merged.extend(name for name in required if name not in merged)
        updated["required"] = list(dict.fromkeys(merged))

    return updated


def merge_validation_constraints(
    schemas: dict[str, Any],
    constraints: dict[str, dict[str, dict[str, Any]]],
    required: dict[str, list[str]] | None = None,
) -> dict[str, Any]:
    """Apply per-class constraints and required lists across a schema pool."""
    required = required or {}
    merged: dict[str, Any] = {}

    for name, schema in schemas.items():
        class_constraints = constraints.get(name) or {}
        class_required = required.get(name)
        if class_constraints or class_required:
            logger.debug("Applying validation constraints to %s", name)
            merged[name] = apply_constraints(schema, class_constraints, class_required)
        else:
            merged[name] = schema

    return merged
