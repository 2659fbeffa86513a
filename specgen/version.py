"""Convert nullable encodings between OpenAPI 3.0.x and 3.1+.

    3.0: {"type": "string", "nullable": true}
    3.1: {"type": ["string", "null"]}

    3.0: {"allOf": [{"$ref": ...}], "nullable": true}
    3.1: {"anyOf": [{"allOf": [{"$ref": ...}]}, {"type": "null"}]}

    3.0: {"oneOf": [A, B], "nullable": true}
    3.1: {"oneOf": [A, B, {"type": "null"}]}

Both directions are idempotent, so converting to the version a document is
already in changes nothing.
"""

from __future__ import annotations

from typing import Any

from .refs import map_paths_schemas, map_schema

_NULL_SCHEMA = {"type": "null"}


def is_v30(version: str) -> bool:
    return version.startswith("3.0")


def _is_null_schema(schema: Any) -> bool:
    return isinstance(schema, dict) and schema == _NULL_SCHEMA


def _to_v31(node: dict[str, Any]) -> dict[str, Any]:
    if node.get("nullable") is not True:
        return node

    rest = {k: v for k, v in node.items() if k != "nullable"}
    node_type = rest.get("type")

    if isinstance(node_type, str):
        rest["type"] = [node_type, "null"]
        return rest
    for key in ("oneOf", "anyOf"):
        if isinstance(rest.get(key), list):
            rest[key] = [*rest[key], dict(_NULL_SCHEMA)]
            return rest
    if isinstance(rest.get("allOf"), list):
        wrapped = {"allOf": rest.pop("allOf")}
        return {"anyOf": [wrapped, dict(_NULL_SCHEMA)], **rest}
    if "$ref" in rest:
        ref = {"$ref": rest.pop("$ref")}
        return {"anyOf": [ref, dict(_NULL_SCHEMA)], **rest}

    # no type to attach null to
    return node


def _to_v30(node: dict[str, Any]) -> dict[str, Any]:
    node_type = node.get("type")
    if isinstance(node_type, list) and "null" in node_type:
        non_null = [t for t in node_type if t != "null"]
        if len(non_null) == 1:
            return {**node, "type": non_null[0], "nullable": True}
        return node

    for key in ("anyOf", "oneOf"):
        members = node.get(key)
        if not isinstance(members, list) or not any(_is_null_schema(m) for m in members):
            continue
        remaining = [m for m in members if not _is_null_schema(m)]
        rest = {k: v for k, v in node.items() if k != key}

        if key == "anyOf" and len(remaining) == 1:
            member = remaining[0]
            if isinstance(member, dict) and set(member) == {"allOf"}:
                return {"allOf": member["allOf"], **rest, "nullable": True}
            if isinstance(member, dict) and set(member) == {"$ref"}:
                return {"allOf": [member], **rest, "nullable": True}

        return {key: remaining, **rest, "nullable": True}

    return node


def transform_schema(schema: dict[str, Any], version: str) -> dict[str, Any]:
    """Convert one schema tree to the nullable encoding of ``version``."""
    return map_schema(schema, _to_v30 if is_v30(version) else _to_v31)


def transform_schemas(schemas: dict[str, Any], version: str) -> dict[str, Any]:
    return {name: transform_schema(schema, version) for name, schema in schemas.items()}


def transform_paths(paths: dict[str, Any], version: str) -> dict[str, Any]:
    return map_paths_schemas(paths, _to_v30 if is_v30(version) else _to_v31)


def transform_document(document: dict[str, Any], version: str) -> dict[str, Any]:
    """Convert a whole OpenAPI document and stamp the target version."""
    updated = {**document, "openapi": version}
    if isinstance(document.get("paths"), dict):
        updated["paths"] = transform_paths(document["paths"], version)

    components = document.get("components")
    if isinstance(components, dict) and isinstance(components.get("schemas"), dict):
        updated["components"] = {
            **components,
            "schemas": transform_schemas(components["schemas"], version),
        }
    return updated
