"""Schema $ref helpers and structural walking.

A schema slot is *structural* when it describes shape: parameter schemas,
request/response media schemas, and nested properties, items, composition
members and additionalProperties. Values under keys such as ``default`` or
``example`` are opaque data and are never walked.
"""

from __future__ import annotations

from typing import Any, Callable, Iterator

SCHEMA_REF_PREFIX = "#/components/schemas/"

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")

_COMPOSITION_KEYS = ("oneOf", "anyOf", "allOf")

SchemaFn = Callable[[dict[str, Any]], dict[str, Any]]


def ref_name(ref: str) -> str | None:
    """Return the schema name of a components/schemas ref, or None."""
    if ref.startswith(SCHEMA_REF_PREFIX):
        return ref[len(SCHEMA_REF_PREFIX):]
    return None


def to_ref(name: str) -> str:
    return f"{SCHEMA_REF_PREFIX}{name}"


def child_schemas(schema: dict[str, Any]) -> Iterator[dict[str, Any]]:
    """Yield the direct structural sub-schemas of a schema."""
    for prop in (schema.get("properties") or {}).values():
        if isinstance(prop, dict):
            yield prop
    items = schema.get("items")
    if isinstance(items, dict):
        yield items
    for key in _COMPOSITION_KEYS:
        for member in schema.get(key) or []:
            if isinstance(member, dict):
                yield member
    extra = schema.get("additionalProperties")
    if isinstance(extra, dict):
        yield extra


def iter_schema_refs(schema: dict[str, Any]) -> Iterator[str]:
    """Yield every structural $ref string inside a schema, depth first."""
    stack = [schema]
    while stack:
        node = stack.pop()
        ref = node.get("$ref")
        if isinstance(ref, str):
            yield ref
        # reversed so refs come out in document order
        stack.extend(reversed(list(child_schemas(node))))


def map_schema(schema: dict[str, Any], fn: SchemaFn) -> dict[str, Any]:
    """Rebuild a schema bottom-up, applying ``fn`` to every structural node.

    Children are rebuilt first, so ``fn`` always sees already-mapped
    sub-schemas. The input is never mutated.
    """
    updated = dict(schema)

    if isinstance(schema.get("properties"), dict):
        updated["properties"] = {
            key: map_schema(value, fn) if isinstance(value, dict) else value
            for key, value in schema["properties"].items()
        }
    if isinstance(schema.get("items"), dict):
        updated["items"] = map_schema(schema["items"], fn)
    for key in _COMPOSITION_KEYS:
        if isinstance(schema.get(key), list):
            updated[key] = [
                map_schema(member, fn) if isinstance(member, dict) else member
                for member in schema[key]
            ]
    if isinstance(schema.get("additionalProperties"), dict):
        updated["additionalProperties"] = map_schema(schema["additionalProperties"], fn)

    return fn(updated)


def rewrite_refs(schema: dict[str, Any], rewrite: Callable[[str], str]) -> dict[str, Any]:
    """Return a copy of ``schema`` with every structural $ref passed through ``rewrite``."""

    def _apply(node: dict[str, Any]) -> dict[str, Any]:
        ref = node.get("$ref")
        if isinstance(ref, str):
            new_ref = rewrite(ref)
            if new_ref != ref:
                node["$ref"] = new_ref
        return node

    return map_schema(schema, _apply)


def iter_operations(paths: dict[str, Any]) -> Iterator[tuple[str, str, dict[str, Any]]]:
    """Yield (path, method, operation) for every HTTP operation in a paths object."""
    for path, path_item in paths.items():
        for method, operation in path_item.items():
            if method in HTTP_METHODS and isinstance(operation, dict):
                yield path, method, operation


def _media_schemas(container: dict[str, Any]) -> Iterator[dict[str, Any]]:
    for media in (container.get("content") or {}).values():
        schema = media.get("schema")
        if isinstance(schema, dict):
            yield schema


def iter_operation_schemas(operation: dict[str, Any]) -> Iterator[dict[str, Any]]:
    """Yield the top-level schema slots of one operation."""
    for param in operation.get("parameters") or []:
        schema = param.get("schema")
        if isinstance(schema, dict):
            yield schema
    request_body = operation.get("requestBody")
    if isinstance(request_body, dict):
        yield from _media_schemas(request_body)
    for response in (operation.get("responses") or {}).values():
        if isinstance(response, dict):
            yield from _media_schemas(response)


def iter_paths_refs(paths: dict[str, Any]) -> Iterator[str]:
    """Yield every structural $ref reachable from a paths object."""
    for _path, _method, operation in iter_operations(paths):
        for schema in iter_operation_schemas(operation):
            yield from iter_schema_refs(schema)


def _map_media(container: dict[str, Any], fn: SchemaFn) -> dict[str, Any]:
    if not isinstance(container.get("content"), dict):
        return container
    content = {}
    for media_type, media in container["content"].items():
        if isinstance(media.get("schema"), dict):
            media = {**media, "schema": map_schema(media["schema"], fn)}
        content[media_type] = media
    return {**container, "content": content}


def map_operation_schemas(operation: dict[str, Any], fn: SchemaFn) -> dict[str, Any]:
    """Return a copy of an operation with ``fn`` mapped over every schema slot."""
    updated = dict(operation)
    if isinstance(operation.get("parameters"), list):
        updated["parameters"] = [
            {**param, "schema": map_schema(param["schema"], fn)}
            if isinstance(param.get("schema"), dict) else param
            for param in operation["parameters"]
        ]
    if isinstance(operation.get("requestBody"), dict):
        updated["requestBody"] = _map_media(operation["requestBody"], fn)
    if isinstance(operation.get("responses"), dict):
        updated["responses"] = {
            code: _map_media(response, fn) if isinstance(response, dict) else response
            for code, response in operation["responses"].items()
        }
    return updated


def map_paths_schemas(paths: dict[str, Any], fn: SchemaFn) -> dict[str, Any]:
    """Return a copy of a paths object with ``fn`` mapped over every schema slot.

    Path-level keys that are not HTTP methods are carried over untouched.
    """
    return {
        path: {
            method: map_operation_schemas(operation, fn)
            if method in HTTP_METHODS and isinstance(operation, dict) else operation
            for method, operation in path_item.items()
        }
        for path, path_item in paths.items()
    }


def rewrite_paths_refs(paths: dict[str, Any], rewrite: Callable[[str], str]) -> dict[str, Any]:
    """Return a copy of ``paths`` with every structural $ref passed through ``rewrite``."""

    def _apply(node: dict[str, Any]) -> dict[str, Any]:
        ref = node.get("$ref")
        if isinstance(ref, str):
            node["$ref"] = rewrite(ref)
        return node

    return map_paths_schemas(paths, _apply)
