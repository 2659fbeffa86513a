"""Assemble OpenAPI operations from endpoint descriptors.

Each MethodDescriptor becomes one operation under paths[path][method].
Type text is mapped through type_mapper; filtering and base-path
prefixing happen before assembly.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from typing import Any

from .descriptors import MethodDescriptor, ParameterDescriptor, ResponseOverride
from .type_mapper import is_meaningful_type, map_type

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/json"

# Express-style ":id" segments
_COLON_PARAM = re.compile(r":([^/]+)")


def to_openapi_path(path: str) -> str:
    """Convert ``/users/:id`` to ``/users/{id}``; empty becomes ``/``."""
    return _COLON_PARAM.sub(r"{\1}", path) or "/"


def default_success_code(method: MethodDescriptor) -> int:
    """Explicit status code if set, else 201 for POST and 200 otherwise."""
    if method.http_code is not None:
        return method.http_code
    return 201 if method.http_method.upper() == "POST" else 200


def _is_success_with_content(status: int) -> bool:
    return 200 <= status < 300 and status != 204


def _content(content_types: Iterable[str], schema: dict[str, Any]) -> dict[str, Any]:
    return {content_type: {"schema": schema} for content_type in content_types}


def _request_content_types(method: MethodDescriptor) -> tuple[str, ...]:
    return method.consumes or (DEFAULT_CONTENT_TYPE,)


def _response_content_types(method: MethodDescriptor) -> tuple[str, ...]:
    return method.produces or (DEFAULT_CONTENT_TYPE,)


def _return_schema(method: MethodDescriptor) -> dict[str, Any] | None:
    if not is_meaningful_type(method.return_type):
        return None
    return map_type(method.return_type or "")


def _override_schema(response: ResponseOverride) -> dict[str, Any] | None:
    if not response.type_text:
        return None
    schema = map_type(response.type_text)
    if schema is None:
        return None
    if response.is_array:
        return {"type": "array", "items": schema}
    return schema


def _response_entry(
    description: str,
    schema: dict[str, Any] | None,
    status: int,
    content_types: tuple[str, ...],
) -> dict[str, Any]:
    entry: dict[str, Any] = {"description": description}
    if schema is not None and status != 204:
        entry["content"] = _content(content_types, schema)
    return entry


def build_responses(method: MethodDescriptor) -> dict[str, Any]:
    """Build the responses object for one endpoint.

    The return-type entry at the default success code is synthesized
    unless an override already covers a 2xx code other than 204; it sits
    alongside any declared error responses.
    """
    content_types = _response_content_types(method)
    return_schema = _return_schema(method)
    status = default_success_code(method)
    responses: dict[str, Any] = {}

    has_success_override = any(_is_success_with_content(r.status) for r in method.responses)
    if not method.responses:
        responses[str(status)] = _response_entry("", return_schema, status, content_types)
    elif not has_success_override and return_schema is not None:
        responses[str(status)] = _response_entry("", return_schema, status, content_types)

    for response in method.responses:
        schema = _override_schema(response)
        if schema is None and _is_success_with_content(response.status):
            schema = return_schema
        responses[str(response.status)] = _response_entry(
            response.description, schema, response.status, content_types
        )

    return responses


def build_parameter(param: ParameterDescriptor) -> dict[str, Any]:
    """Build one non-body parameter object."""
    schema = map_type(param.type_text) or {"type": "object"}
    if param.constraints:
        schema = {**schema, **param.constraints}
    return {
        "name": param.name,
        "in": param.location,
        "description": param.description or f"{param.location} parameter: {param.name}",
        # path parameters are always required in OpenAPI
        "required": True if param.location == "path" else param.required,
        "schema": schema,
    }


def build_request_body(
    body_params: list[ParameterDescriptor],
    content_types: tuple[str, ...],
) -> dict[str, Any] | None:
    """Merge every body parameter into one requestBody."""
    if not body_params:
        return None

    if len(body_params) == 1:
        param = body_params[0]
        schema = map_type(param.type_text) or {"type": "object"}
        description = param.description or f"Request body parameter: {param.name}"
    else:
        properties = {p.name: map_type(p.type_text) or {"type": "object"} for p in body_params}
        schema = {"type": "object", "properties": properties}
        required = [p.name for p in body_params if p.required]
        if required:
            schema["required"] = required
        description = "Request body parameters: " + ", ".join(p.name for p in body_params)

    return {
        "description": description,
        "required": any(p.required for p in body_params),
        "content": _content(content_types, schema),
    }


def build_security(method: MethodDescriptor) -> list[dict[str, list[str]]] | None:
    """Combine an endpoint's security decorators into one AND requirement."""
    if not method.security:
        return None
    combined: dict[str, list[str]] = {}
    for requirement in method.security:
        scopes = combined.setdefault(requirement.scheme, [])
        scopes.extend(s for s in requirement.scopes if s not in scopes)
    return [combined]


def build_operation(method: MethodDescriptor) -> dict[str, Any]:
    """Build the operation object for one endpoint."""
    body_params = [p for p in method.parameters if p.location == "body"]
    other_params = [p for p in method.parameters if p.location != "body"]

    operation: dict[str, Any] = {
        "operationId": method.operation_id or f"{method.controller_name}_{method.method_name}",
        "parameters": [build_parameter(p) for p in other_params],
    }

    request_body = build_request_body(body_params, _request_content_types(method))
    if request_body is not None:
        operation["requestBody"] = request_body

    operation["responses"] = build_responses(method)

    if method.summary is not None:
        operation["summary"] = method.summary
    if method.description is not None:
        operation["description"] = method.description
    if method.deprecated is not None:
        operation["deprecated"] = method.deprecated
    if method.tags:
        operation["tags"] = list(method.tags)

    security = build_security(method)
    if security is not None:
        operation["security"] = security

    return operation


def filter_methods(
    methods: Iterable[MethodDescriptor],
    exclude_decorators: Iterable[str] = (),
    path_filter: re.Pattern[str] | None = None,
) -> list[MethodDescriptor]:
    """Drop excluded endpoints and duplicate METHOD+path entries (first wins)."""
    excluded = set(exclude_decorators)
    seen: set[str] = set()
    kept: list[MethodDescriptor] = []

    for method in methods:
        if excluded and excluded.intersection(method.decorators):
            logger.debug("Excluding %s (decorator filter)", method.key)
            continue
        if path_filter is not None and not path_filter.search(method.path):
            logger.debug("Excluding %s (path filter)", method.key)
            continue
        # /users/:id and /users/{id} are the same endpoint
        key = f"{method.http_method.upper()}:{to_openapi_path(method.path)}"
        if key in seen:
            logger.debug("Skipping duplicate endpoint %s", method.key)
            continue
        seen.add(key)
        kept.append(method)

    return kept


def _prefix_path(path: str, base_path: str) -> str:
    prefix = base_path if base_path.startswith("/") else f"/{base_path}"
    prefix = prefix.rstrip("/")
    if path == "/":
        return prefix or "/"
    return f"{prefix}{path}" if path.startswith("/") else f"{prefix}/{path}"


def build_paths(
    methods: Iterable[MethodDescriptor],
    base_path: str | None = None,
) -> dict[str, Any]:
    """Build the paths object for all endpoints, in input order."""
    paths: dict[str, Any] = {}
    for method in methods:
        path = to_openapi_path(method.path)
        if base_path:
            path = _prefix_path(path, base_path)
        paths.setdefault(path, {})[method.http_method.lower()] = build_operation(method)

    logger.debug("Assembled %d paths", len(paths))
    return paths
