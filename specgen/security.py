"""Security requirements and scheme definitions.

Requirement lists follow OpenAPI semantics: entries are alternatives (OR),
schemes within one entry must all be satisfied (AND).
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from .refs import HTTP_METHODS


def _merge_requirements(requirements: Iterable[dict[str, list[str]]]) -> dict[str, list[str]]:
    """AND every scheme of every requirement into one object, scopes de-duplicated."""
    merged: dict[str, list[str]] = {}
    for requirement in requirements:
        for scheme, scopes in requirement.items():
            existing = merged.setdefault(scheme, [])
            existing.extend(s for s in scopes if s not in existing)
    return merged


def merge_security(
    paths: dict[str, Any],
    global_security: Iterable[dict[str, list[str]]] | None,
) -> dict[str, Any]:
    """Combine decorator security with the global requirement list.

    Operations without their own security inherit the global list as-is
    (by omission). Operations with their own security end up with a single
    requirement holding every global scheme plus their own; the decorators
    add to global security rather than replacing it.
    """
    global_requirements = list(global_security or [])
    if not global_requirements:
        return paths

    merged_paths: dict[str, Any] = {}
    for path, path_item in paths.items():
        merged_item = {}
        for method, operation in path_item.items():
            if method in HTTP_METHODS and isinstance(operation, dict) and operation.get("security"):
                combined = _merge_requirements([*global_requirements, *operation["security"]])
                operation = {**operation, "security": [combined]}
            merged_item[method] = operation
        merged_paths[path] = merged_item
    return merged_paths


def _build_flow(flow: dict[str, Any], auth_url: bool, token_url: bool) -> dict[str, Any]:
    built: dict[str, Any] = {}
    if auth_url and flow.get("authorizationUrl"):
        built["authorizationUrl"] = flow["authorizationUrl"]
    if token_url and flow.get("tokenUrl"):
        built["tokenUrl"] = flow["tokenUrl"]
    if flow.get("refreshUrl"):
        built["refreshUrl"] = flow["refreshUrl"]
    built["scopes"] = dict(flow.get("scopes") or {})
    return built


# flow name -> (uses authorizationUrl, uses tokenUrl)
_OAUTH2_FLOWS = {
    "implicit": (True, False),
    "password": (False, True),
    "clientCredentials": (False, True),
    "authorizationCode": (True, True),
}


def build_security_scheme(config: dict[str, Any]) -> dict[str, Any]:
    """Convert one configured scheme into an OpenAPI security scheme object."""
    scheme_type = config["type"]
    scheme: dict[str, Any] = {"type": scheme_type}
    if config.get("description"):
        scheme["description"] = config["description"]

    if scheme_type == "http":
        for key in ("scheme", "bearerFormat"):
            if config.get(key):
                scheme[key] = config[key]
    elif scheme_type == "apiKey":
        if config.get("in"):
            scheme["in"] = config["in"]
        if config.get("parameterName"):
            scheme["name"] = config["parameterName"]
    elif scheme_type == "oauth2":
        flows = config.get("flows") or {}
        built = {
            name: _build_flow(flows[name], *urls)
            for name, urls in _OAUTH2_FLOWS.items()
            if flows.get(name)
        }
        if built:
            scheme["flows"] = built
    elif scheme_type == "openIdConnect":
        if config.get("openIdConnectUrl"):
            scheme["openIdConnectUrl"] = config["openIdConnectUrl"]

    return scheme


def build_security_schemes(configs: Iterable[dict[str, Any]]) -> dict[str, Any]:
    """Build components.securitySchemes keyed by scheme name."""
    return {config["name"]: build_security_scheme(config) for config in configs}
