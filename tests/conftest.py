"""Shared fixtures: a small extraction bundle and config on disk."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest


# ---------------------------------------------------------------------------
# Raw input data
# ---------------------------------------------------------------------------

@pytest.fixture
def bundle_data() -> dict[str, Any]:
    """An extraction bundle covering refs, aliases, placeholders and constraints."""
    return {
        "methods": [
            {
                "http_method": "GET",
                "path": "/users/:id",
                "controller_name": "UserController",
                "method_name": "findOne",
                "parameters": [
                    {"name": "id", "location": "path", "type_text": "string", "required": False},
                ],
                "return_type": "UserDto | null",
                "tags": ["users"],
            },
            {
                "http_method": "POST",
                "path": "/users",
                "controller_name": "UserController",
                "method_name": "create",
                "parameters": [
                    {"name": "body", "location": "body", "type_text": "CreateUserDto", "required": True},
                ],
                "return_type": "UserDto",
                "security": [{"scheme": "oauth2", "scopes": ["write"]}],
                "tags": ["users"],
            },
            {
                "http_method": "GET",
                "path": "/rules",
                "controller_name": "RuleController",
                "method_name": "list",
                "return_type": "VulnerabilityRules[]",
            },
            {
                "http_method": "DELETE",
                "path": "/internal/cache",
                "controller_name": "AdminController",
                "method_name": "flush",
                "return_type": "void",
                "decorators": ["Internal"],
            },
        ],
        "schemas": {
            "UserDto": {
                "type": "object",
                "properties": {
                    "id": {"type": "string"},
                    "profile": {"$ref": "#/components/schemas/ProfileAlias"},
                },
                "required": ["id"],
            },
            "ProfileAlias": {"$ref": "#/components/schemas/Profile", "description": "alias"},
            "Profile": {"type": "object", "properties": {"bio": {"type": "string"}}},
            "CreateUserDto": {
                "type": "object",
                "properties": {"email": {"type": "string"}, "age": {"type": "number"}},
            },
            "VulnerabilityRules": {
                "type": "object",
                "properties": {
                    "namespaceLabels": {"$ref": "#/components/schemas/SelectRule<structure-123-45>"},
                },
            },
            "SelectRule<structure-123-45>": {
                "type": "object",
                "properties": {"match": {"$ref": "#/components/schemas/structure-123-45"}},
            },
            "structure-123-45": {"type": "object", "properties": {"key": {"type": "string"}}},
            "NamespaceLabels": {"type": "string"},
            "Orphan": {"type": "object"},
        },
        "constraints": {"CreateUserDto": {"email": {"format": "email"}, "age": {"minimum": 0}}},
        "required": {"CreateUserDto": ["email"]},
    }


@pytest.fixture
def config_data() -> dict[str, Any]:
    return {
        "output": "out/openapi.json",
        "openapi": {
            "info": {"title": "Users API", "version": "1.0.0"},
            "servers": [{"url": "https://api.example.com"}],
            "tags": [{"name": "users"}],
            "security": {
                "global": [{"bearer": []}],
                "schemes": [
                    {"name": "bearer", "type": "http", "scheme": "bearer", "bearerFormat": "JWT"},
                    {
                        "name": "oauth2",
                        "type": "oauth2",
                        "flows": {
                            "clientCredentials": {
                                "tokenUrl": "https://auth.example.com/token",
                                "scopes": {"write": "Write access"},
                            },
                        },
                    },
                ],
            },
        },
        "options": {"exclude_decorators": ["Internal"]},
    }


# ---------------------------------------------------------------------------
# Files on disk
# ---------------------------------------------------------------------------

@pytest.fixture
def write_json(tmp_path: Path) -> Callable[[str, Any], Path]:
    """Return a helper that writes JSON into tmp_path and returns the path."""
    def _write(name: str, data: Any) -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path
    return _write
