"""Endpoint descriptors produced by the source-analysis step."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

PARAMETER_LOCATIONS = ("path", "query", "header", "cookie", "body")


@dataclass(frozen=True)
class ParameterDescriptor:
    """One handler argument bound to a request part."""

    name: str
    location: str
    type_text: str
    required: bool = False
    description: str | None = None
    constraints: dict[str, Any] | None = None


@dataclass(frozen=True)
class ResponseOverride:
    """A response declared explicitly for one status code."""

    status: int
    description: str = ""
    type_text: str | None = None
    is_array: bool = False


@dataclass(frozen=True)
class SecurityDescriptor:
    """One security decorator: scheme name plus required scopes."""

    scheme: str
    scopes: tuple[str, ...] = ()


@dataclass(frozen=True)
class MethodDescriptor:
    """Everything known about one endpoint before OpenAPI assembly."""

    http_method: str
    path: str
    controller_name: str = ""
    method_name: str = ""
    parameters: tuple[ParameterDescriptor, ...] = ()
    return_type: str | None = None
    responses: tuple[ResponseOverride, ...] = ()
    http_code: int | None = None
    security: tuple[SecurityDescriptor, ...] = ()
    consumes: tuple[str, ...] = ()
    produces: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    operation_id: str | None = None
    summary: str | None = None
    description: str | None = None
    deprecated: bool | None = None
    decorators: tuple[str, ...] = field(default=())

    @property
    def key(self) -> str:
        return f"{self.http_method.upper()}:{self.path}"
