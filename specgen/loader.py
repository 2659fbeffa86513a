"""Load the extraction bundle handed over by the source-analysis step.

The bundle is one JSON or YAML file with four sections:

    methods      list of endpoint descriptors
    schemas      raw schema pool (name -> schema)
    constraints  class -> property -> validation constraints
    required     class -> list of required property names
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .descriptors import (
    PARAMETER_LOCATIONS,
    MethodDescriptor,
    ParameterDescriptor,
    ResponseOverride,
    SecurityDescriptor,
)


class InputError(Exception):
    """Raised when the extraction bundle is unreadable or malformed."""


@dataclass(frozen=True)
class ExtractionBundle:
    """Fully materialized pipeline input."""

    methods: tuple[MethodDescriptor, ...] = ()
    schemas: dict[str, Any] = field(default_factory=dict)
    constraints: dict[str, dict[str, dict[str, Any]]] = field(default_factory=dict)
    required: dict[str, list[str]] = field(default_factory=dict)


def read_document(path: Path | str) -> Any:
    """Read a JSON or YAML file, picking the parser by suffix."""
    source = Path(path)
    if not source.exists():
        raise InputError(f"File not found: {source}")
    text = source.read_text(encoding="utf-8")
    try:
        if source.suffix.lower() in (".yaml", ".yml"):
            return yaml.safe_load(text)
        return json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise InputError(f"Failed to parse {source}: {exc}") from exc


def load_bundle(path: Path | str) -> ExtractionBundle:
    """Load and validate an extraction bundle from disk."""
    return parse_bundle(read_document(path))


def parse_bundle(data: Any) -> ExtractionBundle:
    """Build an ExtractionBundle from already-decoded data."""
    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise InputError("Bundle root must be a mapping.")

    methods = tuple(
        parse_method(entry, index)
        for index, entry in enumerate(_sequence(data.get("methods"), "methods"))
    )
    schemas = _mapping(data.get("schemas"), "schemas")
    constraints = _mapping(data.get("constraints"), "constraints")
    required = {
        name: [str(prop) for prop in _sequence(props, f"required.{name}")]
        for name, props in _mapping(data.get("required"), "required").items()
    }
    return ExtractionBundle(
        methods=methods,
        schemas=dict(schemas),
        constraints={name: dict(props) for name, props in constraints.items()},
        required=required,
    )


def parse_method(entry: Any, index: int = 0) -> MethodDescriptor:
    """Build a MethodDescriptor from one bundle entry."""
    label = f"methods[{index}]"
    item = _mapping(entry, label)
    http_method = item.get("http_method") or item.get("method")
    path = item.get("path")
    if not isinstance(http_method, str) or not http_method:
        raise InputError(f"{label}.http_method must be a non-empty string.")
    if not isinstance(path, str):
        raise InputError(f"{label}.path must be a string.")

    return MethodDescriptor(
        http_method=http_method.upper(),
        path=path,
        controller_name=str(item.get("controller_name", "")),
        method_name=str(item.get("method_name", "")),
        parameters=tuple(
            _parse_parameter(p, f"{label}.parameters[{i}]")
            for i, p in enumerate(_sequence(item.get("parameters"), f"{label}.parameters"))
        ),
        return_type=item.get("return_type"),
        responses=tuple(
            _parse_response(r, f"{label}.responses[{i}]")
            for i, r in enumerate(_sequence(item.get("responses"), f"{label}.responses"))
        ),
        http_code=_optional_int(item.get("http_code"), f"{label}.http_code"),
        security=tuple(
            _parse_security(s, f"{label}.security[{i}]")
            for i, s in enumerate(_sequence(item.get("security"), f"{label}.security"))
        ),
        consumes=_strings(item.get("consumes"), f"{label}.consumes"),
        produces=_strings(item.get("produces"), f"{label}.produces"),
        tags=_strings(item.get("tags"), f"{label}.tags"),
        operation_id=item.get("operation_id"),
        summary=item.get("summary"),
        description=item.get("description"),
        deprecated=item.get("deprecated"),
        decorators=_strings(item.get("decorators"), f"{label}.decorators"),
    )


def _parse_parameter(entry: Any, label: str) -> ParameterDescriptor:
    item = _mapping(entry, label)
    name = item.get("name")
    location = item.get("location", "query")
    if not isinstance(name, str) or not name:
        raise InputError(f"{label}.name must be a non-empty string.")
    if location not in PARAMETER_LOCATIONS:
        raise InputError(f"{label}.location must be one of {', '.join(PARAMETER_LOCATIONS)}.")
    constraints = item.get("constraints")
    return ParameterDescriptor(
        name=name,
        location=location,
        type_text=str(item.get("type_text") or item.get("type") or "string"),
        required=bool(item.get("required", False)),
        description=item.get("description"),
        constraints=dict(_mapping(constraints, f"{label}.constraints")) if constraints else None,
    )


def _parse_response(entry: Any, label: str) -> ResponseOverride:
    item = _mapping(entry, label)
    status = _optional_int(item.get("status"), f"{label}.status")
    if status is None:
        raise InputError(f"{label}.status is required.")
    return ResponseOverride(
        status=status,
        description=str(item.get("description") or ""),
        type_text=item.get("type_text") or item.get("type"),
        is_array=bool(item.get("is_array", False)),
    )


def _parse_security(entry: Any, label: str) -> SecurityDescriptor:
    item = _mapping(entry, label)
    scheme = item.get("scheme")
    if not isinstance(scheme, str) or not scheme:
        raise InputError(f"{label}.scheme must be a non-empty string.")
    return SecurityDescriptor(scheme=scheme, scopes=_strings(item.get("scopes"), f"{label}.scopes"))


def _mapping(value: Any, label: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise InputError(f"{label} must be a mapping.")
    return value


def _sequence(value: Any, label: str) -> Sequence[Any]:
    if value is None:
        return ()
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise InputError(f"{label} must be a list.")
    return value


def _strings(value: Any, label: str) -> tuple[str, ...]:
    return tuple(str(v) for v in _sequence(value, label))


def _optional_int(value: Any, label: str) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise InputError(f"{label} must be an integer.") from exc
