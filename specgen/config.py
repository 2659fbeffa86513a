"""Generator configuration: OpenAPI metadata, security and options."""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .loader import InputError, read_document

SUPPORTED_VERSIONS = ("3.0.3", "3.1.0", "3.2.0")
DEFAULT_VERSION = "3.0.3"
OUTPUT_FORMATS = ("json", "yaml")
SECURITY_SCHEME_TYPES = ("http", "apiKey", "oauth2", "openIdConnect")


class ConfigurationError(Exception):
    """Raised when the configuration file is invalid."""


@dataclass(frozen=True)
class SecuritySettings:
    """Global security requirements plus scheme definitions."""

    global_requirements: tuple[dict[str, list[str]], ...] = ()
    schemes: tuple[dict[str, Any], ...] = ()


@dataclass(frozen=True)
class OpenApiSettings:
    """Document-level OpenAPI metadata."""

    info: dict[str, Any]
    version: str = DEFAULT_VERSION
    servers: tuple[dict[str, Any], ...] = ()
    tags: tuple[dict[str, Any], ...] = ()
    security: SecuritySettings = field(default_factory=SecuritySettings)


@dataclass(frozen=True)
class GeneratorOptions:
    """Endpoint filtering and pipeline switches."""

    base_path: str | None = None
    exclude_decorators: tuple[str, ...] = ()
    path_filter: re.Pattern[str] | None = None
    extract_validation: bool = True


@dataclass(frozen=True)
class GeneratorConfig:
    """Complete generator configuration."""

    openapi: OpenApiSettings
    output: Path = Path("openapi.json")
    format: str = "json"
    options: GeneratorOptions = field(default_factory=GeneratorOptions)


def load_config(config_path: Path | str) -> GeneratorConfig:
    """Load and validate a JSON or YAML configuration file.

    A relative ``output`` is resolved against the config file's directory.
    """
    path = Path(config_path)
    try:
        parsed = read_document(path)
    except InputError as exc:
        raise ConfigurationError(str(exc)) from exc
    return parse_config(parsed, base_dir=path.parent)


def parse_config(data: Any, base_dir: Path | None = None) -> GeneratorConfig:
    """Validate already-decoded configuration data."""
    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise ConfigurationError("Configuration root must be a mapping.")

    output = Path(_optional_string(data.get("output"), "output") or "openapi.json")
    if base_dir is not None and not output.is_absolute():
        output = base_dir / output

    fmt = data.get("format", "json")
    if fmt not in OUTPUT_FORMATS:
        raise ConfigurationError(f"format must be one of {', '.join(OUTPUT_FORMATS)}.")

    return GeneratorConfig(
        openapi=_parse_openapi_section(data.get("openapi")),
        output=output,
        format=fmt,
        options=_parse_options_section(data.get("options")),
    )


def _parse_openapi_section(value: Any) -> OpenApiSettings:
    section = _require_mapping(value, "openapi")
    info = _require_mapping(section.get("info"), "openapi.info")
    _require_non_empty_string(info.get("title"), "openapi.info.title")
    _require_non_empty_string(info.get("version"), "openapi.info.version")

    version = section.get("version", DEFAULT_VERSION)
    if version not in SUPPORTED_VERSIONS:
        raise ConfigurationError(
            f"openapi.version must be one of {', '.join(SUPPORTED_VERSIONS)}."
        )

    return OpenApiSettings(
        info=dict(info),
        version=version,
        servers=_mapping_list(section.get("servers"), "openapi.servers"),
        tags=_mapping_list(section.get("tags"), "openapi.tags"),
        security=_parse_security_section(section.get("security")),
    )


def _parse_security_section(value: Any) -> SecuritySettings:
    if value is None:
        return SecuritySettings()
    section = _require_mapping(value, "openapi.security")

    requirements = []
    for index, entry in enumerate(_mapping_list(section.get("global"), "openapi.security.global")):
        requirement = {}
        for scheme, scopes in entry.items():
            requirement[str(scheme)] = [
                str(s) for s in _require_sequence(scopes, f"openapi.security.global[{index}].{scheme}")
            ]
        requirements.append(requirement)

    schemes = _mapping_list(section.get("schemes"), "openapi.security.schemes")
    for index, scheme in enumerate(schemes):
        label = f"openapi.security.schemes[{index}]"
        _require_non_empty_string(scheme.get("name"), f"{label}.name")
        if scheme.get("type") not in SECURITY_SCHEME_TYPES:
            raise ConfigurationError(
                f"{label}.type must be one of {', '.join(SECURITY_SCHEME_TYPES)}."
            )

    return SecuritySettings(global_requirements=tuple(requirements), schemes=schemes)


def _parse_options_section(value: Any) -> GeneratorOptions:
    if value is None:
        return GeneratorOptions()
    section = _require_mapping(value, "options")

    pattern = _optional_string(section.get("path_filter"), "options.path_filter")
    try:
        path_filter = re.compile(pattern) if pattern else None
    except re.error as exc:
        raise ConfigurationError(f"options.path_filter is not a valid regex: {exc}") from exc

    return GeneratorOptions(
        base_path=_optional_string(section.get("base_path"), "options.base_path"),
        exclude_decorators=tuple(
            str(d) for d in _require_sequence(section.get("exclude_decorators", []), "options.exclude_decorators")
        ),
        path_filter=path_filter,
        extract_validation=bool(section.get("extract_validation", True)),
    )


def _require_mapping(value: Any, label: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"{label} must be a mapping.")
    return value


def _require_sequence(value: Any, label: str) -> Sequence[Any]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise ConfigurationError(f"{label} must be a list.")
    return value


def _mapping_list(value: Any, label: str) -> tuple[dict[str, Any], ...]:
    if value is None:
        return ()
    items = _require_sequence(value, label)
    return tuple(dict(_require_mapping(item, f"{label}[{i}]")) for i, item in enumerate(items))


def _require_non_empty_string(value: Any, label: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError(f"{label} must be a non-empty string.")
    return value


def _optional_string(value: Any, label: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationError(f"{label} must be a string.")
    return value
