"""Run the generation pipeline and assemble the OpenAPI document.

    descriptors -> build_paths -> merge_security
    paths + pool -> merge_schemas -> collapse_aliases -> normalize_names
                 -> merge_validation_constraints -> version transform

Each stage returns a new snapshot; nothing is mutated in place.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from .alias_collapser import collapse_aliases
from .config import GeneratorConfig
from .constraints import merge_validation_constraints
from .loader import ExtractionBundle
from .naming import normalize_names
from .operations import build_paths, filter_methods
from .refs import iter_operations
from .schema_merger import find_unresolved_refs, merge_schemas
from .security import build_security_schemes, merge_security
from .version import is_v30, transform_paths, transform_schemas

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationResult:
    """The assembled document plus bookkeeping for reporting."""

    document: dict[str, Any]
    missing: dict[str, int] = field(default_factory=dict)
    renames: dict[str, str] = field(default_factory=dict)

    @property
    def path_count(self) -> int:
        return len(self.document.get("paths", {}))

    @property
    def operation_count(self) -> int:
        return sum(1 for _ in iter_operations(self.document.get("paths", {})))

    @property
    def schema_count(self) -> int:
        return len(self.document.get("components", {}).get("schemas", {}))


def process_schemas(
    paths: dict[str, Any],
    pool: dict[str, Any],
    constraints: dict[str, dict[str, dict[str, Any]]] | None = None,
    required: dict[str, list[str]] | None = None,
    version: str = "3.0.3",
) -> tuple[dict[str, Any], dict[str, Any], dict[str, str]]:
    """Run the schema stages; returns (paths, schemas, renames)."""
    merged = merge_schemas(paths, pool)
    collapsed = collapse_aliases(merged.paths, merged.schemas)
    normalized = normalize_names(collapsed.paths, collapsed.schemas)

    schemas = normalized.schemas
    if constraints or required:
        schemas = merge_validation_constraints(schemas, constraints or {}, required)

    paths = normalized.paths
    if not is_v30(version):
        paths = transform_paths(paths, version)
        schemas = transform_schemas(schemas, version)

    return paths, schemas, normalized.renames


def generate_document(bundle: ExtractionBundle, config: GeneratorConfig) -> GenerationResult:
    """Build the full OpenAPI document from an extraction bundle."""
    openapi = config.openapi
    options = config.options

    methods = filter_methods(
        bundle.methods,
        exclude_decorators=options.exclude_decorators,
        path_filter=options.path_filter,
    )
    paths = build_paths(methods, base_path=options.base_path)
    paths = merge_security(paths, openapi.security.global_requirements)

    paths, schemas, renames = process_schemas(
        paths,
        bundle.schemas,
        constraints=bundle.constraints if options.extract_validation else None,
        required=bundle.required if options.extract_validation else None,
        version=openapi.version,
    )

    components: dict[str, Any] = {}
    if schemas:
        components["schemas"] = schemas
    security_schemes = build_security_schemes(openapi.security.schemes)
    if security_schemes:
        components["securitySchemes"] = security_schemes

    document: dict[str, Any] = {
        "openapi": openapi.version,
        "info": dict(openapi.info),
        "servers": list(openapi.servers),
        "paths": paths,
    }
    if components:
        document["components"] = components
    document["tags"] = list(openapi.tags)
    if openapi.security.global_requirements:
        document["security"] = [dict(r) for r in openapi.security.global_requirements]

    missing = find_unresolved_refs(paths, schemas)
    logger.info(
        "Generated %d paths, %d schemas (%d unresolved refs)",
        len(paths), len(schemas), sum(missing.values()),
    )
    return GenerationResult(document=document, missing=missing, renames=renames)
