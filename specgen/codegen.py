"""Write the generated document and render the run summary.

Serialization is JSON (sorted keys) or YAML; the summary is rendered from
templates/summary.txt.j2.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jinja2
import yaml

from .pipeline import GenerationResult
from .schema_merger import categorize_missing

TEMPLATE_DIR = Path(__file__).parent / "templates"

# Cap on "other" missing schemas listed in the summary
_MAX_OTHER_LISTED = 20


def _environment() -> jinja2.Environment:
    return jinja2.Environment(
        loader=jinja2.FileSystemLoader(str(TEMPLATE_DIR)),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def dump_document(document: dict[str, Any], fmt: str = "json") -> str:
    """Serialize a document with deterministic key order."""
    if fmt == "yaml":
        return yaml.safe_dump(
            document,
            sort_keys=True,
            default_flow_style=False,
            allow_unicode=True,
            width=float("inf"),
        )
    return json.dumps(document, indent=2, sort_keys=True, ensure_ascii=False) + "\n"


def write_document(document: dict[str, Any], output_path: Path, fmt: str = "json") -> Path:
    """Write the document, creating parent directories as needed."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(dump_document(document, fmt), encoding="utf-8")
    return output_path


def build_summary_context(result: GenerationResult, output_path: Path | None = None) -> dict[str, Any]:
    """Flatten a GenerationResult into template variables."""
    categories = categorize_missing(result.missing)
    return {
        "output_path": str(output_path) if output_path else None,
        "openapi_version": result.document.get("openapi"),
        "path_count": result.path_count,
        "operation_count": result.operation_count,
        "schema_count": result.schema_count,
        "renames": result.renames,
        "missing": result.missing,
        "broken_ref_count": sum(result.missing.values()),
        "categories": [
            ("Primitive types (should not be $refs)", categories.primitives),
            ("Union types (need special handling)", categories.union_types),
            ("Query/Path params (may need schema coverage)", categories.params),
            ("Other missing schemas", categories.other[:_MAX_OTHER_LISTED]),
        ],
        "other_overflow": max(0, len(categories.other) - _MAX_OTHER_LISTED),
    }


def render_summary(result: GenerationResult, output_path: Path | None = None) -> str:
    """Render the human-readable run summary."""
    template = _environment().get_template("summary.txt.j2")
    return template.render(**build_summary_context(result, output_path))


def generate(result: GenerationResult, output_path: Path, fmt: str = "json") -> str:
    """Write the document and return the rendered summary."""
    write_document(result.document, output_path, fmt)
    return render_summary(result, output_path)
