"""Map TypeScript type text to OpenAPI schema nodes.

Handles:
- Inline object literals ({ id: number; name?: string })
- Unions, with undefined dropped and null folded into nullable
- Primitive keywords (string, number, boolean, Date)
- No-content markers (void, undefined, never, null)
- Binary markers (Buffer, StreamableFile, streams)
- Arrays (T[], Array<T>, ReadonlyArray<T>)
- Record<string, T> (approximated as a bare object)
- Named types and generic instantiations ($ref, text kept verbatim)

Type text arrives with Promise/import wrappers already stripped. Unknown
shapes fall back to ``{"type": "object"}``; this module never raises.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from .refs import to_ref

logger = logging.getLogger(__name__)

# Keyword -> schema. Matched case-insensitively.
_PRIMITIVES: dict[str, dict[str, Any]] = {
    "string": {"type": "string"},
    "number": {"type": "number"},
    "boolean": {"type": "boolean"},
    "date": {"type": "string", "format": "date-time"},
    "unknown": {"type": "object"},
    "any": {"type": "object"},
}

# Types that mean "no response body"
NO_CONTENT_TYPES = frozenset({"void", "undefined", "never", "null"})

_BINARY_TYPES = frozenset({"Buffer", "StreamableFile", "Readable", "ReadableStream"})

_OPENERS = {"{": "}", "<": ">", "(": ")", "[": "]"}
_CLOSERS = {v: k for k, v in _OPENERS.items()}

_ARRAY_GENERIC = re.compile(r"^(?:Readonly)?Array<(.+)>$", re.DOTALL)
_RECORD = re.compile(r"^Record<\s*string\s*,(.+)>$", re.DOTALL)
_NAMED = re.compile(r"^[A-Z][A-Za-z0-9_]*(<.+>)?$", re.DOTALL)
_READONLY = re.compile(r"^readonly\s+")


def _fallback() -> dict[str, Any]:
    return {"type": "object"}


def _split_top_level(text: str, separators: str) -> list[str]:
    """Split on any single-char separator that sits outside all brackets."""
    parts: list[str] = []
    current: list[str] = []
    depth = 0
    for char in text:
        if char in _OPENERS:
            depth += 1
        elif char in _CLOSERS and depth > 0:
            # skip the '>' of an arrow '=>'
            if not (char == ">" and current and current[-1] == "="):
                depth -= 1
        elif char in separators and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(char)
    parts.append("".join(current))
    return parts


def _split_union(text: str) -> list[str]:
    """Split ``A | B`` on top-level pipes; a single member means no union."""
    members = [m.strip() for m in _split_top_level(text, "|")]
    return [m for m in members if m]


def _is_balanced(text: str) -> bool:
    depth = 0
    previous = ""
    for char in text:
        if char in _OPENERS:
            depth += 1
        elif char in _CLOSERS and not (char == ">" and previous == "="):
            depth -= 1
            if depth < 0:
                return False
        previous = char
    return depth == 0


def _unwrap_parens(text: str) -> str:
    """Strip redundant outer parentheses: ``(A | B)`` -> ``A | B``."""
    while text.startswith("(") and text.endswith(")") and _is_balanced(text[1:-1]):
        text = text[1:-1].strip()
    return text


def _member_name(raw: str) -> tuple[str, bool]:
    """Return (name, optional) for an inline object member key."""
    name = _READONLY.sub("", raw.strip())
    optional = name.endswith("?")
    if optional:
        name = name[:-1].strip()
    if len(name) >= 2 and name[0] == name[-1] and name[0] in "'\"":
        name = name[1:-1]
    return name, optional


def _map_inline_object(text: str) -> dict[str, Any]:
    """Map ``{ a: T; b?: U }`` to an object schema."""
    body = text[1:-1].strip()
    properties: dict[str, Any] = {}
    required: list[str] = []

    for part in _split_top_level(body, ";,"):
        part = part.strip()
        colon = part.find(":")
        if colon == -1:
            continue
        name, optional = _member_name(part[:colon])
        member_type = part[colon + 1:].strip()
        if not name or not member_type:
            continue

        properties[name] = map_type(member_type) or _fallback()
        if not optional:
            required.append(name)

    schema: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


def _make_nullable(schema: dict[str, Any]) -> dict[str, Any]:
    """Attach 3.0-style nullability; refs cannot carry siblings, so wrap them."""
    if "$ref" in schema:
        return {"allOf": [schema], "nullable": True}
    return {**schema, "nullable": True}


def _map_union(members: list[str]) -> dict[str, Any] | None:
    nullable = "null" in members
    remaining = [m for m in members if m not in ("undefined", "null")]

    schemas = [s for s in (map_type(m) for m in remaining) if s is not None]
    if not schemas:
        return None
    if len(schemas) == 1:
        return _make_nullable(schemas[0]) if nullable else schemas[0]

    union: dict[str, Any] = {"oneOf": schemas}
    if nullable:
        union["nullable"] = True
    return union


def map_type(type_text: str) -> dict[str, Any] | None:
    """Map a type expression to a schema node.

    Returns None for no-content types (void, undefined, never, null); the
    caller is expected to omit ``content`` rather than emit a placeholder.
    """
    text = _unwrap_parens(type_text.strip())
    if not text:
        return _fallback()

    if text.startswith("{") and text.endswith("}") and _is_balanced(text[1:-1]):
        return _map_inline_object(text)

    members = _split_union(text)
    if len(members) > 1:
        return _map_union(members)

    lowered = text.lower()
    if lowered in NO_CONTENT_TYPES:
        return None
    if lowered in _PRIMITIVES:
        return dict(_PRIMITIVES[lowered])

    if text in _BINARY_TYPES:
        return {"type": "string", "format": "binary"}

    if text.endswith("[]"):
        item_type = text[:-2]
        return {"type": "array", "items": map_type(item_type) or _fallback()}

    array_match = _ARRAY_GENERIC.match(text)
    if array_match and _is_balanced(array_match.group(1)):
        return {"type": "array", "items": map_type(array_match.group(1)) or _fallback()}

    if _RECORD.match(text):
        return {"type": "object"}

    if _NAMED.match(text) and _is_balanced(text):
        return {"$ref": to_ref(text)}

    logger.debug("Unrecognized type text %r, falling back to object", text)
    return _fallback()


def is_meaningful_type(type_text: str | None) -> bool:
    """True when a return type describes a response body."""
    if not type_text or not type_text.strip():
        return False
    return type_text.strip().lower() not in ("void", "undefined", "never")
