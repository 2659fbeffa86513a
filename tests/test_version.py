"""Tests for the version module."""

import copy

from specgen.version import is_v30, transform_document, transform_schema

_REF = {"$ref": "#/components/schemas/User"}
_NULL = {"type": "null"}


class TestToV31:
    """3.0 nullable markers become 3.1 null types."""

    def test_typed_nullable(self):
        assert transform_schema({"type": "string", "nullable": True}, "3.1.0") == {
            "type": ["string", "null"],
        }

    def test_nullable_allof_wrapped_in_anyof(self):
        schema = {"allOf": [_REF], "nullable": True, "description": "owner"}
        assert transform_schema(schema, "3.1.0") == {
            "anyOf": [{"allOf": [_REF]}, _NULL],
            "description": "owner",
        }

    def test_nullable_oneof_gets_null_member(self):
        schema = {"oneOf": [{"type": "string"}, {"type": "number"}], "nullable": True}
        assert transform_schema(schema, "3.1.0") == {
            "oneOf": [{"type": "string"}, {"type": "number"}, _NULL],
        }

    def test_nullable_bare_ref(self):
        assert transform_schema({**_REF, "nullable": True}, "3.1.0") == {"anyOf": [_REF, _NULL]}

    def test_nullable_without_type_untouched(self):
        schema = {"nullable": True, "description": "anything"}
        assert transform_schema(schema, "3.1.0") == schema

    def test_nullable_false_left_alone(self):
        schema = {"type": "string", "nullable": False}
        assert transform_schema(schema, "3.1.0") == schema

    def test_nested_properties_converted(self):
        schema = {
            "type": "object",
            "properties": {
                "name": {"type": "string", "nullable": True},
                "tags": {"type": "array", "items": {"type": "string", "nullable": True}},
            },
        }
        result = transform_schema(schema, "3.2.0")
        assert result["properties"]["name"] == {"type": ["string", "null"]}
        assert result["properties"]["tags"]["items"] == {"type": ["string", "null"]}

    def test_input_not_mutated(self):
        schema = {"type": "string", "nullable": True}
        transform_schema(schema, "3.1.0")
        assert schema == {"type": "string", "nullable": True}


class TestToV30:
    """3.1 null types become 3.0 nullable markers."""

    def test_type_array(self):
        assert transform_schema({"type": ["integer", "null"]}, "3.0.3") == {
            "type": "integer",
            "nullable": True,
        }

    def test_anyof_allof_unwrapped(self):
        schema = {"anyOf": [{"allOf": [_REF]}, _NULL]}
        assert transform_schema(schema, "3.0.3") == {"allOf": [_REF], "nullable": True}

    def test_anyof_ref_unwrapped(self):
        assert transform_schema({"anyOf": [_REF, _NULL]}, "3.0.3") == {
            "allOf": [_REF],
            "nullable": True,
        }

    def test_oneof_null_member_removed(self):
        schema = {"oneOf": [{"type": "string"}, {"type": "number"}, _NULL]}
        assert transform_schema(schema, "3.0.3") == {
            "oneOf": [{"type": "string"}, {"type": "number"}],
            "nullable": True,
        }


class TestRoundTrip:
    """Converting forth and back restores the original."""

    _SCHEMAS = [
        {"type": "string", "nullable": True},
        {"allOf": [_REF], "nullable": True},
        {"oneOf": [{"type": "string"}, _REF], "nullable": True},
        {"anyOf": [{"type": "string"}, {"type": "number"}], "nullable": True},
        {
            "type": "object",
            "properties": {"owner": {"allOf": [_REF], "nullable": True, "description": "x"}},
        },
    ]

    def test_v30_to_v31_and_back(self):
        for schema in self._SCHEMAS:
            there = transform_schema(schema, "3.1.0")
            assert transform_schema(there, "3.0.3") == schema, schema

    def test_idempotent_v31(self):
        for schema in self._SCHEMAS:
            once = transform_schema(schema, "3.1.0")
            assert transform_schema(once, "3.1.0") == once

    def test_idempotent_v30(self):
        for schema in self._SCHEMAS:
            assert transform_schema(schema, "3.0.3") == schema


class TestDocument:
    """Whole-document conversion."""

    def _document(self) -> dict:
        return {
            "openapi": "3.0.3",
            "info": {"title": "T", "version": "1"},
            "paths": {
                "/users/{id}": {
                    "get": {
                        "parameters": [
                            {"name": "id", "in": "path", "required": True, "schema": {"type": "string"}},
                        ],
                        "responses": {
                            "200": {
                                "description": "",
                                "content": {
                                    "application/json": {"schema": {"allOf": [_REF], "nullable": True}},
                                },
                            },
                        },
                    },
                },
            },
            "components": {
                "schemas": {"User": {"type": "object", "properties": {"nick": {"type": "string", "nullable": True}}}},
                "securitySchemes": {"bearer": {"type": "http", "scheme": "bearer"}},
            },
        }

    def test_version_stamped_and_converted(self):
        document = self._document()
        result = transform_document(document, "3.1.0")
        assert result["openapi"] == "3.1.0"
        media = result["paths"]["/users/{id}"]["get"]["responses"]["200"]["content"]["application/json"]
        assert media["schema"] == {"anyOf": [{"allOf": [_REF]}, _NULL]}
        assert result["components"]["schemas"]["User"]["properties"]["nick"] == {"type": ["string", "null"]}
        assert result["components"]["securitySchemes"] == document["components"]["securitySchemes"]

    def test_document_round_trip(self):
        document = self._document()
        original = copy.deepcopy(document)
        back = transform_document(transform_document(document, "3.1.0"), "3.0.3")
        assert back == original
        assert document == original

    def test_is_v30(self):
        assert is_v30("3.0.3")
        assert not is_v30("3.1.0")
        assert not is_v30("3.2.0")
