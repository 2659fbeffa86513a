"""Tests for the constraints module."""

from specgen.constraints import apply_constraints, merge_validation_constraints


class TestApplyConstraints:

    def test_constraints_merged_onto_property(self):
        schema = {"type": "object", "properties": {"email": {"type": "string"}}}
        result = apply_constraints(schema, {"email": {"format": "email", "maxLength": 255}})
        assert result["properties"]["email"] == {"type": "string", "format": "email", "maxLength": 255}

    def test_explicit_type_overrides_inferred(self):
        schema = {"type": "object", "properties": {"age": {"type": "number"}}}
        result = apply_constraints(schema, {"age": {"type": "integer", "minimum": 0}})
        assert result["properties"]["age"] == {"type": "integer", "minimum": 0}

    def test_unknown_property_ignored(self):
        schema = {"type": "object", "properties": {"a": {"type": "string"}}}
        result = apply_constraints(schema, {"b": {"minLength": 1}})
        assert result["properties"] == {"a": {"type": "string"}}

    def test_required_union(self):
        schema = {"type": "object", "properties": {}, "required": ["id"]}
        result = apply_constraints(schema, {}, ["email", "id"])
        assert result["required"] == ["id", "email"]

    def test_input_not_mutated(self):
        schema = {"type": "object", "properties": {"a": {"type": "string"}}}
        apply_constraints(schema, {"a": {"minLength": 1}}, ["a"])
        assert schema == {"type": "object", "properties": {"a": {"type": "string"}}}


class TestMergeValidationConstraints:

    def test_only_constrained_schemas_change(self):
        untouched = {"type": "object"}
        schemas = {
            "CreateUserDto": {"type": "object", "properties": {"email": {"type": "string"}}},
            "Other": untouched,
        }
        result = merge_validation_constraints(
            schemas,
            {"CreateUserDto": {"email": {"format": "email"}}},
            {"CreateUserDto": ["email"]},
        )
        assert result["CreateUserDto"] == {
            "type": "object",
            "properties": {"email": {"type": "string", "format": "email"}},
            "required": ["email"],
        }
        assert result["Other"] is untouched

    def test_constraints_for_missing_schema_ignored(self):
        result = merge_validation_constraints({}, {"Gone": {"a": {"minimum": 1}}})
        assert result == {}
