"""Tests for the alias_collapser module."""

import copy

from specgen.alias_collapser import collapse_aliases, is_alias_schema, resolve_alias_targets


def _ref(name: str) -> dict:
    return {"$ref": f"#/components/schemas/{name}"}


def _paths(name: str) -> dict:
    return {
        "/x": {
            "get": {
                "parameters": [],
                "responses": {"200": {"description": "", "content": {"application/json": {"schema": _ref(name)}}}},
            },
        },
    }


def _response_ref(paths: dict) -> str:
    return paths["/x"]["get"]["responses"]["200"]["content"]["application/json"]["schema"]["$ref"]


class TestIsAlias:
    """Alias detection."""

    def test_plain_ref(self):
        assert is_alias_schema(_ref("User"))

    def test_ref_with_description(self):
        assert is_alias_schema({**_ref("User"), "description": "A user"})

    def test_ref_with_nullable_is_not_alias(self):
        assert not is_alias_schema({**_ref("User"), "nullable": True})

    def test_object_is_not_alias(self):
        assert not is_alias_schema({"type": "object"})


class TestCollapse:
    """Alias chains collapse to their final target."""

    def test_description_alias_collapsed(self):
        schemas = {
            "UserAlias": {**_ref("User"), "description": "alias"},
            "User": {"type": "object"},
        }
        result = collapse_aliases(_paths("UserAlias"), schemas)
        assert "UserAlias" not in result.schemas
        assert _response_ref(result.paths) == "#/components/schemas/User"

    def test_nullable_ref_not_collapsed(self):
        schemas = {
            "MaybeUser": {**_ref("User"), "nullable": True},
            "User": {"type": "object"},
        }
        result = collapse_aliases(_paths("MaybeUser"), schemas)
        assert result.schemas == schemas

    def test_multi_hop_chain(self):
        schemas = {
            "A": _ref("B"),
            "B": _ref("C"),
            "C": {"type": "object", "properties": {"self": _ref("A")}},
        }
        result = collapse_aliases(_paths("A"), schemas)
        assert list(result.schemas) == ["C"]
        assert result.schemas["C"]["properties"]["self"] == _ref("C")
        assert _response_ref(result.paths) == "#/components/schemas/C"

    def test_cycle_preserved(self):
        schemas = {
            "A": _ref("B"),
            "B": _ref("A"),
            "Holder": {"type": "object", "properties": {"a": _ref("A")}},
        }
        original = copy.deepcopy(schemas)
        result = collapse_aliases(_paths("Holder"), schemas)
        assert result.schemas == original

    def test_chain_into_cycle_stops_at_cycle(self):
        schemas = {
            "Entry": _ref("B"),
            "B": _ref("C"),
            "C": _ref("B"),
        }
        assert resolve_alias_targets(schemas) == {"Entry": "B"}
        result = collapse_aliases(_paths("Entry"), schemas)
        assert result.schemas == {"B": _ref("C"), "C": _ref("B")}
        assert _response_ref(result.paths) == "#/components/schemas/B"

    def test_missing_target_left_alone(self):
        schemas = {"Dangling": _ref("Nowhere")}
        result = collapse_aliases(_paths("Dangling"), schemas)
        assert result.schemas == schemas

    def test_idempotent(self):
        schemas = {
            "A": _ref("B"),
            "B": {"type": "object", "properties": {"c": _ref("CAlias")}},
            "CAlias": {**_ref("C"), "description": "c"},
            "C": {"type": "string"},
            "X": _ref("Y"),
            "Y": _ref("X"),
        }
        once = collapse_aliases(_paths("A"), schemas)
        twice = collapse_aliases(once.paths, once.schemas)
        assert twice.schemas == once.schemas
        assert twice.paths == once.paths

    def test_no_aliases_returns_input(self):
        schemas = {"User": {"type": "object"}}
        paths = _paths("User")
        result = collapse_aliases(paths, schemas)
        assert result.schemas is schemas
        assert result.paths is paths
