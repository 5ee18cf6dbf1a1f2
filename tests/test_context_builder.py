"""Tests for the context_builder module."""

import pytest

from specgen.context_builder import build_context
from specgen.errors import GenerationError
from specgen.spec import decode_from_value


def _spec(paths=None, schemas=None, servers=True):
    doc = {
        "openapi": "3.0.3",
        "info": {"title": "Test", "version": "1"},
        "paths": paths or {},
        "components": {"schemas": schemas or {}},
    }
    if servers:
        doc["servers"] = [{"url": "https://api.example.com"}]
    return decode_from_value(doc)


def _get(operation_id=None, **extra):
    op = {"responses": {"200": {"description": "OK"}}, **extra}
    if operation_id:
        op["operationId"] = operation_id
    return op


class TestBuildContext:
    """Test the full context builder with the Petstore document."""

    @pytest.fixture(autouse=True)
    def _context(self, petstore_spec):
        self.ctx = build_context(petstore_spec, "SwaggerPetstore", False)
        self.ops = {op["name"]: op for op in self.ctx["operations"]}
        self.models = {m["name"]: m for m in self.ctx["models"]}

    def test_header_fields(self):
        assert self.ctx["namespace"] == "SwaggerPetstore"
        assert self.ctx["title"] == "Swagger Petstore"
        assert self.ctx["version"] == "1.0.0"
        assert self.ctx["openapi"] == "3.0.3"
        assert self.ctx["base_url"] == "https://petstore.example.com/v1"

    def test_operation_order(self):
        """Paths sorted, methods in fixed order within a path."""
        assert [op["name"] for op in self.ctx["operations"]] == [
            "get_health", "list_pets", "create_pets", "show_pet_by_id", "delete_pet",
        ]
        assert self.ctx["operation_count"] == 5

    def test_all_method_names_valid_identifiers(self):
        for op in self.ctx["operations"]:
            assert op["name"].isidentifier()

    def test_models_sorted(self):
        assert [m["name"] for m in self.ctx["models"]] == [
            "Error", "NewPet", "Pet", "PetStatus", "Pets",
        ]

    def test_object_model_fields(self):
        pet = self.models["Pet"]
        assert pet["kind"] == "class"
        assert pet["doc"] == ["A pet in the store."]
        annotations = {f["name"]: f["annotation"] for f in pet["fields"]}
        assert annotations == {
            "id": "int",
            "name": "str",
            "status": "NotRequired[PetStatus]",
            "tag": "NotRequired[str | None]",
        }

    def test_enum_model_is_literal_alias(self):
        status = self.models["PetStatus"]
        assert status["kind"] == "alias"
        assert status["type"] == "Literal['available', 'pending', 'sold']"

    def test_array_model_alias(self):
        assert self.models["Pets"]["type"] == "list[Pet]"

    def test_list_pets_params(self):
        op = self.ops["list_pets"]
        assert op["required_params"] == []
        assert [p["py_name"] for p in op["optional_params"]] == ["limit", "status", "x_request_id"]
        limit = op["optional_params"][0]
        assert limit["default"] == 20
        assert limit["annotation"] == "int | None"
        assert [p["name"] for p in op["query_params"]] == ["limit", "status"]
        assert [p["name"] for p in op["header_params"]] == ["X-Request-Id"]
        assert op["response"] == {"kind": "json", "type": "Pets"}
        assert op["path_expr"] == '"/pets"'

    def test_status_param_lists_enum_values(self):
        status = self.ops["list_pets"]["optional_params"][1]
        assert status["doc"] == ["Values: available, pending, sold"]

    def test_create_body_fields(self):
        op = self.ops["create_pets"]
        assert [p["name"] for p in op["body_fields"]] == ["name", "tag"]
        assert [p["py_name"] for p in op["required_params"]] == ["name"]
        assert op["json_param"] is None
        assert op["response"] == {"kind": "none", "type": "None"}

    def test_path_level_parameter(self):
        op = self.ops["show_pet_by_id"]
        assert [p["py_name"] for p in op["required_params"]] == ["pet_id"]
        assert op["path_expr"] == 'f"/pets/{_segment(pet_id)}"'
        assert op["response"] == {"kind": "json", "type": "Pet"}

    def test_derived_name_without_operation_id(self):
        assert self.ops["delete_pet"]["method"] == "delete"
        assert self.ops["delete_pet"]["doc"][0] == "DELETE /pets/{petId}."

    def test_docstring_summary_and_route(self):
        assert self.ops["list_pets"]["doc"] == ["List all pets.", "", "GET /pets"]

    def test_text_response(self):
        assert self.ops["get_health"]["response"] == {"kind": "text", "type": "str"}

    def test_security_warning(self):
        assert self.ctx["warnings"] == [
            "Security schemes (api_key) are not applied automatically;"
            " pass credentials through Client(headers=...)."
        ]


class TestWarnings:
    """Test warning collection and ordering."""

    def test_no_servers_and_no_operations(self):
        ctx = build_context(_spec(servers=False), "Api", False)
        assert ctx["base_url"] == ""
        assert ctx["warnings"] == [
            "No servers declared; pass base_url when creating the Client.",
            "No operations found; the generated Client has no methods.",
        ]

    def test_duplicate_method_names(self):
        paths = {
            "/a": {"get": _get("fetch")},
            "/b": {"post": _get("fetch")},
        }
        ctx = build_context(_spec(paths), "Api", False)
        assert [op["name"] for op in ctx["operations"]] == ["fetch", "fetch_post"]
        assert ctx["warnings"] == [
            "POST /b: method name 'fetch' is already taken, generated as 'fetch_post'"
        ]

    def test_reserved_method_name(self):
        ctx = build_context(_spec({"/x": {"get": _get("close")}}), "Api", False)
        assert ctx["operations"][0]["name"] == "close_"
        assert len(ctx["warnings"]) == 1

    def test_untyped_one_of_warning(self):
        paths = {"/x": {"get": {"responses": {"200": {"content": {"application/json": {
            "schema": {"oneOf": [{"type": "string"}, {}]},
        }}}}}}}
        ctx = build_context(_spec(paths), "Api", False)
        assert ctx["operations"][0]["response"]["type"] == "Any"
        assert ctx["warnings"] == ["GET /x: oneOf with an untyped member is typed as Any"]

    def test_functional_typed_dict_for_non_identifier_keys(self):
        schemas = {"Odd": {"type": "object", "properties": {"content-type": {"type": "string"}}}}
        ctx = build_context(_spec(schemas=schemas), "Api", False)
        assert ctx["models"][0]["kind"] == "functional"


class TestUnsupportedFeatures:
    """Unsupported features abort generation unless TODO stubs are requested."""

    _PATHS = {"/pets/{petId}": {"get": _get("getPet")}}

    def test_unmatched_placeholder_fails(self):
        with pytest.raises(GenerationError) as excinfo:
            build_context(_spec(self._PATHS), "Api", False)
        message = str(excinfo.value)
        assert message.startswith("GET /pets/{petId}: path placeholder {petId}")
        assert message.endswith("Pass --generateTodos yes to generate a stub instead.")

    def test_unmatched_placeholder_stubbed(self):
        ctx = build_context(_spec(self._PATHS), "Api", True)
        op = ctx["operations"][0]
        assert op["name"] == "get_pet"
        assert op["todo"] == "path placeholder {petId} without a matching parameter"
        assert ctx["warnings"] == [
            "GET /pets/{petId}: path placeholder {petId} without a matching parameter"
            " is not supported; generated a TODO stub"
        ]

    def test_cookie_parameter_stubbed(self):
        paths = {"/me": {"get": _get("me", parameters=[{"name": "sid", "in": "cookie"}])}}
        ctx = build_context(_spec(paths), "Api", True)
        assert ctx["operations"][0]["todo"] == "cookie parameter 'sid'"

    def test_external_ref_in_model(self):
        schemas = {"Remote": {"$ref": "common.yaml#/Thing"}}
        with pytest.raises(GenerationError, match="components.schemas.Remote"):
            build_context(_spec(schemas=schemas), "Api", False)

    def test_external_ref_in_model_stubbed(self):
        schemas = {"Remote": {"$ref": "common.yaml#/Thing"}}
        ctx = build_context(_spec(schemas=schemas), "Api", True)
        assert ctx["models"] == [{
            "kind": "alias", "name": "Remote", "type": "Any",
            "todo": "external reference 'common.yaml#/Thing'",
        }]
        assert ctx["warnings"][0] == (
            "components.schemas.Remote: external reference 'common.yaml#/Thing'"
            " is not supported; typed as Any (TODO)"
        )

    def test_circular_allof_fails(self):
        schemas = {"Loop": {"allOf": [{"$ref": "#/components/schemas/Loop"}]}}
        with pytest.raises(GenerationError) as excinfo:
            build_context(_spec(schemas=schemas), "Api", False)
        assert str(excinfo.value) == (
            "components.schemas.Loop: circular allOf through '#/components/schemas/Loop'"
            " is not supported. Pass --generateTodos yes to generate a stub instead."
        )

    def test_circular_allof_stubbed(self):
        schemas = {"Loop": {"allOf": [{"$ref": "#/components/schemas/Loop"}]}}
        ctx = build_context(_spec(schemas=schemas), "Api", True)
        assert ctx["models"][0]["type"] == "Any"
        assert ctx["models"][0]["todo"] == "circular allOf through '#/components/schemas/Loop'"

    def test_non_object_property_schema(self):
        schemas = {"Pet": {"type": "object", "properties": {"name": "oops"}}}
        with pytest.raises(GenerationError, match="components.schemas.Pet: schema that is not an object"):
            build_context(_spec(schemas=schemas), "Api", False)

    def test_non_object_request_body_stubbed(self):
        paths = {"/pets": {"post": _get("addPet", requestBody="oops")}}
        ctx = build_context(_spec(paths), "Api", True)
        assert ctx["operations"][0]["todo"] == "request body that is not an object (found string)"
