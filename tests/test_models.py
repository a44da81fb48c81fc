import pytest
from pydantic import ValidationError

from express_openapi.analyzer.base import Param, RequestBodySchema, ResponseEntry, Route, SchemaNode, describe_status


class TestParam:
    def test_path_param_to_openapi(self):
        p = Param(name="id", location="path", required=True)
        assert p.to_openapi() == {
            "name": "id",
            "in": "path",
            "required": True,
            "schema": {"type": "string"},
        }

    def test_query_param_type(self):
        p = Param(name="page", location="query", required=False, param_type="integer")
        assert p.to_openapi()["schema"] == {"type": "integer"}


class TestSchemaNode:
    def test_primitive_drops_unset_fields(self):
        assert SchemaNode.primitive("boolean").to_openapi() == {"type": "boolean"}

    def test_opaque_object(self):
        assert SchemaNode.object().to_openapi() == {"type": "object"}

    def test_nested_array_of_objects(self):
        schema = SchemaNode.array(SchemaNode.object({"_id": SchemaNode.primitive("string")}))
        assert schema.to_openapi() == {
            "type": "array",
            "items": {"type": "object", "properties": {"_id": {"type": "string"}}},
        }

    def test_message_schema(self):
        assert SchemaNode.message().to_openapi() == {
            "type": "object",
            "properties": {"message": {"type": "string"}},
        }


class TestRequestBodySchema:
    def test_required_list_included(self):
        body = RequestBodySchema(properties={"title": "string", "completed": "boolean"}, required=["title"])
        schema = body.to_openapi()["content"]["application/json"]["schema"]
        assert schema["properties"]["completed"] == {"type": "boolean"}
        assert schema["required"] == ["title"]

    def test_required_list_omitted_when_empty(self):
        body = RequestBodySchema(properties={"note": "string"})
        rendered = body.to_openapi()
        assert rendered["required"] is True
        assert "required" not in rendered["content"]["application/json"]["schema"]


class TestResponseEntry:
    def test_known_status_description(self):
        entry = ResponseEntry.for_status("201", SchemaNode.object())
        assert entry.description == "Created"

    def test_unknown_status_description(self):
        assert describe_status("418") == "Response"

    def test_to_openapi_wraps_json_content(self):
        entry = ResponseEntry.for_status("404", SchemaNode.message())
        assert entry.to_openapi() == {
            "description": "Not Found",
            "content": {
                "application/json": {
                    "schema": {"type": "object", "properties": {"message": {"type": "string"}}},
                },
            },
        }


class TestRoute:
    def _make_route(self, parameters: list[Param]) -> Route:
        return Route(
            method="get",
            path="/api/users/{id}",
            parameters=parameters,
            request_body=None,
            responses={"200": ResponseEntry.for_status("200", SchemaNode.object())},
        )

    def test_route_is_frozen(self):
        route = self._make_route([])
        with pytest.raises(ValidationError):
            route.path = "/other"

    def test_has_query(self):
        route = self._make_route([
            Param(name="id", location="path", required=True),
            Param(name="q", location="query", required=False),
        ])
        assert route.has_query is True
        assert self._make_route([]).has_query is False
