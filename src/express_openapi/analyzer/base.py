"""Data models for routes recovered from an Express application.

The route collector produces these models; the document assembler renders
them into OpenAPI 3.0 fragments with the ``to_openapi`` helpers.
"""

from pydantic import BaseModel, ConfigDict

JSON_CONTENT_TYPE = "application/json"

RESPONSE_DESCRIPTIONS = {
    "200": "Success",
    "201": "Created",
    "204": "No Content",
    "400": "Bad Request",
    "401": "Unauthorized",
    "403": "Forbidden",
    "404": "Not Found",
    "500": "Internal Server Error",
}


def describe_status(status: str) -> str:
    """Return the fixed description used for a status code."""
    return RESPONSE_DESCRIPTIONS.get(status, "Response")


class SchemaNode(BaseModel):
    """A JSON payload shape: object, array or primitive."""

    type: str  # object / array / string / integer / number / boolean
    properties: dict[str, "SchemaNode"] | None = None
    items: "SchemaNode | None" = None

    @classmethod
    def primitive(cls, type_: str) -> "SchemaNode":
        return cls(type=type_)

    @classmethod
    def object(cls, properties: dict[str, "SchemaNode"] | None = None) -> "SchemaNode":
        return cls(type="object", properties=properties)

    @classmethod
    def array(cls, items: "SchemaNode") -> "SchemaNode":
        return cls(type="array", items=items)

    @classmethod
    def message(cls) -> "SchemaNode":
        """The generic ``{message: string}`` error payload."""
        return cls.object({"message": cls.primitive("string")})

    def to_openapi(self) -> dict:
        return self.model_dump(exclude_none=True)


class Param(BaseModel):
    """A path or query parameter."""

    name: str
    location: str  # path / query
    required: bool
    param_type: str = "string"

    def to_openapi(self) -> dict:
        return {
            "name": self.name,
            "in": self.location,
            "required": self.required,
            "schema": {"type": self.param_type},
        }


class RequestBodySchema(BaseModel):
    """Flat JSON request body: property name -> primitive type."""

    properties: dict[str, str]
    required: list[str] = []

    def to_openapi(self) -> dict:
        schema: dict = {
            "type": "object",
            "properties": {name: {"type": type_} for name, type_ in self.properties.items()},
        }
        if self.required:
            schema["required"] = list(self.required)
        return {
            "required": True,
            "content": {JSON_CONTENT_TYPE: {"schema": schema}},
        }


class ResponseEntry(BaseModel):
    """One documented response of an operation."""

    description: str
    schema_node: SchemaNode

    @classmethod
    def for_status(cls, status: str, schema: SchemaNode) -> "ResponseEntry":
        return cls(description=describe_status(status), schema_node=schema)

    def to_openapi(self) -> dict:
        return {
            "description": self.description,
            "content": {JSON_CONTENT_TYPE: {"schema": self.schema_node.to_openapi()}},
        }


class Route(BaseModel):
    """A single registered route with everything inferred from its handler."""

    model_config = ConfigDict(frozen=True)

    method: str  # get / post / put / patch / delete / head / options
    path: str  # /api/users/{id}
    parameters: list[Param]
    request_body: RequestBodySchema | None
    responses: dict[str, ResponseEntry]  # {status_code: ResponseEntry}
    line: int = 0

    @property
    def has_query(self) -> bool:
        return any(p.location == "query" for p in self.parameters)
