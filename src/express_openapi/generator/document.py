"""OpenAPI document assembly from collected routes."""

import logging
import re

from pydantic import BaseModel

from express_openapi.analyzer.base import Route

logger = logging.getLogger(__name__)

OPENAPI_VERSION = "3.0.0"

# (keyword variants, tag) checked in order before falling back to the first path segment
KEYWORD_TAGS = (
    (("todo", "Todo"), "Todos"),
    (("user", "User"), "Users"),
)


class DocumentInfo(BaseModel):
    """The ``info`` block of the generated document."""

    title: str = "Express API"
    version: str = "1.0.0"
    description: str = "API documentation generated from Express.js application"


def assemble(routes: list[Route], info: DocumentInfo | None = None) -> dict:
    """Build an OpenAPI 3.0 document from routes in registration order.

    Paths keep their first-seen order. A second registration of the same
    path and method is dropped. Colliding operationIds get a numeric suffix.
    """
    info = info or DocumentInfo()
    paths: dict[str, dict[str, dict]] = {}
    operation_ids: set[str] = set()

    for route in routes:
        operations = paths.setdefault(route.path, {})
        if route.method in operations:
            logger.warning(
                "Duplicate route %s %s (line %d) ignored", route.method.upper(), route.path, route.line
            )
            continue
        operation = build_operation(route)
        operation["operationId"] = _unique(operation["operationId"], operation_ids)
        operations[route.method] = operation

    return {
        "openapi": OPENAPI_VERSION,
        "info": info.model_dump(),
        "paths": paths,
    }


def build_operation(route: Route) -> dict:
    operation: dict = {
        "summary": f"{route.method.upper()} {route.path}",
        "operationId": operation_id(route.method, route.path),
        "tags": [tag_for_path(route.path)],
    }
    if route.parameters:
        operation["parameters"] = [p.to_openapi() for p in route.parameters]
    if route.request_body is not None:
        operation["requestBody"] = route.request_body.to_openapi()
    operation["responses"] = {
        status: entry.to_openapi() for status, entry in route.responses.items()
    }
    return operation


def operation_id(method: str, path: str) -> str:
    return method + re.sub(r"[^a-zA-Z0-9]", "", path)


def tag_for_path(path: str) -> str:
    """Pick the single tag for an operation from its path."""
    for keywords, tag in KEYWORD_TAGS:
        if any(keyword in path for keyword in keywords):
            return tag
    segments = [s for s in path.split("/") if s]
    if not segments:
        return "default"
    first = segments[0]
    if first.startswith("{") and first.endswith("}"):
        return "Resources"
    return first[:1].upper() + first[1:]


def _unique(candidate: str, taken: set[str]) -> str:
    result = candidate
    suffix = 2
    while result in taken:
        result = f"{candidate}_{suffix}"
        suffix += 1
    taken.add(result)
    return result
