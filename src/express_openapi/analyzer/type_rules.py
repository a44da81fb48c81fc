"""Primitive type inference for request properties and path parameters."""

import re

BOOLEAN_NAMES = frozenset({"completed", "active", "enabled", "published"})
INTEGER_NAMES = frozenset({"age", "count", "price", "quantity"})
NUMBER_NAMES = frozenset({"rating", "score", "percentage"})

# ids stay strings: Mongo ObjectIds and UUIDs are the common case
PATH_INTEGER_NAMES = frozenset({"page", "limit", "count"})


def infer_type(name: str, context: str = "", accessor: str | None = None) -> str:
    """Infer the primitive type of a property.

    The exact-name tables win. Otherwise ``context`` (usually the handler
    text) is searched for a literal boolean assignment to the property, then
    for numeric coercion of ``accessor`` (the expression used to read the
    property, defaulting to the bare name). Unknown names are strings.
    """
    if name in BOOLEAN_NAMES:
        return "boolean"
    if name in INTEGER_NAMES:
        return "integer"
    if name in NUMBER_NAMES:
        return "number"

    if context:
        if re.search(rf"(?<![\w$]){re.escape(name)}\s*:\s*(?:true|false)\b", context, re.IGNORECASE):
            return "boolean"
        target = re.escape(accessor or name)
        if re.search(rf"\b(?:parseInt|Number)\s*\(\s*{target}\s*[,)]", context):
            return "integer"
        if re.search(rf"\bparseFloat\s*\(\s*{target}\s*[,)]", context):
            return "number"

    return "string"


def infer_path_param_type(name: str) -> str:
    return "integer" if name in PATH_INTEGER_NAMES else "string"
