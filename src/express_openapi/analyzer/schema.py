"""Response schema inference from the text of a response payload.

Classification is lexical: the payload expression and the surrounding
handler text are searched for keywords. Each rule in ``SCHEMA_RULES`` is
tried in order and the first one returning a schema wins. Domain knowledge
(model names and their usual fields) lives in ``DOMAIN_CONVENTIONS`` so new
models can be recognized without touching the rules.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass

from express_openapi.analyzer.base import SchemaNode
from express_openapi.analyzer.scanning import IDENTIFIER, enclosed, object_entries, split_top_level
from express_openapi.analyzer.type_rules import infer_type


@dataclass(frozen=True)
class DomainConvention:
    """Field conventions for a model commonly served by Express apps."""

    model: str
    plural: tuple[str, ...]
    singular: tuple[str, ...]
    fields: tuple[tuple[str, str], ...]
    optional_fields: tuple[tuple[str, str], ...] = ()

    def mentioned_in(self, text: str) -> bool:
        return self.model in text or self.model.lower() in text


DOMAIN_CONVENTIONS: tuple[DomainConvention, ...] = (
    DomainConvention(
        model="Todo",
        plural=("todos",),
        singular=("newTodo", "updatedTodo", "todo", "Todo"),
        fields=(("_id", "string"), ("title", "string"), ("completed", "boolean")),
    ),
    DomainConvention(
        model="User",
        plural=("users",),
        singular=("newUser", "updatedUser", "user", "User"),
        fields=(("_id", "string"), ("name", "string"), ("email", "string")),
        optional_fields=(("age", "integer"),),
    ),
)

GENERIC_COLLECTIONS = ("items",)
FIND_ALL_CALLS = (".find()", ".findAll()")
CREATE_PATTERNS = (
    re.compile(r"\bnew\s+\w+\s*\(\s*(?=\{)"),
    re.compile(r"\.\s*create\s*\(\s*(?=\{)"),
)
UPDATE_CALL = re.compile(r"\.\s*(?:findByIdAndUpdate|findOneAndUpdate|updateOne|updateMany)\s*\(")
ERROR_STATUSES = frozenset({"400", "404", "500"})


@dataclass(frozen=True)
class SchemaContext:
    """Everything a schema rule may look at."""

    expression: str | None
    handler_text: str
    status: str
    call_text: str = ""
    request: str = "req"


SchemaRule = Callable[[SchemaContext], SchemaNode | None]


def infer_response_schema(
    expression: str | None,
    handler_text: str,
    status: str,
    call_text: str = "",
    request: str = "req",
) -> SchemaNode:
    """Infer the schema of a response payload expression."""
    ctx = SchemaContext(
        expression=expression.strip() if expression else None,
        handler_text=handler_text,
        status=status,
        call_text=call_text,
        request=request,
    )
    for rule in SCHEMA_RULES:
        schema = rule(ctx)
        if schema is not None:
            return schema
    return SchemaNode.object()


def infer_object_properties(handler_text: str, request: str = "req") -> dict[str, SchemaNode]:
    """Guess the fields of the domain object a handler works with."""
    fields: dict[str, str] = {}
    for convention in DOMAIN_CONVENTIONS:
        if not convention.mentioned_in(handler_text):
            continue
        fields.update(convention.fields)
        for name, type_ in convention.optional_fields:
            if name in handler_text:
                fields[name] = type_

    for key in _assigned_keys(handler_text, request):
        fields[key] = infer_type(key)

    if not fields:
        fields["_id"] = "string"
    return {name: SchemaNode.primitive(type_) for name, type_ in fields.items()}


def _domain_object(ctx: SchemaContext) -> SchemaNode:
    return SchemaNode.object(infer_object_properties(ctx.handler_text, ctx.request))


def _assigned_keys(handler_text: str, request: str) -> list[str]:
    """Keys assigned from the request body in create/update call arguments."""
    literals = []
    for pattern in CREATE_PATTERNS:
        for match in pattern.finditer(handler_text):
            literals.append(enclosed(handler_text, match.end()))
    for match in UPDATE_CALL.finditer(handler_text):
        args = split_top_level(enclosed(handler_text, match.end() - 1))
        if len(args) >= 2 and args[1].startswith("{"):
            literals.append(args[1][1:-1])

    body = re.compile(rf"\b{re.escape(request)}\s*\.\s*body\b")
    keys = []
    for literal in literals:
        for key, value in object_entries(literal):
            if key.startswith("$") or key in keys:
                continue
            if value is None or body.search(value):
                keys.append(key)
    return keys


# -- rules, in precedence order --------------------------------------------


def _no_payload(ctx: SchemaContext) -> SchemaNode | None:
    if not ctx.expression:
        return SchemaNode.object()
    return None


def _message_payload(ctx: SchemaContext) -> SchemaNode | None:
    expr = ctx.expression
    if re.search(r"\bmessage\s*:", expr) or "'message'" in expr or '"message"' in expr:
        return SchemaNode.message()
    return None


def _deletion_message(ctx: SchemaContext) -> SchemaNode | None:
    if re.search(r"(['\"])[^'\"]*\bdeleted\b[^'\"]*\1", ctx.expression, re.IGNORECASE):
        return SchemaNode.message()
    return None


def _object_literal(ctx: SchemaContext) -> SchemaNode | None:
    if not ctx.expression.startswith("{"):
        return None
    return _literal_schema(ctx.expression, ctx)


def _collection(ctx: SchemaContext) -> SchemaNode | None:
    if _names_collection(ctx.expression) or any(call in ctx.handler_text for call in FIND_ALL_CALLS):
        return SchemaNode.array(_domain_object(ctx))
    return None


def _singular(ctx: SchemaContext) -> SchemaNode | None:
    for convention in DOMAIN_CONVENTIONS:
        if any(name in ctx.expression for name in convention.singular):
            return _domain_object(ctx)
    return None


def _created(ctx: SchemaContext) -> SchemaNode | None:
    if ctx.status == "201":
        return _domain_object(ctx)
    return None


def _success(ctx: SchemaContext) -> SchemaNode | None:
    if ctx.status != "200":
        return None
    if "message" in ctx.call_text:
        return SchemaNode.message()
    return _domain_object(ctx)


def _error_status(ctx: SchemaContext) -> SchemaNode | None:
    if ctx.status in ERROR_STATUSES:
        return SchemaNode.message()
    return None


SCHEMA_RULES: tuple[SchemaRule, ...] = (
    _no_payload,
    _message_payload,
    _deletion_message,
    _object_literal,
    _collection,
    _singular,
    _created,
    _success,
    _error_status,
)


# -- object literal payloads -----------------------------------------------


def _names_collection(expression: str) -> bool:
    plural = [name for c in DOMAIN_CONVENTIONS for name in c.plural]
    return any(name in expression for name in (*plural, *GENERIC_COLLECTIONS))


def _literal_schema(literal: str, ctx: SchemaContext) -> SchemaNode:
    properties = {}
    for key, value in object_entries(literal.strip()[1:-1]):
        properties[key] = _value_schema(key, value if value is not None else key, ctx)
    return SchemaNode.object(properties)


def _value_schema(key: str, value: str, ctx: SchemaContext) -> SchemaNode:
    value = value.strip()
    if value in ("true", "false"):
        return SchemaNode.primitive("boolean")
    if re.fullmatch(r"-?\d+", value):
        return SchemaNode.primitive("integer")
    if re.fullmatch(r"-?\d*\.\d+", value):
        return SchemaNode.primitive("number")
    if value[:1] in ("'", '"', "`") or value.endswith((".toISOString()", ".toString()")):
        return SchemaNode.primitive("string")
    if value.startswith("{"):
        return _literal_schema(value, ctx)
    if value.startswith("["):
        return SchemaNode.array(_domain_object(ctx))
    if value.endswith(".length") or re.match(r"(?:parseInt|Number)\s*\(", value):
        return SchemaNode.primitive("integer")
    if re.fullmatch(IDENTIFIER, value) and _is_collection_variable(value, ctx.handler_text):
        return SchemaNode.array(_domain_object(ctx))
    if _names_collection(value):
        return SchemaNode.array(_domain_object(ctx))
    for convention in DOMAIN_CONVENTIONS:
        if re.fullmatch(IDENTIFIER, value) and any(name in value for name in convention.singular):
            return _domain_object(ctx)
    return SchemaNode.primitive(infer_type(key, ctx.handler_text))


def _is_collection_variable(name: str, handler_text: str) -> bool:
    """True if ``name`` is assigned from a filter/map/find-all style call."""
    assignment = re.search(
        rf"\b(?:const|let|var)\s+{re.escape(name)}\s*=\s*(?:await\s+)?([^;\n]*)",
        handler_text,
    )
    if not assignment:
        return False
    source = assignment.group(1)
    return bool(re.search(r"\.\s*(?:filter|map|slice|findAll)\s*\(", source)) or any(
        call in source for call in FIND_ALL_CALLS
    )
