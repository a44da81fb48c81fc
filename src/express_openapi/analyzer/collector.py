"""Route collection from a parsed Express application file.

Two passes over the tree: the first resolves which local names hold the
Express application and router, the second finds ``<name>.<method>(path,
..., handler)`` statements on those names and analyzes each handler.
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field

from tree_sitter import Node

from express_openapi.analyzer.base import Param, Route
from express_openapi.analyzer.heuristics import HandlerView, analyze_handler
from express_openapi.analyzer.source import SourceFile, arguments_of, is_function, iter_nodes, parse_source
from express_openapi.analyzer.type_rules import infer_path_param_type
from express_openapi.errors import SourceParseError

logger = logging.getLogger(__name__)

HTTP_METHODS = frozenset({"get", "post", "put", "patch", "delete", "head", "options"})
EXPRESS_MODULE = "express"
PATH_PARAM = re.compile(r":(\w+)")


@dataclass
class Bindings:
    """Names bound to the Express application, router and their factories.

    The first binding of the application and of the router wins; later
    rebinds are ignored.
    """

    app: str | None = None
    router: str | None = None
    app_factories: set[str] = field(default_factory=lambda: {"express"})
    router_factories: set[str] = field(default_factory=lambda: {"Router"})

    def bind_app(self, name: str) -> None:
        if self.app is None:
            self.app = name
        elif name != self.app:
            logger.debug("Ignoring rebind of application to %r (tracking %r)", name, self.app)

    def bind_router(self, name: str) -> None:
        if self.router is None:
            self.router = name
        elif name != self.router:
            logger.debug("Ignoring rebind of router to %r (tracking %r)", name, self.router)

    def tracks(self, name: str) -> bool:
        return name in (self.app, self.router) and name is not None


def extract_routes(text: str, on_error: Callable[[SourceParseError], None] | None = None) -> list[Route]:
    """Parse ``text`` and collect its routes.

    Malformed source yields no routes. The error goes to ``on_error`` when
    given and is logged otherwise.
    """
    try:
        source = parse_source(text)
    except SourceParseError as exc:
        if on_error is None:
            logger.warning("Error parsing file: %s", exc)
        else:
            on_error(exc)
        return []
    return collect_routes(source)


def collect_routes(source: SourceFile) -> list[Route]:
    """Collect every route registered on the tracked app or router, in source order."""
    bindings = resolve_bindings(source)
    routes = []
    for statement in iter_nodes(source.root, "expression_statement"):
        route = _route_from_statement(statement, source, bindings)
        if route is not None:
            routes.append(route)
    return routes


def resolve_bindings(source: SourceFile) -> Bindings:
    bindings = Bindings()
    for node in iter_nodes(source.root, "import_statement", "variable_declarator"):
        if node.type == "import_statement":
            _bind_import(node, source, bindings)
        else:
            _bind_declarator(node, source, bindings)
    return bindings


def to_openapi_path(path: str) -> str:
    """Convert ``/users/:id`` to ``/users/{id}``."""
    return PATH_PARAM.sub(r"{\1}", path)


def extract_path_params(path: str) -> list[Param]:
    return [
        Param(name=name, location="path", required=True, param_type=infer_path_param_type(name))
        for name in PATH_PARAM.findall(path)
    ]


def handler_view(handler: Node | None, source: SourceFile) -> HandlerView:
    """Build the text view the heuristics run against.

    Anything but an inline function yields an empty view.
    """
    if not is_function(handler):
        return HandlerView(text="")
    names = _parameter_names(handler, source)
    return HandlerView(
        text=source.code_of(handler),
        request=names[0] if len(names) > 0 and names[0] else "req",
        response=names[1] if len(names) > 1 and names[1] else "res",
    )


def _route_from_statement(statement: Node, source: SourceFile, bindings: Bindings) -> Route | None:
    call = next((c for c in statement.named_children if c.type != "comment"), None)
    if call is None or call.type != "call_expression":
        return None
    callee = call.child_by_field_name("function")
    if callee is None or callee.type != "member_expression":
        return None
    target = callee.child_by_field_name("object")
    prop = callee.child_by_field_name("property")
    if target is None or prop is None or target.type != "identifier":
        return None
    if not bindings.tracks(source.text_of(target)):
        return None

    method = source.text_of(prop).lower()
    if method not in HTTP_METHODS:
        return None

    line = call.start_point[0] + 1
    args = arguments_of(call)
    if len(args) < 2:
        logger.debug("Line %d: %s registration without a handler skipped", line, method.upper())
        return None
    path = _literal_string(args[0], source)
    if path is None:
        logger.debug("Line %d: non-literal route path skipped", line)
        return None
    if "*" in path:
        logger.debug("Line %d: wildcard route %r skipped", line, path)
        return None

    analysis = analyze_handler(handler_view(args[-1], source))
    return Route(
        method=method,
        path=to_openapi_path(path),
        parameters=extract_path_params(path) + analysis.parameters,
        request_body=analysis.request_body,
        responses=analysis.responses,
        line=line,
    )


def _literal_string(node: Node, source: SourceFile) -> str | None:
    """Value of a quoted string or substitution-free template literal."""
    if node.type == "string":
        return source.text_of(node)[1:-1]
    if node.type == "template_string":
        if any(child.type == "template_substitution" for child in node.named_children):
            return None
        return source.text_of(node)[1:-1]
    return None


def _parameter_names(function: Node, source: SourceFile) -> list[str | None]:
    single = function.child_by_field_name("parameter")
    if single is not None:
        return [source.text_of(single)]
    params = function.child_by_field_name("parameters")
    if params is None:
        return []
    names = []
    for param in params.named_children:
        if param.type == "comment":
            continue
        if param.type == "assignment_pattern":
            param = param.child_by_field_name("left")
        names.append(source.text_of(param) if param is not None and param.type == "identifier" else None)
    return names


# -- binding resolution ----------------------------------------------------


def _requires_express(node: Node | None, source: SourceFile) -> bool:
    """True for ``require("express")``."""
    if node is None or node.type != "call_expression":
        return False
    callee = node.child_by_field_name("function")
    if callee is None or source.text_of(callee) != "require":
        return False
    args = arguments_of(node)
    return bool(args) and _literal_string(args[0], source) == EXPRESS_MODULE


def _bind_import(node: Node, source: SourceFile, bindings: Bindings) -> None:
    module = node.child_by_field_name("source")
    if module is None or _literal_string(module, source) != EXPRESS_MODULE:
        return
    for clause in node.named_children:
        if clause.type != "import_clause":
            continue
        for part in clause.named_children:
            if part.type == "identifier":
                bindings.app_factories.add(source.text_of(part))
            elif part.type == "namespace_import":
                alias = next((c for c in part.named_children if c.type == "identifier"), None)
                if alias is not None:
                    bindings.app_factories.add(source.text_of(alias))
            elif part.type == "named_imports":
                for spec in part.named_children:
                    if spec.type != "import_specifier":
                        continue
                    name = spec.child_by_field_name("name")
                    alias = spec.child_by_field_name("alias") or name
                    if name is not None and source.text_of(name) == "Router":
                        bindings.router_factories.add(source.text_of(alias))


def _bind_declarator(node: Node, source: SourceFile, bindings: Bindings) -> None:
    name = node.child_by_field_name("name")
    value = node.child_by_field_name("value")
    if name is None or value is None:
        return

    if _requires_express(value, source):
        if name.type == "identifier":
            bindings.app_factories.add(source.text_of(name))
        elif name.type == "object_pattern":
            _bind_router_factory_pattern(name, source, bindings)
        return

    if name.type != "identifier" or value.type not in ("call_expression", "new_expression"):
        return
    field_name = "function" if value.type == "call_expression" else "constructor"
    callee = value.child_by_field_name(field_name)
    if callee is None:
        return

    if callee.type == "identifier":
        callee_name = source.text_of(callee)
        if callee_name in bindings.app_factories:
            bindings.bind_app(source.text_of(name))
        elif callee_name in bindings.router_factories:
            bindings.bind_router(source.text_of(name))
    elif callee.type == "member_expression":
        prop = callee.child_by_field_name("property")
        if prop is not None and source.text_of(prop) == "Router":
            bindings.bind_router(source.text_of(name))
    elif _requires_express(callee, source):
        bindings.bind_app(source.text_of(name))


def _bind_router_factory_pattern(pattern: Node, source: SourceFile, bindings: Bindings) -> None:
    """Handle ``const { Router } = require("express")``."""
    for part in pattern.named_children:
        if part.type == "shorthand_property_identifier_pattern" and source.text_of(part) == "Router":
            bindings.router_factories.add("Router")
        elif part.type == "pair_pattern":
            key = part.child_by_field_name("key")
            value = part.child_by_field_name("value")
            if key is not None and value is not None and source.text_of(key) == "Router":
                bindings.router_factories.add(source.text_of(value))
