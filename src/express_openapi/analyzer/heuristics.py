"""Pattern heuristics over route handler source text.

Every heuristic is a plain function ``HandlerView -> list[Finding]``; an empty
list means the pattern did not match. ``analyze_handler`` runs them in a
fixed order and merges the findings into a ``HandlerAnalysis`` whose add
operations are insert-if-absent, so the first finding for a parameter name,
for the request body, or for a status code is the one that is kept.

This is deliberately lexical. Handlers that do not follow the recognized
Express idioms simply yield less information.
"""

import re
from dataclasses import dataclass, field

from express_openapi.analyzer.base import Param, RequestBodySchema, ResponseEntry, SchemaNode
from express_openapi.analyzer.scanning import IDENTIFIER, destructured_names, enclosed, strip_comments
from express_openapi.analyzer.schema import infer_response_schema
from express_openapi.analyzer.type_rules import infer_type

REQUIRED_BODY_NAMES = frozenset({"title", "name", "email"})


@dataclass(frozen=True)
class HandlerView:
    """Handler source text plus the names its request/response arguments use."""

    text: str
    request: str = "req"
    response: str = "res"

    @property
    def req(self) -> str:
        return re.escape(self.request)

    @property
    def res(self) -> str:
        return rf"(?<![\w$.]){re.escape(self.response)}"

    @property
    def has_try_catch(self) -> bool:
        return bool(re.search(r"\btry\s*\{", self.text) and re.search(r"(?<!\.)\bcatch\b", self.text))


@dataclass(frozen=True)
class QueryParamFinding:
    name: str
    required: bool = False


@dataclass(frozen=True)
class RequestBodyFinding:
    body: RequestBodySchema


@dataclass(frozen=True)
class ResponseFinding:
    status: str
    schema: SchemaNode


Finding = QueryParamFinding | RequestBodyFinding | ResponseFinding


@dataclass
class HandlerAnalysis:
    """Accumulates findings for one handler."""

    parameters: list[Param] = field(default_factory=list)
    request_body: RequestBodySchema | None = None
    responses: dict[str, ResponseEntry] = field(default_factory=dict)

    def add_parameter(self, param: Param) -> bool:
        if any(p.name == param.name for p in self.parameters):
            return False
        self.parameters.append(param)
        return True

    def set_request_body(self, body: RequestBodySchema) -> bool:
        if self.request_body is not None:
            return False
        self.request_body = body
        return True

    def add_response(self, status: str, schema: SchemaNode) -> bool:
        if status in self.responses:
            return False
        self.responses[status] = ResponseEntry.for_status(status, schema)
        return True

    def merge(self, findings: list[Finding]) -> None:
        for finding in findings:
            if isinstance(finding, QueryParamFinding):
                self.add_parameter(
                    Param(name=finding.name, location="query", required=finding.required)
                )
            elif isinstance(finding, RequestBodyFinding):
                self.set_request_body(finding.body)
            else:
                self.add_response(finding.status, finding.schema)

    def finalize(self) -> None:
        if not self.responses:
            self.add_response("200", SchemaNode.object())


def analyze_handler(view: HandlerView) -> HandlerAnalysis:
    """Run every heuristic over a handler and merge what they find."""
    analysis = HandlerAnalysis()
    if view.text:
        for heuristic in HEURISTICS:
            analysis.merge(heuristic(view))
    analysis.finalize()
    return analysis


def is_guarded(accessor: str, text: str) -> bool:
    """True if ``text`` checks ``accessor`` for a falsy, undefined or null value."""
    target = re.escape(accessor)
    return bool(
        re.search(rf"!\s*{target}(?![\w$])", text)
        or re.search(rf"(?<![\w$.]){target}\s*===?\s*(?:undefined|null)\b", text)
    )


# -- query parameters ------------------------------------------------------


def find_query_access(view: HandlerView) -> list[Finding]:
    patterns = (
        rf"\b{view.req}\s*\.\s*query\s*\.\s*({IDENTIFIER})",
        rf"\b{view.req}\s*\.\s*query\s*\[\s*['\"]([^'\"]+)['\"]\s*\]",
    )
    findings = []
    for pattern in patterns:
        for match in re.finditer(pattern, view.text):
            name = match.group(1)
            required = any(is_guarded(accessor, view.text) for accessor in _query_accessors(view.request, name))
            findings.append(QueryParamFinding(name=name, required=required))
    return findings


def _query_accessors(request: str, name: str) -> tuple[str, ...]:
    return (
        f"{request}.query.{name}",
        f"{request}.query['{name}']",
        f'{request}.query["{name}"]',
    )


def find_query_destructuring(view: HandlerView) -> list[Finding]:
    findings = []
    for names in _destructured(view, "query"):
        for name in names:
            findings.append(QueryParamFinding(name=name, required=is_guarded(name, view.text)))
    return findings


# -- request body ----------------------------------------------------------


def find_body_access(view: HandlerView) -> list[Finding]:
    names = []
    for match in re.finditer(rf"\b{view.req}\s*\.\s*body\s*\.\s*({IDENTIFIER})", view.text):
        if match.group(1) not in names:
            names.append(match.group(1))
    if not names:
        return []

    properties = {}
    required = []
    for name in names:
        accessor = f"{view.request}.body.{name}"
        properties[name] = infer_type(name, view.text, accessor)
        if name in REQUIRED_BODY_NAMES or is_guarded(accessor, view.text):
            required.append(name)
    return [RequestBodyFinding(RequestBodySchema(properties=properties, required=required))]


def find_body_destructuring(view: HandlerView) -> list[Finding]:
    findings = []
    for names in _destructured(view, "body"):
        properties = {name: infer_type(name, view.text) for name in names}
        required = [
            name for name in names
            if name in REQUIRED_BODY_NAMES or is_guarded(name, view.text)
        ]
        findings.append(RequestBodyFinding(RequestBodySchema(properties=properties, required=required)))
    return findings


def _destructured(view: HandlerView, member: str) -> list[list[str]]:
    pattern = rf"\b(?:const|let|var)\s*\{{([^}}]*)\}}\s*=\s*{view.req}\s*\.\s*{member}\b(?!\s*\.)"
    groups = []
    for match in re.finditer(pattern, view.text):
        names = destructured_names(match.group(1))
        if names:
            groups.append(names)
    return groups


# -- responses -------------------------------------------------------------


@dataclass(frozen=True)
class ResponseCall:
    """A response-sending call shape. ``{res}`` is the response name."""

    pattern: str
    has_status: bool
    has_payload: bool

    def compile(self, view: HandlerView) -> re.Pattern:
        return re.compile(self.pattern.replace("{res}", view.res))


_STATUS = r"\s*\.\s*status\s*\(\s*(\d+)\s*\)"

RESPONSE_CALLS: tuple[ResponseCall, ...] = (
    ResponseCall(r"{res}" + _STATUS + r"\s*\.\s*json\s*\(", has_status=True, has_payload=True),
    ResponseCall(r"{res}\s*\.\s*json\s*\(", has_status=False, has_payload=True),
    ResponseCall(r"{res}" + _STATUS + r"\s*\.\s*json\s*\(", has_status=True, has_payload=False),
    ResponseCall(r"{res}\s*\.\s*json\s*\(", has_status=False, has_payload=False),
    ResponseCall(r"{res}" + _STATUS + r"\s*\.\s*send\s*\(", has_status=True, has_payload=False),
    ResponseCall(r"{res}\s*\.\s*send\s*\(", has_status=False, has_payload=False),
    ResponseCall(r"{res}\s*\.\s*sendStatus\s*\(\s*(\d+)\s*\)", has_status=True, has_payload=False),
)


def find_responses(view: HandlerView) -> list[Finding]:
    findings = []
    seen = set()
    for call in RESPONSE_CALLS:
        for match in call.compile(view).finditer(view.text):
            status = match.group(1) if call.has_status else "200"
            payload = None
            call_text = match.group(0)
            if call.has_payload:
                arguments = enclosed(view.text, match.end() - 1)
                payload = strip_comments(arguments).strip()
                if not payload:
                    continue
                call_text = view.text[match.start():match.end() + len(arguments) + 1]
            if status in seen:
                continue
            seen.add(status)
            schema = infer_response_schema(payload, view.text, status, call_text, view.request)
            findings.append(ResponseFinding(status, schema))
    return findings


def find_error_paths(view: HandlerView) -> list[Finding]:
    if not view.has_try_catch:
        return []
    status_call = re.compile(view.res + _STATUS)
    findings = []
    for match in re.finditer(r"(?<!\.)\bcatch\s*(?:\([^)]*\))?\s*\{", view.text):
        block = enclosed(view.text, match.end() - 1)
        statuses = [m.group(1) for m in status_call.finditer(block)]
        for status in statuses or ["500"]:
            findings.append(ResponseFinding(status, SchemaNode.message()))
    return findings


NOT_FOUND_GUARDS: tuple[str, ...] = (
    r"if\s*\(\s*!.*\)\s*\{[^}]*{res}\s*\.\s*status\s*\(\s*404\s*\)",
    r"if\s*\(\s*!.*\)\s*return\s+{res}\s*\.\s*status\s*\(\s*404\s*\)",
    r"if\s*\([^)\n]*===?\s*(?:-1|null|undefined)\s*\)\s*(?:\{[^}]*|return\s+){res}\s*\.\s*status\s*\(\s*404\s*\)",
)


def find_not_found(view: HandlerView) -> list[Finding]:
    if not any(re.search(guard.replace("{res}", view.res), view.text) for guard in NOT_FOUND_GUARDS):
        return []
    schema = SchemaNode.message()
    payload_call = re.search(view.res + r"\s*\.\s*status\s*\(\s*404\s*\)\s*\.\s*json\s*\(", view.text)
    if payload_call:
        payload = enclosed(view.text, payload_call.end() - 1).strip()
        if payload:
            schema = infer_response_schema(payload, view.text, "404", payload_call.group(0), view.request)
    return [ResponseFinding("404", schema)]


HEURISTICS = (
    find_query_access,
    find_query_destructuring,
    find_body_access,
    find_body_destructuring,
    find_responses,
    find_error_paths,
    find_not_found,
)
