"""CLI entry point for express-to-openapi."""

import logging
import sys
from pathlib import Path

import click

from express_openapi.analyzer.base import Route
from express_openapi.analyzer.collector import extract_routes
from express_openapi.errors import SourceParseError
from express_openapi.generator.document import DocumentInfo, assemble
from express_openapi.generator.writer import FORMATS, write_document

USAGE = "Usage: express-to-openapi <path-to-app.js> [json|yaml]"

_DEFAULT_INFO = DocumentInfo()


def _fail(*lines: str) -> None:
    for line in lines:
        click.echo(line, err=True)
    sys.exit(1)


def _report_parse_error(exc: SourceParseError) -> None:
    click.echo(f"Error parsing file: {exc}", err=True)
    click.echo("Make sure your JavaScript file has valid syntax", err=True)


def _describe(route: Route) -> str:
    params = f" ({len(route.parameters)} params)" if route.parameters else ""
    query = " + query" if route.has_query else ""
    return f"  {route.method.upper()} {route.path}{params}{query}"


@click.command()
@click.argument("input_path", required=False, type=click.Path(path_type=Path))
@click.argument("fmt", required=False, default="json")
@click.option("-o", "--output-dir", default=None, type=click.Path(file_okay=False, path_type=Path), help="Directory for the generated spec (default: current directory).")
@click.option("--title", default=_DEFAULT_INFO.title, show_default=True, help="API title in the info block.")
@click.option("--api-version", default=_DEFAULT_INFO.version, show_default=True, help="API version in the info block.")
@click.option("--description", default=_DEFAULT_INFO.description, help="API description in the info block.")
@click.option("-v", "--verbose", is_flag=True, help="Log skipped registrations and other details.")
def main(
    input_path: Path | None,
    fmt: str,
    output_dir: Path | None,
    title: str,
    api_version: str,
    description: str,
    verbose: bool,
):
    """Generate an OpenAPI 3.0 spec (json or yaml) from an Express.js app file."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if input_path is None:
        _fail("Please provide a path to your Express.js app file", USAGE)
    if fmt not in FORMATS:
        _fail("Output format must be 'json' or 'yaml'")

    abs_path = input_path.resolve()
    if not abs_path.is_file():
        _fail(f"File not found: {abs_path}")

    # undecodable bytes become U+FFFD rather than aborting the run
    content = abs_path.read_text(encoding="utf-8", errors="replace")

    click.echo("Analyzing Express.js application...")
    routes = extract_routes(content, on_error=_report_parse_error)
    document = assemble(routes, DocumentInfo(title=title, version=api_version, description=description))

    try:
        output_dir = output_dir or Path.cwd()
        output_dir.mkdir(parents=True, exist_ok=True)
        spec_path = write_document(document, fmt, output_dir)
    except OSError as exc:
        _fail(f"Failed to write OpenAPI spec: {exc}")

    click.echo(f"OpenAPI spec generated at: {spec_path}")
    click.echo(f"Found {len(routes)} route(s)")

    if routes:
        click.echo("\nDetected routes:")
        for route in routes:
            click.echo(_describe(route))
