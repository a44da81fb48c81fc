"""Serialize the assembled document to JSON or YAML and write it out."""

import json
from pathlib import Path

import yaml

FORMATS = ("json", "yaml")


class _NoAliasDumper(yaml.SafeDumper):
    """Safe dumper that never emits anchors or aliases."""

    def ignore_aliases(self, data) -> bool:
        return True


def render(document: dict, fmt: str = "json") -> str:
    """Render ``document`` as formatted text."""
    if fmt == "yaml":
        return yaml.dump(
            document,
            Dumper=_NoAliasDumper,
            indent=2,
            width=120,
            sort_keys=False,
            allow_unicode=True,
            default_flow_style=False,
        )
    if fmt == "json":
        return json.dumps(document, indent=2, ensure_ascii=False) + "\n"
    raise ValueError(f"Unsupported output format: {fmt!r}")


def output_path(output_dir: Path, fmt: str) -> Path:
    return output_dir / f"openapi.{fmt}"


def write_document(document: dict, fmt: str, output_dir: Path) -> Path:
    """Write ``document`` to ``openapi.<fmt>`` in ``output_dir`` and return the path."""
    path = output_path(output_dir, fmt)
    path.write_text(render(document, fmt), encoding="utf-8")
    return path
